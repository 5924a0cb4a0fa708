"""Unit tests for services.user_service and services.request_service."""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from errors import ForbiddenError, NotFoundError, ValidationError
from schemas.dto.requests.request import CreateRequestRequest, ListQuery
from schemas.dto.requests.user import UpdateUserRequest
from schemas.models.request import NotificationDoc, RequestDoc
from schemas.models.user import UserDoc, UserRole
from services.request_service import REQUEST_SEARCH_FIELDS, RequestService


@pytest.fixture
async def admin(users):
    return await users.create(UserDoc(username="admin", email="admin@x.com"))


@pytest.fixture
async def guest(users):
    return await users.create(
        UserDoc(username="guest", email="guest@x.com", role=UserRole.GUEST)
    )


# ── UserService ───────────────────────────────────────────────────────────────


class TestGetUser:
    async def test_found(self, user_service, admin):
        assert (await user_service.get_user(str(admin.id))).email == "admin@x.com"

    @pytest.mark.parametrize("user_id", ["nope", str(ObjectId())], ids=["bad", "unknown"])
    async def test_not_found(self, user_service, user_id):
        with pytest.raises(NotFoundError):
            await user_service.get_user(user_id)


class TestListUsers:
    async def test_paginates(self, user_service, users):
        for i in range(5):
            await users.create(UserDoc(username=f"u{i}", email=f"u{i}@x.com"))
        items, total, built = await user_service.list_users(ListQuery(page="2", limit="2"))
        assert total == 5
        assert len(items) == 2
        assert (built.page, built.limit, built.skip) == (2, 2, 2)

    async def test_search_targets_username_and_email(self, user_service):
        _, _, built = await user_service.list_users(ListQuery(search="bek"))
        fields = [next(iter(clause)) for clause in built.filter["$or"]]
        assert fields == ["username", "email"]


class TestUpdateUser:
    async def test_self_update(self, user_service, guest):
        updated = await user_service.update_user(
            guest, str(guest.id), UpdateUserRequest(username="renamed")
        )
        assert updated.username == "renamed"

    async def test_admin_updates_anyone(self, user_service, admin, guest):
        updated = await user_service.update_user(
            admin, str(guest.id), UpdateUserRequest(image="https://cdn/p.png")
        )
        assert updated.image == "https://cdn/p.png"

    async def test_guest_cannot_update_others(self, user_service, admin, guest):
        with pytest.raises(ForbiddenError):
            await user_service.update_user(
                guest, str(admin.id), UpdateUserRequest(username="x")
            )

    async def test_empty_update(self, user_service, guest):
        with pytest.raises(ValidationError):
            await user_service.update_user(guest, str(guest.id), UpdateUserRequest())


class TestDeleteUser:
    async def test_admin_deletes_user_and_sessions(
        self, user_service, admin, guest, users, refresh_tokens
    ):
        await refresh_tokens.create("j1", guest.id, False, guest.created_at)
        await user_service.delete_user(admin, str(guest.id))
        assert guest.id not in users.docs
        assert refresh_tokens.live_for_user(guest.id) == []

    async def test_cannot_delete_self(self, user_service, admin, users):
        with pytest.raises(ForbiddenError):
            await user_service.delete_user(admin, str(admin.id))
        assert admin.id in users.docs

    async def test_unknown(self, user_service, admin):
        with pytest.raises(NotFoundError):
            await user_service.delete_user(admin, str(ObjectId()))


# ── RequestService ────────────────────────────────────────────────────────────


def _request_service():
    requests = AsyncMock()
    notifications = AsyncMock()
    return RequestService(requests, notifications), requests, notifications


class TestRequestService:
    async def test_create_writes_request_and_notification(self):
        service, requests, _ = _request_service()

        async def _create(doc):
            return (
                doc.model_copy(update={"id": ObjectId()}),
                NotificationDoc(_id=ObjectId(), owner=doc.name, type=doc.type),
            )

        requests.create_with_notification.side_effect = _create
        body = CreateRequestRequest.model_validate(
            {"name": "Aziza", "phoneNumber": "+998901234567", "type": "Tailoring"}
        )
        created = await service.create_request(body)

        (doc,), _ = requests.create_with_notification.call_args
        assert isinstance(doc, RequestDoc)
        assert doc.phone_number == "+998901234567"
        assert created.id is not None

    async def test_list_requests_builds_filters(self):
        service, requests, _ = _request_service()
        requests.find_page.return_value = ([], 0)
        items, total, built = await service.list_requests(
            ListQuery(search="silk", type="Tailoring", category="Dress", limit="10")
        )
        assert (items, total) == ([], 0)
        assert [next(iter(c)) for c in built.filter["$or"]] == list(REQUEST_SEARCH_FIELDS)
        assert built.filter["type"] == "Tailoring"
        assert built.filter["category"].match("dress")
        requests.find_page.assert_awaited_once_with(built)

    async def test_list_notifications_searches_owner(self):
        service, _, notifications = _request_service()
        notifications.find_page.return_value = ([], 0)
        _, _, built = await service.list_notifications(ListQuery(search="Aziza"))
        assert [next(iter(c)) for c in built.filter["$or"]] == ["owner"]

    async def test_get_request(self):
        service, requests, _ = _request_service()
        doc = RequestDoc(_id=ObjectId(), name="Aziza", phone_number="+998", type="Tailoring")
        requests.find_by_id.return_value = doc
        assert await service.get_request(str(doc.id)) is doc
        requests.find_by_id.assert_awaited_once_with(doc.id)

    async def test_get_request_unknown_or_malformed(self):
        service, requests, _ = _request_service()
        requests.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            await service.get_request(str(ObjectId()))
        with pytest.raises(NotFoundError):
            await service.get_request("not-an-id")
        requests.find_by_id.assert_awaited_once()

    async def test_get_notification(self):
        service, _, notifications = _request_service()
        doc = NotificationDoc(_id=ObjectId(), owner="Aziza", type="Tailoring")
        notifications.find_by_id.return_value = doc
        assert await service.get_notification(str(doc.id)) is doc

    async def test_get_notification_unknown(self):
        service, _, notifications = _request_service()
        notifications.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            await service.get_notification(str(ObjectId()))
        with pytest.raises(NotFoundError):
            await service.get_notification("garbage")
