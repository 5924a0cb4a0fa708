"""User profile reads, updates and admin management."""

from __future__ import annotations


from builders.query import BuiltQuery, ListQueryBuilder
from errors import ForbiddenError, NotFoundError, ValidationError
from repositories.refresh_token_repository import RefreshTokenRepository
from repositories.user_repository import UserRepository
from schemas.dto.requests.request import ListQuery
from schemas.dto.requests.user import UpdateUserRequest
from schemas.models.base import parse_object_id
from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)


class UserService:
    def __init__(
        self, users: UserRepository, refresh_tokens: RefreshTokenRepository
    ) -> None:
        self._users = users
        self._refresh_tokens = refresh_tokens

    async def get_user(self, user_id: str) -> UserDoc:
        oid = parse_object_id(user_id)
        user = await self._users.find_by_id(oid) if oid is not None else None
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, query: ListQuery) -> tuple[list[UserDoc], int, BuiltQuery]:
        built = (
            ListQueryBuilder(query, search_fields=("username", "email"))
            .parse_pagination()
            .parse_search()
            .parse_date_range()
            .build()
        )
        users, total = await self._users.find_page(built)
        return users, total, built

    async def update_user(
        self, actor: UserDoc, user_id: str, data: UpdateUserRequest
    ) -> UserDoc:
        """Update username/image. Users edit themselves; admins edit anyone."""
        target = await self.get_user(user_id)
        if target.id != actor.id and not actor.is_admin:
            raise ForbiddenError("You can only update your own profile")

        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationError("Nothing to update")

        updated = await self._users.update_fields(target.id, fields)
        if updated is None:
            raise NotFoundError("User not found")
        log.info("user_updated", user_id=str(target.id), fields=sorted(fields))
        return updated

    async def delete_user(self, actor: UserDoc, user_id: str) -> None:
        target = await self.get_user(user_id)
        if target.id == actor.id:
            raise ForbiddenError("You cannot delete your own account")
        if not await self._users.delete(target.id):
            raise NotFoundError("User not found")
        await self._refresh_tokens.revoke_all_for_user(target.id)
        log.info("user_deleted", user_id=str(target.id), deleted_by=str(actor.id))
