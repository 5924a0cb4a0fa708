"""Helpers shared by the integration tests."""

from bson import ObjectId

from schemas.models.user import UserDoc, UserRole
from shared.crypto import hash_password
from shared.datetime_utils import utcnow

PASSWORD = "secret123"


def add_user(users, email="bek@x.com", role=UserRole.ADMIN, confirmed=True) -> UserDoc:
    """Insert a user straight into the in-memory repository."""
    now = utcnow()
    user = UserDoc(
        _id=ObjectId(),
        username=email.split("@")[0],
        email=email,
        password_hash=hash_password(PASSWORD),
        is_email_confirmed=confirmed,
        role=role,
        created_at=now,
        updated_at=now,
    )
    users.docs[user.id] = user
    return user


def login(client, email="bek@x.com", remember_me=False) -> str:
    resp = client.post(
        "/auth/login",
        json={"email": email, "password": PASSWORD, "rememberMe": remember_me},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
