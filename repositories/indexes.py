"""
Index definitions for every collection, created once at startup.

TTL indexes on expires_at let MongoDB purge dead verification codes, OTPs
and refresh-token rows on its own; expiry is still checked in queries
because the TTL monitor only runs once a minute.
"""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.asynchronous.database import AsyncDatabase

from shared.logging import get_logger

log = get_logger(__name__)


INDEXES: dict[str, list[IndexModel]] = {
    "users": [
        IndexModel([("email", ASCENDING)], unique=True),
        IndexModel(
            [("username", ASCENDING)],
            unique=True,
            partialFilterExpression={"username": {"$type": "string"}},
        ),
        IndexModel(
            [("google_id", ASCENDING)],
            unique=True,
            partialFilterExpression={"google_id": {"$type": "string"}},
        ),
    ],
    "verification_codes": [
        IndexModel([("user_id", ASCENDING), ("type", ASCENDING), ("created_at", DESCENDING)]),
        IndexModel([("expires_at", ASCENDING)], expireAfterSeconds=0),
    ],
    "otp_codes": [
        IndexModel([("email", ASCENDING)], unique=True),
        IndexModel([("expires_at", ASCENDING)], expireAfterSeconds=0),
    ],
    "refresh_tokens": [
        IndexModel([("jti", ASCENDING)], unique=True),
        IndexModel([("user_id", ASCENDING), ("revoked_at", ASCENDING)]),
        IndexModel([("expires_at", ASCENDING)], expireAfterSeconds=0),
    ],
    "requests": [
        IndexModel([("created_at", DESCENDING)]),
        IndexModel([("type", ASCENDING), ("created_at", DESCENDING)]),
    ],
    "notifications": [
        IndexModel([("created_at", DESCENDING)]),
    ],
}


async def ensure_indexes(db: AsyncDatabase) -> None:
    """Create all indexes. Idempotent; safe to run on every boot."""
    for collection_name, models in INDEXES.items():
        names = await db[collection_name].create_indexes(models)
        log.info("indexes_ensured", collection=collection_name, indexes=names)
