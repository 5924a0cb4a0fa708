"""Short per-user leases in Redis.

Serialises mutations that are not a single atomic document operation (the
delete-then-insert of a verification-code resend). Without Redis the lease is
a no-op and the caller proceeds unserialised.
"""

import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from errors import RateLimitError
from shared.logging import get_logger

log = get_logger(__name__)

# Delete the key only if we still own it
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class UserLease:
    def __init__(
        self, redis_client: Optional[aioredis.Redis], ttl_ms: int = 5000
    ) -> None:
        self._redis = redis_client
        self.ttl_ms = ttl_ms

    def _key(self, purpose: str, user_id: str) -> str:
        return f"lease:{purpose}:{user_id}"

    @asynccontextmanager
    async def hold(self, purpose: str, user_id: str) -> AsyncIterator[None]:
        """Hold the lease for the body of the ``async with`` block.

        Raises RateLimitError when another request holds it.
        """
        if self._redis is None:
            yield
            return

        key = self._key(purpose, user_id)
        owner = secrets.token_hex(8)
        try:
            acquired = await self._redis.set(key, owner, nx=True, px=self.ttl_ms)
        except RedisError as e:
            log.warning("user_lease_unavailable", purpose=purpose, error=str(e))
            yield
            return

        if not acquired:
            log.info("user_lease_busy", purpose=purpose, user_id=user_id)
            raise RateLimitError("A request for this account is already in progress")

        try:
            yield
        finally:
            try:
                await self._redis.eval(_RELEASE_SCRIPT, 1, key, owner)
            except RedisError as e:
                # Lease expires on its own after ttl_ms
                log.warning("user_lease_release_failed", purpose=purpose, error=str(e))
