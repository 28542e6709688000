"""
Redis-based distributed lock.

Every roster or status mutation on a ride runs under a lock keyed by the
ride id, so two concurrent join requests cannot both observe a free seat
and both succeed.

Implementation uses SET NX EX for acquire and a Lua script for
atomic check-and-delete on release.  Acquisition is retried a bounded
number of times with exponential backoff before giving up.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

import redis.asyncio as aioredis

from rideshare.domain.errors import RideLocked

logger = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLock:
    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: int = 30,
        retry_attempts: int = 1,
        retry_base_delay: float = 0.05,
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.retry_attempts = max(1, retry_attempts)
        self.retry_base_delay = retry_base_delay
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire once. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def acquire_with_backoff(self) -> bool:
        """Retry ``acquire`` with exponential backoff, bounded by attempts."""
        for attempt in range(self.retry_attempts):
            if await self.acquire():
                return True
            if attempt + 1 < self.retry_attempts:
                await asyncio.sleep(self.retry_base_delay * (2 ** attempt))
        logger.warning(
            "Lock %s still held after %d attempts", self.key, self.retry_attempts
        )
        return False

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)

    # context-manager support
    async def __aenter__(self):
        if not await self.acquire_with_backoff():
            raise RideLocked(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()


def ride_lock(
    client: aioredis.Redis,
    ride_id: int,
    ttl_seconds: int = 30,
    retry_attempts: int = 5,
    retry_base_delay: float = 0.05,
) -> DistributedLock:
    """The exclusive lock guarding all mutations of one ride."""
    return DistributedLock(
        client,
        f"ride:{ride_id}",
        ttl_seconds=ttl_seconds,
        retry_attempts=retry_attempts,
        retry_base_delay=retry_base_delay,
    )
