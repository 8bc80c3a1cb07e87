"""Redis-based per-room leases for the check-then-book window."""

import asyncio
import secrets
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable
from uuid import UUID

import redis.asyncio as redis

from reservation_engine.logging import get_logger

logger = get_logger(__name__)

# Delete the key only if we still own it; a lease that expired and was
# taken by another request must not be released by us.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

_POLL_INTERVAL_SECONDS = 0.05


class RedisLockHelper:
    """Helper for Redis-based distributed locking."""

    def __init__(self, redis_url: str, ttl_seconds: int = 10, wait_seconds: float = 3.0):
        """Initialize Redis lock helper."""
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.wait_seconds = wait_seconds
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Establish Redis connection."""
        self._client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()

    @staticmethod
    def room_lock_key(room_id: UUID) -> str:
        return f"hotel:lock:room:{room_id}"

    @asynccontextmanager
    async def acquire_room_locks(
        self, room_ids: Iterable[UUID]
    ) -> AsyncGenerator[bool, None]:
        """Acquire exclusive leases on every given room, waiting at most ``wait_seconds``.

        Rooms are locked in sorted order so two requests touching the same
        pair of rooms cannot deadlock. Yields False if any lease could not
        be obtained in time; leases already taken are released either way.
        """
        if not self._client:
            raise RuntimeError("Redis client not connected")

        token = secrets.token_hex(16)
        keys = [self.room_lock_key(room_id) for room_id in sorted(set(room_ids), key=str)]
        held: list[str] = []
        deadline = time.monotonic() + self.wait_seconds

        try:
            for key in keys:
                if not await self._acquire(key, token, deadline):
                    logger.warning("room_lock_wait_exceeded", lock_key=key)
                    break
                held.append(key)
            yield len(held) == len(keys)
        finally:
            for key in reversed(held):
                await self._client.eval(_RELEASE_SCRIPT, 1, key, token)

    async def is_locked(self, room_id: UUID) -> bool:
        """Check if a room is currently leased."""
        if not self._client:
            raise RuntimeError("Redis client not connected")

        return bool(await self._client.exists(self.room_lock_key(room_id)))

    async def _acquire(self, key: str, token: str, deadline: float) -> bool:
        assert self._client is not None
        while True:
            acquired = await self._client.set(key, token, ex=self.ttl_seconds, nx=True)
            if acquired:
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(_POLL_INTERVAL_SECONDS)
