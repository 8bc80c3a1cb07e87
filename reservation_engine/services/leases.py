"""Per-room lease scope shared by every room-mutating operation."""

from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID

from reservation_engine.services.errors import RoomBusyError
from reservation_engine.storage.redis_locks import RedisLockHelper


@asynccontextmanager
async def room_leases(locks: RedisLockHelper, *room_ids: UUID) -> AsyncIterator[None]:
    """Hold leases on all ``room_ids`` for the body, or raise RoomBusyError."""
    async with locks.acquire_room_locks(room_ids) as acquired:
        if not acquired:
            raise RoomBusyError(
                "Room is being modified by another request. Please try again."
            )
        yield
