"""Room calendar: booked intervals per room and the overlap test.

Intervals are half-open ``[start, end)``, so a stay ending on the 4th and
one starting on the 4th do not collide.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from reservation_engine.logging import get_logger
from reservation_engine.models.room import BookedInterval, Room
from reservation_engine.services.errors import RoomNotFoundError
from reservation_engine.storage.postgres_room_repo import PostgresRoomRepository

logger = get_logger(__name__)


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """``[a_start, a_end)`` and ``[b_start, b_end)`` share at least one night."""
    return a_start < b_end and a_end > b_start


class RoomCalendar:
    """Availability queries and interval bookkeeping for rooms.

    Bound to the room repository of the current unit of work, so that
    release-then-rebook sequences become visible only on commit.
    """

    def __init__(self, room_repo: PostgresRoomRepository):
        """
        Initialize room calendar.

        Args:
            room_repo: Room repository of the active unit of work
        """
        self.room_repo = room_repo

    async def is_available(self, room_id: UUID, start: date, end: date) -> bool:
        """True iff no booked interval on the room overlaps ``[start, end)``."""
        room = await self._get_room(room_id)
        return not any(
            intervals_overlap(interval.start, interval.end, start, end)
            for interval in room.booked_intervals
        )

    async def book(
        self,
        room_id: UUID,
        start: date,
        end: date,
        reservation_id: Optional[UUID] = None,
    ) -> BookedInterval:
        """Append ``[start, end)`` to the room's calendar.

        No availability re-check happens here; callers check under the
        room lease first.
        """
        interval = BookedInterval(
            room_id=room_id,
            reservation_id=reservation_id,
            start=start,
            end=end,
        )
        await self.room_repo.add_booking(interval)

        logger.info(
            "room_interval_booked",
            room_id=str(room_id),
            booking_id=str(interval.id),
            reservation_id=str(reservation_id) if reservation_id else None,
            start=start.isoformat(),
            end=end.isoformat(),
        )
        return interval

    async def release(
        self,
        room_id: UUID,
        start: date,
        end: date,
        reservation_id: Optional[UUID] = None,
    ) -> int:
        """Remove intervals exactly matching ``[start, end)``.

        Adjacent or merely overlapping intervals are never touched. When
        ``reservation_id`` is given, only intervals owned by that
        reservation (or untagged ones) qualify. Returns how many intervals
        were removed; zero is not an error.
        """
        room = await self.room_repo.get_by_id(room_id)
        if room is None:
            logger.warning("room_release_room_missing", room_id=str(room_id))
            return 0

        removed = 0
        for interval in room.booked_intervals:
            if not interval.matches(start, end):
                continue
            if (
                reservation_id is not None
                and interval.reservation_id is not None
                and interval.reservation_id != reservation_id
            ):
                continue
            if await self.room_repo.remove_booking(room_id, interval.id):
                removed += 1

        if removed:
            logger.info(
                "room_interval_released",
                room_id=str(room_id),
                start=start.isoformat(),
                end=end.isoformat(),
                removed=removed,
            )
        else:
            logger.debug(
                "room_interval_release_noop",
                room_id=str(room_id),
                start=start.isoformat(),
                end=end.isoformat(),
            )
        return removed

    async def _get_room(self, room_id: UUID) -> Room:
        room = await self.room_repo.get_by_id(room_id)
        if room is None:
            raise RoomNotFoundError(f"Room not found: {room_id}")
        return room
