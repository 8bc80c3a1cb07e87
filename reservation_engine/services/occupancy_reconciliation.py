"""Occupancy sweep.

Recomputes every room's occupancy flag from reservation state alone: a
room is occupied exactly when a CHECKED_IN reservation covers today.
Drift from crashes, manual edits or missed check-outs heals here.
"""

from datetime import date
from typing import Callable, Optional
from uuid import UUID

from reservation_engine.logging import get_logger
from reservation_engine.logging.audit import AuditLogger
from reservation_engine.services.clock import Clock
from reservation_engine.services.leases import room_leases
from reservation_engine.storage.redis_locks import RedisLockHelper
from reservation_engine.storage.unit_of_work import SqlAlchemyUnitOfWork

logger = get_logger(__name__)


class OccupancyReconciliationJob:
    """Background job to realign room occupancy flags."""

    def __init__(
        self,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork],
        locks: RedisLockHelper,
        clock: Clock,
    ):
        self.uow_factory = uow_factory
        self.locks = locks
        self.clock = clock

    async def run(self) -> dict[str, int]:
        """
        Execute occupancy sweep.

        Returns:
            Dictionary with counts: {"occupied": count, "cleared": count, "failed": count}
        """
        today = self.clock.today()
        logger.info("occupancy_sweep_started", today=today.isoformat())

        async with self.uow_factory() as uow:
            in_house = await uow.reservations.list_checked_in_covering(today)
            flagged = await uow.rooms.list_occupied()

        should_be_occupied = {reservation.room_id for reservation in in_house}
        currently_occupied = {room.id for room in flagged}

        to_clear = sorted(currently_occupied - should_be_occupied, key=str)
        to_set = sorted(should_be_occupied - currently_occupied, key=str)

        occupied_count = 0
        cleared_count = 0
        failed_count = 0

        for room_id in to_clear + to_set:
            try:
                corrected = await self._correct(room_id, today)
                if corrected is True:
                    occupied_count += 1
                elif corrected is False:
                    cleared_count += 1
            except Exception as e:
                failed_count += 1
                logger.error(
                    "occupancy_correction_failed",
                    room_id=str(room_id),
                    error=str(e),
                    exc_info=True,
                )

        logger.info(
            "occupancy_sweep_completed",
            occupied=occupied_count,
            cleared=cleared_count,
            failed=failed_count,
        )
        return {"occupied": occupied_count, "cleared": cleared_count, "failed": failed_count}

    async def _correct(self, room_id: UUID, today: date) -> Optional[bool]:
        """Realign one room's flag under its lease.

        The target is recomputed inside the lease, since a check-in or
        check-out may have landed after the sweep listed the room.
        Returns the flag written, or None when nothing changed.
        """
        async with room_leases(self.locks, room_id):
            async with self.uow_factory() as uow:
                room = await uow.rooms.get_by_id(room_id, for_update=True)
                if room is None:
                    return None
                in_house = await uow.reservations.list_checked_in_covering(today)
                occupied = any(r.room_id == room_id for r in in_house)
                if room.occupied == occupied:
                    return None
                await uow.rooms.set_occupied(room_id, occupied)

        logger.info(
            "room_occupancy_corrected",
            room_id=str(room_id),
            room_number=room.room_number,
            occupied=occupied,
        )
        AuditLogger.log_occupancy_corrected(room_id, room.room_number, occupied)
        return occupied
