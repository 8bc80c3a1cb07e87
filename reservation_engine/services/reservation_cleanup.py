"""Completion sweep.

Daily job that closes CONFIRMED reservations whose stay window has fully
elapsed. COMPLETED here means the window has passed, not that the guest
necessarily showed up.
"""

from typing import Callable

from reservation_engine.logging import get_logger
from reservation_engine.logging.audit import AuditLogger
from reservation_engine.models.reservation import ReservationStatus
from reservation_engine.services.clock import Clock
from reservation_engine.services.leases import room_leases
from reservation_engine.services.notifications import (
    NotificationKind,
    NotificationSender,
    notify_best_effort,
)
from reservation_engine.storage.redis_locks import RedisLockHelper
from reservation_engine.storage.unit_of_work import SqlAlchemyUnitOfWork

logger = get_logger(__name__)


class ReservationCleanupJob:
    """Background job to complete reservations past their check-out date."""

    def __init__(
        self,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork],
        locks: RedisLockHelper,
        notifier: NotificationSender,
        clock: Clock,
    ):
        """
        Initialize cleanup job.

        Args:
            uow_factory: Creates a fresh unit of work per reservation
            locks: Per-room lease helper
            notifier: Best-effort guest notification channel
            clock: Hotel clock deciding what "today" is
        """
        self.uow_factory = uow_factory
        self.locks = locks
        self.notifier = notifier
        self.clock = clock

    async def run(self) -> dict[str, int]:
        """
        Execute completion sweep.

        Each reservation is completed in its own unit of work, so one
        failure does not stop the batch.

        Returns:
            Dictionary with counts: {"completed": count, "failed": count}
        """
        today = self.clock.today()
        logger.info("completion_sweep_started", today=today.isoformat())

        async with self.uow_factory() as uow:
            candidates = await uow.reservations.list_confirmed_ending_before(today)

        completed_count = 0
        failed_count = 0

        for candidate in candidates:
            try:
                async with room_leases(self.locks, candidate.room_id):
                    async with self.uow_factory() as uow:
                        reservation = await uow.reservations.get_by_id(
                            candidate.id, for_update=True
                        )
                        # Changed since listing
                        if (
                            reservation is None
                            or reservation.status != ReservationStatus.CONFIRMED
                            or reservation.check_out >= today
                        ):
                            continue
                        # Moved to another room; the lease held is not its room's
                        if reservation.room_id != candidate.room_id:
                            logger.info(
                                "reservation_completion_deferred",
                                reservation_id=str(candidate.id),
                                listed_room_id=str(candidate.room_id),
                                room_id=str(reservation.room_id),
                            )
                            continue

                        reservation.status = ReservationStatus.COMPLETED
                        reservation.updated_at = self.clock.now()
                        reservation = await uow.reservations.update(reservation)
                        guest = await uow.guests.get_by_id(reservation.guest_id)

                completed_count += 1
                logger.info(
                    "reservation_completed",
                    reservation_id=str(reservation.id),
                    room_id=str(reservation.room_id),
                    check_out=reservation.check_out.isoformat(),
                )
                AuditLogger.log_stay_completed(
                    reservation.id, reservation.check_out.isoformat()
                )
                await notify_best_effort(
                    self.notifier,
                    NotificationKind.STAY_COMPLETED,
                    guest.email if guest else None,
                    reservation,
                )

            except Exception as e:
                failed_count += 1
                logger.error(
                    "reservation_completion_failed",
                    reservation_id=str(candidate.id),
                    error=str(e),
                    exc_info=True,
                )

        logger.info(
            "completion_sweep_completed",
            completed=completed_count,
            failed=failed_count,
        )
        return {"completed": completed_count, "failed": failed_count}
