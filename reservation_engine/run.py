"""Reservation engine worker entry point.

Runs the daily occupancy and completion sweeps until interrupted:

    python -m reservation_engine.run
"""

import asyncio
from dataclasses import dataclass

from reservation_engine.config import Settings, load_settings
from reservation_engine.logging import get_logger, setup_logging
from reservation_engine.services.clock import SystemClock
from reservation_engine.services.employee_reservation_service import EmployeeReservationService
from reservation_engine.services.notifications import LoggingNotificationSender
from reservation_engine.services.occupancy_reconciliation import OccupancyReconciliationJob
from reservation_engine.services.payment_gateway import StripePaymentGateway
from reservation_engine.services.reservation_cleanup import ReservationCleanupJob
from reservation_engine.services.reservation_service import ReservationService
from reservation_engine.services.room_search import RoomSearchService
from reservation_engine.services.scheduler import DailyJob, SchedulerService
from reservation_engine.storage.database import Database
from reservation_engine.storage.redis_locks import RedisLockHelper
from reservation_engine.storage.unit_of_work import SqlAlchemyUnitOfWork


@dataclass
class Engine:
    """Wired services, shared by the worker and any in-process caller."""

    database: Database
    locks: RedisLockHelper
    reservations: ReservationService
    employee: EmployeeReservationService
    room_search: RoomSearchService
    scheduler: SchedulerService


def build_engine(settings: Settings) -> Engine:
    """Wire repositories, gateway and services from settings. Nothing is connected yet."""
    if settings.payment_provider != "stripe":
        raise ValueError(f"Unsupported payment provider: {settings.payment_provider}")

    database = Database(settings)
    locks = RedisLockHelper(
        settings.redis_url,
        ttl_seconds=settings.redis_lock_ttl_seconds,
        wait_seconds=settings.redis_lock_wait_seconds,
    )
    clock = SystemClock(settings.hotel_timezone)
    gateway = StripePaymentGateway(
        settings.stripe_secret_key,
        test_reference_prefix=settings.stripe_test_reference_prefix,
    )
    notifier = LoggingNotificationSender()

    def uow_factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(database)

    reservations = ReservationService(
        uow_factory,
        locks,
        gateway,
        notifier,
        clock,
        currency=settings.currency,
        full_refund_window_hours=settings.full_refund_window_hours,
    )
    employee = EmployeeReservationService(reservations, uow_factory, locks, clock)

    occupancy_job = OccupancyReconciliationJob(uow_factory, locks, clock)
    cleanup_job = ReservationCleanupJob(uow_factory, locks, notifier, clock)
    scheduler = SchedulerService(
        [
            DailyJob(
                "occupancy_sweep",
                settings.occupancy_sweep_hour,
                settings.occupancy_sweep_minute,
                occupancy_job.run,
            ),
            DailyJob(
                "completion_sweep",
                settings.completion_sweep_hour,
                settings.completion_sweep_minute,
                cleanup_job.run,
            ),
        ],
        clock,
    )

    return Engine(
        database=database,
        locks=locks,
        reservations=reservations,
        employee=employee,
        room_search=RoomSearchService(uow_factory),
        scheduler=scheduler,
    )


async def main() -> None:
    """Connect backing services and run the scheduler until stopped."""
    settings = load_settings()
    setup_logging(settings.log_level)
    logger = get_logger(__name__)

    logger.info(
        "reservation_worker_starting",
        app_name=settings.app_name,
        environment=settings.environment,
        hotel_timezone=settings.hotel_timezone,
    )

    engine = build_engine(settings)
    await engine.database.connect()
    await engine.locks.connect()

    scheduler_task = asyncio.create_task(engine.scheduler.start())

    try:
        await scheduler_task
    except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
        logger.info("reservation_worker_shutting_down")
    finally:
        await engine.scheduler.stop()
        scheduler_task.cancel()
        await engine.locks.disconnect()
        await engine.database.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
