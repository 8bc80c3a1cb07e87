"""Unit tests for the completion and occupancy sweeps."""

from datetime import date

import pytest

from fakes import RecordingNotifier, utc
from reservation_engine.models.reservation import ReservationStatus
from reservation_engine.services.notifications import NotificationKind
from reservation_engine.services.occupancy_reconciliation import OccupancyReconciliationJob
from reservation_engine.services.reservation_cleanup import ReservationCleanupJob


@pytest.fixture
def cleanup_job(uow_factory, locks, notifier, clock):
    return ReservationCleanupJob(uow_factory, locks, notifier, clock)


@pytest.fixture
def occupancy_job(uow_factory, locks, clock):
    return OccupancyReconciliationJob(uow_factory, locks, clock)


@pytest.mark.asyncio
async def test_completion_sweep_closes_elapsed_stays(
    cleanup_job, seed_reservation, hotel, clock, notifier
):
    clock.set(utc(2025, 6, 10, 4, 0))
    elapsed = seed_reservation()
    ends_today = seed_reservation(
        room=hotel.room_102, check_in=date(2025, 6, 8), check_out=date(2025, 6, 10)
    )
    checked_in = seed_reservation(
        room=hotel.room_201,
        check_in=date(2025, 6, 1),
        check_out=date(2025, 6, 5),
        status=ReservationStatus.CHECKED_IN,
    )

    result = await cleanup_job.run()

    assert result == {"completed": 1, "failed": 0}
    assert hotel.store.reservations[elapsed.id].status == ReservationStatus.COMPLETED
    assert hotel.store.reservations[ends_today.id].status == ReservationStatus.CONFIRMED
    assert hotel.store.reservations[checked_in.id].status == ReservationStatus.CHECKED_IN
    assert notifier.sent == [
        (NotificationKind.STAY_COMPLETED, "ada@example.com", elapsed.id, ReservationStatus.COMPLETED)
    ]


@pytest.mark.asyncio
async def test_completion_sweep_survives_notification_failures(
    uow_factory, locks, clock, seed_reservation, hotel
):
    clock.set(utc(2025, 7, 1, 4, 0))
    first = seed_reservation()
    second = seed_reservation(
        room=hotel.room_102, check_in=date(2025, 6, 10), check_out=date(2025, 6, 12)
    )
    job = ReservationCleanupJob(uow_factory, locks, RecordingNotifier(fail=True), clock)

    result = await job.run()

    assert result == {"completed": 2, "failed": 0}
    assert hotel.store.reservations[first.id].status == ReservationStatus.COMPLETED
    assert hotel.store.reservations[second.id].status == ReservationStatus.COMPLETED


@pytest.mark.asyncio
async def test_completion_sweep_counts_per_item_failures(
    cleanup_job, seed_reservation, hotel, clock, locks
):
    clock.set(utc(2025, 7, 1, 4, 0))
    blocked = seed_reservation()
    free = seed_reservation(
        room=hotel.room_102, check_in=date(2025, 6, 10), check_out=date(2025, 6, 12)
    )
    locks.busy.add(hotel.room_101.id)

    result = await cleanup_job.run()

    assert result == {"completed": 1, "failed": 1}
    assert hotel.store.reservations[blocked.id].status == ReservationStatus.CONFIRMED
    assert hotel.store.reservations[free.id].status == ReservationStatus.COMPLETED


@pytest.mark.asyncio
async def test_completion_sweep_with_nothing_to_do(cleanup_job, seed_reservation):
    seed_reservation()

    assert await cleanup_job.run() == {"completed": 0, "failed": 0}


@pytest.mark.asyncio
async def test_occupancy_sweep_heals_drift(occupancy_job, seed_reservation, hotel, clock):
    clock.set(utc(2025, 6, 2, 3, 0))
    # Guest in 101 whose flag was lost
    seed_reservation(status=ReservationStatus.CHECKED_IN)
    # Room 102 left flagged after a missed check-out
    hotel.store.rooms[hotel.room_102.id].occupied = True

    result = await occupancy_job.run()

    assert result == {"occupied": 1, "cleared": 1, "failed": 0}
    assert hotel.store.rooms[hotel.room_101.id].occupied is True
    assert hotel.store.rooms[hotel.room_102.id].occupied is False
    assert hotel.store.rooms[hotel.room_201.id].occupied is False


@pytest.mark.asyncio
async def test_occupancy_sweep_clears_overstayed_check_in(
    occupancy_job, seed_reservation, hotel, clock
):
    """A CHECKED_IN reservation whose check-out date has arrived no longer holds the room."""
    clock.set(utc(2025, 6, 4, 3, 0))
    seed_reservation(status=ReservationStatus.CHECKED_IN)
    hotel.store.rooms[hotel.room_101.id].occupied = True

    result = await occupancy_job.run()

    assert result["cleared"] == 1
    assert hotel.store.rooms[hotel.room_101.id].occupied is False


@pytest.mark.asyncio
async def test_occupancy_sweep_is_idempotent(occupancy_job, seed_reservation, hotel, clock):
    clock.set(utc(2025, 6, 2, 3, 0))
    seed_reservation(status=ReservationStatus.CHECKED_IN)

    await occupancy_job.run()
    second = await occupancy_job.run()

    assert second == {"occupied": 0, "cleared": 0, "failed": 0}
    assert hotel.store.rooms[hotel.room_101.id].occupied is True


@pytest.mark.asyncio
async def test_occupancy_sweep_ignores_confirmed_reservations(
    occupancy_job, seed_reservation, hotel, clock
):
    clock.set(utc(2025, 6, 2, 3, 0))
    seed_reservation()

    result = await occupancy_job.run()

    assert result == {"occupied": 0, "cleared": 0, "failed": 0}
    assert hotel.store.rooms[hotel.room_101.id].occupied is False


@pytest.mark.asyncio
async def test_completion_sweep_skips_reservation_moved_after_listing(
    cleanup_job, seed_reservation, hotel, clock, locks, notifier
):
    clock.set(utc(2025, 6, 10, 4, 0))
    reservation = seed_reservation()

    async def move_to_102():
        hotel.store.reservations[reservation.id].room_id = hotel.room_102.id

    locks.before_next_acquire = move_to_102

    result = await cleanup_job.run()

    assert result == {"completed": 0, "failed": 0}
    assert locks.acquired == [[hotel.room_101.id]]
    assert hotel.store.reservations[reservation.id].status == ReservationStatus.CONFIRMED
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_occupancy_sweep_rechecks_after_concurrent_check_out(
    occupancy_job, employee_service, seed_reservation, hotel, clock, locks
):
    """A check-out landing between listing and correction must not leave the room flagged."""
    clock.set(utc(2025, 6, 2, 3, 0))
    reservation = seed_reservation(status=ReservationStatus.CHECKED_IN)
    # Flag lost, so the sweep lists room 101 as needing occupied=True
    assert hotel.store.rooms[hotel.room_101.id].occupied is False

    async def front_desk_check_out():
        await employee_service.check_out("emp-7", reservation.id)

    locks.before_next_acquire = front_desk_check_out

    result = await occupancy_job.run()

    assert result == {"occupied": 0, "cleared": 0, "failed": 0}
    assert hotel.store.reservations[reservation.id].status == ReservationStatus.COMPLETED
    assert hotel.store.rooms[hotel.room_101.id].occupied is False


@pytest.mark.asyncio
async def test_occupancy_sweep_rechecks_after_concurrent_check_in(
    occupancy_job, employee_service, seed_reservation, hotel, clock, locks
):
    """A check-in landing after a stale flag was listed keeps the room occupied."""
    clock.set(utc(2025, 6, 1, 3, 0))
    reservation = seed_reservation()
    hotel.store.rooms[hotel.room_101.id].occupied = True

    async def front_desk_check_in():
        hotel.store.rooms[hotel.room_101.id].occupied = False
        await employee_service.check_in("emp-7", reservation.id)

    locks.before_next_acquire = front_desk_check_in

    result = await occupancy_job.run()

    assert result == {"occupied": 0, "cleared": 0, "failed": 0}
    assert hotel.store.reservations[reservation.id].status == ReservationStatus.CHECKED_IN
    assert hotel.store.rooms[hotel.room_101.id].occupied is True
