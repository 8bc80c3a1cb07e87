"""Unit tests for reservation creation and guest listing."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from fakes import RecordingNotifier
from reservation_engine.models.reservation import (
    PaymentStatus,
    ReservationRequest,
    ReservationStatus,
    TransactionStatus,
)
from reservation_engine.services.errors import (
    GuestNotFoundError,
    ReservationNotFoundError,
    RoomBusyError,
    RoomNotFoundError,
    RoomUnavailableError,
)
from reservation_engine.services.notifications import NotificationKind
from reservation_engine.services.reservation_service import ReservationService


def _request(room, check_in, check_out, reference="pi_3Nabc", guests=2):
    return ReservationRequest(
        room_id=room.id,
        check_in=check_in,
        check_out=check_out,
        guest_count=guests,
        payment_reference=reference,
    )


@pytest.mark.asyncio
async def test_create_prices_and_books(reservation_service, hotel, clock, notifier):
    """Room 101 at $100/night for Jun 1-4 costs 300.00 and blocks the room."""
    reservation = await reservation_service.create_reservation(
        "ada@example.com", _request(hotel.room_101, date(2025, 6, 1), date(2025, 6, 4))
    )

    assert reservation.total_price == Decimal("300.00")
    assert reservation.status == ReservationStatus.CONFIRMED
    assert reservation.payment_status == PaymentStatus.PAID
    assert reservation.guest_id == hotel.guest.id
    assert reservation.transaction.reference == "pi_3Nabc"
    assert reservation.transaction.amount_cents == 30000
    assert reservation.transaction.status == TransactionStatus.SUCCEEDED
    assert reservation.transaction.paid_at == clock.now()

    intervals = hotel.store.rooms[hotel.room_101.id].booked_intervals
    assert [(i.start, i.end, i.reservation_id) for i in intervals] == [
        (date(2025, 6, 1), date(2025, 6, 4), reservation.id)
    ]
    assert hotel.store.reservations[reservation.id].total_price == Decimal("300.00")
    assert notifier.sent == [
        (
            NotificationKind.RESERVATION_CONFIRMED,
            "ada@example.com",
            reservation.id,
            ReservationStatus.CONFIRMED,
        )
    ]


@pytest.mark.asyncio
async def test_overlapping_second_booking_rejected(reservation_service, hotel):
    await reservation_service.create_reservation(
        "ada@example.com", _request(hotel.room_101, date(2025, 6, 1), date(2025, 6, 4))
    )

    with pytest.raises(RoomUnavailableError):
        await reservation_service.create_reservation(
            "ada@example.com", _request(hotel.room_101, date(2025, 6, 2), date(2025, 6, 5))
        )

    assert len(hotel.store.reservations) == 1
    assert len(hotel.store.rooms[hotel.room_101.id].booked_intervals) == 1


@pytest.mark.asyncio
async def test_adjacent_booking_allowed(reservation_service, hotel):
    await reservation_service.create_reservation(
        "ada@example.com", _request(hotel.room_101, date(2025, 6, 1), date(2025, 6, 4))
    )
    second = await reservation_service.create_reservation(
        "ada@example.com", _request(hotel.room_101, date(2025, 6, 4), date(2025, 6, 6))
    )

    assert second.total_price == Decimal("200.00")
    assert len(hotel.store.rooms[hotel.room_101.id].booked_intervals) == 2


@pytest.mark.asyncio
async def test_email_lookup_is_case_insensitive(reservation_service, hotel):
    reservation = await reservation_service.create_reservation(
        "  Ada@Example.COM ", _request(hotel.room_201, date(2025, 6, 1), date(2025, 6, 3))
    )

    assert reservation.guest_id == hotel.guest.id
    assert reservation.total_price == Decimal("300.00")


@pytest.mark.asyncio
async def test_unknown_guest_leaves_no_trace(reservation_service, hotel, notifier):
    with pytest.raises(GuestNotFoundError):
        await reservation_service.create_reservation(
            "nobody@example.com", _request(hotel.room_101, date(2025, 6, 1), date(2025, 6, 4))
        )

    assert hotel.store.reservations == {}
    assert hotel.store.rooms[hotel.room_101.id].booked_intervals == []
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_unknown_room(reservation_service, hotel):
    request = ReservationRequest(
        room_id=uuid4(), check_in=date(2025, 6, 1), check_out=date(2025, 6, 4), guest_count=1
    )
    with pytest.raises(RoomNotFoundError):
        await reservation_service.create_reservation("ada@example.com", request)


@pytest.mark.asyncio
async def test_create_without_payment_reference(reservation_service, hotel):
    reservation = await reservation_service.create_reservation(
        "ada@example.com",
        _request(hotel.room_102, date(2025, 6, 1), date(2025, 6, 2), reference=None),
    )

    assert reservation.transaction is None
    assert reservation.payment_reference is None
    assert reservation.payment_status == PaymentStatus.PAID


@pytest.mark.asyncio
async def test_busy_room_lease_raises(reservation_service, hotel, locks):
    locks.busy.add(hotel.room_101.id)

    with pytest.raises(RoomBusyError):
        await reservation_service.create_reservation(
            "ada@example.com", _request(hotel.room_101, date(2025, 6, 1), date(2025, 6, 4))
        )

    assert hotel.store.reservations == {}


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_booking(
    uow_factory, locks, gateway, clock, hotel
):
    service = ReservationService(uow_factory, locks, gateway, RecordingNotifier(fail=True), clock)

    reservation = await service.create_reservation(
        "ada@example.com", _request(hotel.room_101, date(2025, 6, 1), date(2025, 6, 4))
    )

    assert reservation.id in hotel.store.reservations
    assert len(hotel.store.rooms[hotel.room_101.id].booked_intervals) == 1


@pytest.mark.asyncio
async def test_get_reservation(reservation_service, seed_reservation):
    seeded = seed_reservation()

    assert (await reservation_service.get_reservation(seeded.id)).id == seeded.id
    with pytest.raises(ReservationNotFoundError):
        await reservation_service.get_reservation(uuid4())


@pytest.mark.asyncio
async def test_get_reservations_by_guest_newest_first(reservation_service, hotel, clock):
    first = await reservation_service.create_reservation(
        "ada@example.com", _request(hotel.room_101, date(2025, 6, 1), date(2025, 6, 4))
    )
    clock.advance(minutes=5)
    second = await reservation_service.create_reservation(
        "ada@example.com", _request(hotel.room_102, date(2025, 7, 1), date(2025, 7, 4))
    )

    listed = await reservation_service.get_reservations_by_guest("ada@example.com")

    assert [r.id for r in listed] == [second.id, first.id]
    with pytest.raises(GuestNotFoundError):
        await reservation_service.get_reservations_by_guest("nobody@example.com")
