"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from fakes import (
    FakeLocks,
    FakeUnitOfWork,
    FixedClock,
    InMemoryStore,
    RecordingGateway,
    RecordingNotifier,
    utc,
)
from reservation_engine.models.guest import Guest
from reservation_engine.models.reservation import (
    PaymentStatus,
    PaymentTransaction,
    Reservation,
    ReservationStatus,
)
from reservation_engine.models.room import BookedInterval, Room, RoomType
from reservation_engine.services.employee_reservation_service import EmployeeReservationService
from reservation_engine.services.reservation_service import ReservationService


@pytest.fixture
def store():
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def hotel(store):
    """Two room types, three rooms and one guest.

    Rooms 101 and 102 are Standard at $100/night, room 201 is Deluxe at
    $150/night.
    """
    standard = RoomType(
        name="Standard Queen", price_per_night=Decimal("100.00"), capacity=2, num_beds=1
    )
    deluxe = RoomType(
        name="Deluxe King",
        price_per_night=Decimal("150.00"),
        capacity=3,
        num_beds=2,
        has_jacuzzi=True,
    )
    room_101 = Room(room_number="101", room_type_id=standard.id)
    room_102 = Room(room_number="102", room_type_id=standard.id, accessible=True)
    room_201 = Room(room_number="201", room_type_id=deluxe.id, pet_friendly=True)
    guest = Guest(email="ada@example.com", first_name="Ada", last_name="Lovelace")

    store.room_types = {standard.id: standard, deluxe.id: deluxe}
    store.rooms = {room.id: room for room in (room_101, room_102, room_201)}
    store.guests = {guest.id: guest}

    return SimpleNamespace(
        store=store,
        standard=standard,
        deluxe=deluxe,
        room_101=room_101,
        room_102=room_102,
        room_201=room_201,
        guest=guest,
    )


@pytest.fixture
def clock():
    """Clock frozen at 2025-05-01 12:00 UTC."""
    return FixedClock(utc(2025, 5, 1, 12, 0))


@pytest.fixture
def locks():
    return FakeLocks()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def uow_factory(store):
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def reservation_service(uow_factory, locks, gateway, notifier, clock):
    return ReservationService(uow_factory, locks, gateway, notifier, clock)


@pytest.fixture
def employee_service(reservation_service, uow_factory, locks, clock):
    return EmployeeReservationService(reservation_service, uow_factory, locks, clock)


@pytest.fixture
def seed_reservation(hotel):
    """Insert a reservation with its booked interval directly into the store."""

    def _seed(
        room=None,
        check_in=date(2025, 6, 1),
        check_out=date(2025, 6, 4),
        status=ReservationStatus.CONFIRMED,
        total_price=Decimal("300.00"),
        reference="pi_3Nabc",
        paid_at=None,
        payment_status=PaymentStatus.PAID,
    ) -> Reservation:
        room = room or hotel.room_101
        transaction = None
        if reference:
            transaction = PaymentTransaction(
                reference=reference,
                amount_cents=int(total_price * 100),
                paid_at=paid_at or utc(2025, 4, 20, 9, 30),
            )
        reservation = Reservation(
            id=uuid4(),
            guest_id=hotel.guest.id,
            room_id=room.id,
            check_in=check_in,
            check_out=check_out,
            guest_count=2,
            total_price=total_price,
            status=status,
            payment_status=payment_status,
            transaction=transaction,
        )
        hotel.store.reservations[reservation.id] = reservation
        if status in (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN):
            hotel.store.rooms[room.id].booked_intervals.append(
                BookedInterval(
                    room_id=room.id,
                    reservation_id=reservation.id,
                    start=check_in,
                    end=check_out,
                )
            )
        return reservation

    return _seed
