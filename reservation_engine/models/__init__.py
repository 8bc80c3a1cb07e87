"""Models package - Pydantic domain models."""

from .guest import Guest
from .reservation import (
    PaymentStatus,
    PaymentTransaction,
    Reservation,
    ReservationPage,
    ReservationRequest,
    ReservationSearchCriteria,
    ReservationStatus,
    TERMINAL_STATUSES,
    TransactionStatus,
)
from .revenue import RevenueReport
from .room import BookedInterval, Room, RoomSearchCriteria, RoomType, RoomTypeAvailability

__all__ = [
    "BookedInterval",
    "Guest",
    "PaymentStatus",
    "PaymentTransaction",
    "Reservation",
    "ReservationPage",
    "ReservationRequest",
    "ReservationSearchCriteria",
    "ReservationStatus",
    "RevenueReport",
    "Room",
    "RoomSearchCriteria",
    "RoomType",
    "RoomTypeAvailability",
    "TERMINAL_STATUSES",
    "TransactionStatus",
]
