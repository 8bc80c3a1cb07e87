"""Reservation domain model."""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReservationStatus(str, Enum):
    """Reservation lifecycle status.

    CONFIRMED -> CHECKED_IN -> COMPLETED, CONFIRMED -> CANCELLED,
    CONFIRMED -> REFUNDED. CANCELLED, REFUNDED and COMPLETED are terminal.
    """

    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


TERMINAL_STATUSES = frozenset(
    {ReservationStatus.CANCELLED, ReservationStatus.REFUNDED, ReservationStatus.COMPLETED}
)


class PaymentStatus(str, Enum):
    """Whether the hotel holds the guest's money."""

    PAID = "PAID"
    REFUNDED = "REFUNDED"


class TransactionStatus(str, Enum):
    """Gateway-side state of a payment transaction."""

    SUCCEEDED = "SUCCEEDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    REFUNDED = "REFUNDED"


class PaymentTransaction(BaseModel):
    """Point-in-time snapshot of a captured payment."""

    provider: str = Field(default="stripe", min_length=1)
    reference: str = Field(min_length=1, description="Gateway payment reference")
    amount_cents: int = Field(ge=0)
    currency: str = Field(default="usd", min_length=3, max_length=3)
    status: TransactionStatus = TransactionStatus.SUCCEEDED
    paid_at: Optional[datetime] = None
    refund_reference: Optional[str] = None
    refunded_cents: int = Field(default=0, ge=0)
    refunded_at: Optional[datetime] = None


class Reservation(BaseModel):
    """Reservation of one room for a half-open ``[check_in, check_out)`` stay."""

    id: UUID = Field(default_factory=uuid4)
    guest_id: UUID
    room_id: UUID
    check_in: date
    check_out: date
    guest_count: int = Field(gt=0)
    total_price: Decimal = Field(ge=0)
    status: ReservationStatus = Field(default=ReservationStatus.CONFIRMED)
    payment_status: PaymentStatus = Field(default=PaymentStatus.PAID)
    transaction: Optional[PaymentTransaction] = None
    superseded_transactions: list[PaymentTransaction] = Field(default_factory=list)
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def payment_reference(self) -> Optional[str]:
        """Reference of the current payment transaction, if any."""
        return self.transaction.reference if self.transaction else None

    @property
    def is_terminal(self) -> bool:
        """No further transitions are possible."""
        return self.status in TERMINAL_STATUSES


class ReservationRequest(BaseModel):
    """Input for reservation creation and edits."""

    room_id: UUID
    check_in: date
    check_out: date
    guest_count: int = Field(gt=0)
    payment_reference: Optional[str] = Field(
        default=None, description="Payment captured upstream for this booking"
    )

    @field_validator("check_out")
    @classmethod
    def validate_date_range(cls, v: date, info) -> date:
        """Ensure check_in < check_out."""
        values = info.data
        if "check_in" in values and v <= values["check_in"]:
            raise ValueError("check_out must be after check_in")
        return v


class ReservationSearchCriteria(BaseModel):
    """Employee search filters. ``room_ids`` of ``[]`` matches nothing."""

    reservation_id: Optional[UUID] = None
    guest_id: Optional[UUID] = None
    room_ids: Optional[list[UUID]] = None
    status: Optional[ReservationStatus] = None
    currently_checked_in: Optional[bool] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    limit: int = Field(default=20, gt=0, le=200)
    offset: int = Field(default=0, ge=0)


class ReservationPage(BaseModel):
    """One page of search results."""

    items: list[Reservation]
    total: int = Field(ge=0)
    limit: int
    offset: int
