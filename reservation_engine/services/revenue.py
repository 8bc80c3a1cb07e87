"""Revenue aggregation over payment transactions."""

from datetime import date, datetime, timezone
from typing import Iterable, Optional

from reservation_engine.logging import get_logger
from reservation_engine.models.reservation import PaymentStatus, Reservation, ReservationStatus
from reservation_engine.models.revenue import RevenueReport

logger = get_logger(__name__)

# Money still held for these; CANCELLED keeps the money but is not counted.
_EARNING_STATUSES = frozenset(
    {ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN, ReservationStatus.COMPLETED}
)


def _paid_date(paid_at: datetime) -> date:
    """Calendar date of a payment, in UTC. Naive timestamps are taken as UTC."""
    if paid_at.tzinfo is None:
        paid_at = paid_at.replace(tzinfo=timezone.utc)
    return paid_at.astimezone(timezone.utc).date()


def revenue_delta_cents(reservation: Reservation) -> int:
    """Signed contribution of one reservation's current transaction."""
    transaction = reservation.transaction
    if transaction is None:
        return 0

    if (
        reservation.status == ReservationStatus.REFUNDED
        or reservation.payment_status == PaymentStatus.REFUNDED
    ):
        return -transaction.amount_cents
    if (
        reservation.payment_status == PaymentStatus.PAID
        and reservation.status in _EARNING_STATUSES
    ):
        return transaction.amount_cents
    return 0


class RevenueAggregator:
    """Sums transaction amounts by paid month within ``[date_from, date_to)``."""

    def aggregate(
        self,
        reservations: Iterable[Reservation],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> RevenueReport:
        total = 0
        by_month: dict[str, int] = {}
        counted = 0

        for reservation in reservations:
            transaction = reservation.transaction
            if transaction is None or transaction.paid_at is None:
                continue

            paid = _paid_date(transaction.paid_at)
            if date_from is not None and paid < date_from:
                continue
            if date_to is not None and paid >= date_to:
                continue

            delta = revenue_delta_cents(reservation)
            if delta == 0:
                continue

            month = paid.strftime("%Y-%m")
            by_month[month] = by_month.get(month, 0) + delta
            total += delta
            counted += 1

        logger.info(
            "revenue_aggregated",
            date_from=date_from.isoformat() if date_from else None,
            date_to=date_to.isoformat() if date_to else None,
            total_cents=total,
            reservations=counted,
        )

        return RevenueReport(
            date_from=date_from,
            date_to=date_to,
            total_cents=total,
            by_month=dict(sorted(by_month.items())),
        )
