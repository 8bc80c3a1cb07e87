"""Guest notifications.

Delivery is someone else's job. The engine only hands a snapshot of the
reservation to a sender after its unit of work has committed, and a
failing sender never undoes or blocks a booking.
"""

from enum import Enum
from typing import Optional, Protocol

from reservation_engine.logging import get_logger
from reservation_engine.models.reservation import Reservation

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    """Notification templates."""

    RESERVATION_CONFIRMED = "reservation_confirmed"
    RESERVATION_CANCELLED = "reservation_cancelled"
    RESERVATION_UPDATED = "reservation_updated"
    STAY_COMPLETED = "stay_completed"


class NotificationSender(Protocol):
    """Outbound notification channel."""

    async def send(
        self, kind: NotificationKind, recipient_email: str, reservation: Reservation
    ) -> None: ...


class LoggingNotificationSender:
    """Sender that records notifications in the structured log."""

    async def send(
        self, kind: NotificationKind, recipient_email: str, reservation: Reservation
    ) -> None:
        logger.info(
            "notification_sent",
            kind=kind.value,
            recipient=recipient_email,
            reservation_id=str(reservation.id),
            status=reservation.status.value,
            check_in=reservation.check_in.isoformat(),
            check_out=reservation.check_out.isoformat(),
        )


async def notify_best_effort(
    sender: NotificationSender,
    kind: NotificationKind,
    recipient_email: Optional[str],
    reservation: Reservation,
) -> bool:
    """Send one notification, logging instead of raising on failure."""
    if not recipient_email:
        logger.warning(
            "notification_skipped_no_recipient",
            kind=kind.value,
            reservation_id=str(reservation.id),
        )
        return False

    try:
        await sender.send(kind, recipient_email, reservation)
        return True
    except Exception as e:
        logger.error(
            "notification_failed",
            kind=kind.value,
            reservation_id=str(reservation.id),
            error=str(e),
            exc_info=True,
        )
        return False
