"""Structured audit logging for money and occupancy changes.

Every action that moves money, blocks or frees a room, or flips an
occupancy flag leaves one ``audit_event`` line so that a double-booked
room or an unrefunded guest can be traced back after the fact.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from reservation_engine.logging import get_logger

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"


class AuditEventType(str, Enum):
    """Types of auditable events."""

    # Reservation lifecycle
    RESERVATION_CREATED = "reservation_created"
    RESERVATION_UPDATED = "reservation_updated"
    RESERVATION_CANCELLED = "reservation_cancelled"
    RESERVATION_REFUNDED = "reservation_refunded"
    STAY_COMPLETED = "stay_completed"

    # Money
    PARTIAL_REFUND_ISSUED = "partial_refund_issued"
    PARTIAL_REFUND_FAILED = "partial_refund_failed"
    UPGRADE_CHARGE_WAIVED = "upgrade_charge_waived"
    PAYMENT_REPLACED = "payment_replaced"

    # Occupancy
    GUEST_CHECKED_IN = "guest_checked_in"
    GUEST_CHECKED_OUT = "guest_checked_out"
    OCCUPANCY_CORRECTED = "occupancy_corrected"


class AuditLogger:
    """Centralized audit logging service."""

    @staticmethod
    def log_event(
        event_type: AuditEventType,
        actor_id: str,
        resource_type: str,
        resource_id: UUID | str,
        action: str,
        success: bool = True,
        metadata: Optional[dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Log an auditable event with structured context.

        Args:
            event_type: Type of audit event
            actor_id: Guest id, employee id or ``system`` for scheduled jobs
            resource_type: Type of resource (reservation, room)
            resource_id: ID of the affected resource
            action: Human-readable action description
            success: Whether the action succeeded
            metadata: Additional context (amounts, dates, room ids)
            error: Error message if action failed
        """
        audit_entry = {
            "event_type": event_type.value,
            "actor_id": actor_id,
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            "action": action,
            "success": success,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "metadata": metadata or {},
        }

        if error:
            audit_entry["error"] = error

        logger.info(
            "audit_event",
            **audit_entry,
        )

    @staticmethod
    def log_reservation_created(
        actor_id: str,
        reservation_id: UUID,
        room_id: UUID,
        check_in: str,
        check_out: str,
        amount_cents: int,
    ) -> None:
        """Log a new booking."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_CREATED,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Reservation created",
            metadata={
                "room_id": str(room_id),
                "check_in": check_in,
                "check_out": check_out,
                "amount_cents": amount_cents,
            },
        )

    @staticmethod
    def log_reservation_cancelled(
        actor_id: str,
        reservation_id: UUID,
        refunded: bool,
        hours_until_check_in: int,
        refund_reference: Optional[str] = None,
    ) -> None:
        """Log a cancellation, with or without refund."""
        event_type = (
            AuditEventType.RESERVATION_REFUNDED
            if refunded
            else AuditEventType.RESERVATION_CANCELLED
        )
        AuditLogger.log_event(
            event_type=event_type,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Reservation refunded" if refunded else "Reservation cancelled",
            metadata={
                "hours_until_check_in": hours_until_check_in,
                "refund_reference": refund_reference,
            },
        )

    @staticmethod
    def log_reservation_updated(
        actor_id: str,
        reservation_id: UUID,
        changes: dict[str, Any],
    ) -> None:
        """Log reservation edits."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_UPDATED,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Reservation updated",
            metadata={"changes": changes},
        )

    @staticmethod
    def log_partial_refund(
        actor_id: str,
        reservation_id: UUID,
        amount_cents: int,
        refund_reference: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Log a downgrade refund attempt."""
        succeeded = error is None
        AuditLogger.log_event(
            event_type=(
                AuditEventType.PARTIAL_REFUND_ISSUED
                if succeeded
                else AuditEventType.PARTIAL_REFUND_FAILED
            ),
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action=f"Partial refund of {amount_cents} cents",
            success=succeeded,
            metadata={
                "amount_cents": amount_cents,
                "refund_reference": refund_reference,
            },
            error=error,
        )

    @staticmethod
    def log_upgrade_waived(
        actor_id: str,
        reservation_id: UUID,
        waived_cents: int,
    ) -> None:
        """Log an upgrade an employee chose not to charge for."""
        AuditLogger.log_event(
            event_type=AuditEventType.UPGRADE_CHARGE_WAIVED,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action=f"Waived upgrade charge of {waived_cents} cents",
            metadata={"waived_cents": waived_cents},
        )

    @staticmethod
    def log_payment_replaced(
        actor_id: str,
        reservation_id: UUID,
        old_reference: str,
        new_reference: str,
        amount_cents: int,
    ) -> None:
        """Log a guest upgrade re-pointing the reservation to a new payment."""
        AuditLogger.log_event(
            event_type=AuditEventType.PAYMENT_REPLACED,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Payment transaction replaced",
            metadata={
                "old_reference": old_reference,
                "new_reference": new_reference,
                "amount_cents": amount_cents,
            },
        )

    @staticmethod
    def log_check_in(actor_id: str, reservation_id: UUID, room_id: UUID) -> None:
        """Log a guest check-in."""
        AuditLogger.log_event(
            event_type=AuditEventType.GUEST_CHECKED_IN,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Guest checked in",
            metadata={"room_id": str(room_id)},
        )

    @staticmethod
    def log_check_out(actor_id: str, reservation_id: UUID, room_id: UUID) -> None:
        """Log a guest check-out."""
        AuditLogger.log_event(
            event_type=AuditEventType.GUEST_CHECKED_OUT,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Guest checked out",
            metadata={"room_id": str(room_id)},
        )

    @staticmethod
    def log_stay_completed(reservation_id: UUID, check_out: str) -> None:
        """Log a reservation closed by the completion sweep."""
        AuditLogger.log_event(
            event_type=AuditEventType.STAY_COMPLETED,
            actor_id=SYSTEM_ACTOR,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Stay window elapsed",
            metadata={"check_out": check_out},
        )

    @staticmethod
    def log_occupancy_corrected(room_id: UUID, room_number: str, occupied: bool) -> None:
        """Log an occupancy flag flipped by the reconciliation sweep."""
        AuditLogger.log_event(
            event_type=AuditEventType.OCCUPANCY_CORRECTED,
            actor_id=SYSTEM_ACTOR,
            resource_type="room",
            resource_id=room_id,
            action=f"Room {room_number} marked {'occupied' if occupied else 'vacant'}",
            metadata={"room_number": room_number, "occupied": occupied},
        )
