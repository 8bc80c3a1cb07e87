"""Reservation lifecycle service: create, cancel and update.

Every mutating call follows the same shape: take the room leases, run the
reads and writes in one unit of work, commit, and only then notify the
guest. Anything raised inside the unit of work rolls back both the room
calendar and the reservation row.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from reservation_engine.logging import get_logger
from reservation_engine.logging.audit import AuditLogger
from reservation_engine.models.reservation import (
    PaymentStatus,
    PaymentTransaction,
    Reservation,
    ReservationRequest,
    ReservationStatus,
    TransactionStatus,
)
from reservation_engine.services.clock import Clock, start_of_day
from reservation_engine.services.errors import (
    ConflictError,
    GuestNotFoundError,
    InvalidStateError,
    PaymentGatewayError,
    PaymentRequiredError,
    ReservationNotFoundError,
    RoomNotFoundError,
    RoomTypeNotFoundError,
    RoomUnavailableError,
)
from reservation_engine.services.leases import room_leases
from reservation_engine.services.notifications import (
    NotificationKind,
    NotificationSender,
    notify_best_effort,
)
from reservation_engine.services.payment_gateway import PaymentGateway
from reservation_engine.services.pricing import price_difference_cents, price_stay, to_cents
from reservation_engine.services.room_calendar import RoomCalendar
from reservation_engine.storage.redis_locks import RedisLockHelper
from reservation_engine.storage.unit_of_work import SqlAlchemyUnitOfWork

logger = get_logger(__name__)

FULL_REFUND_WINDOW_HOURS = 72

# Statuses a guest may still edit; terminal reservations own no interval.
# CHECKED_IN stays may only change the guest count.
GUEST_EDITABLE_STATUSES = frozenset(
    {ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN}
)


class ReservationService:
    """Guest-facing reservation state machine."""

    def __init__(
        self,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork],
        locks: RedisLockHelper,
        gateway: PaymentGateway,
        notifier: NotificationSender,
        clock: Clock,
        currency: str = "usd",
        full_refund_window_hours: int = FULL_REFUND_WINDOW_HOURS,
    ):
        """
        Initialize reservation service.

        Args:
            uow_factory: Creates a fresh unit of work per operation
            locks: Per-room lease helper
            gateway: Payment gateway for refunds
            notifier: Best-effort guest notification channel
            clock: Hotel clock
            currency: Currency recorded on payment transactions
            full_refund_window_hours: Minimum notice for a full refund
        """
        self.uow_factory = uow_factory
        self.locks = locks
        self.gateway = gateway
        self.notifier = notifier
        self.clock = clock
        self.currency = currency
        self.full_refund_window_hours = full_refund_window_hours

    async def create_reservation(
        self, guest_email: str, request: ReservationRequest
    ) -> Reservation:
        """Book a room for an authenticated guest.

        The payment was captured upstream; ``request.payment_reference``
        is recorded on the reservation so it can be refunded later.

        Raises:
            RoomNotFoundError, GuestNotFoundError, RoomTypeNotFoundError,
            RoomUnavailableError, RoomBusyError
        """
        async with room_leases(self.locks, request.room_id):
            async with self.uow_factory() as uow:
                room = await uow.rooms.get_by_id(request.room_id, for_update=True)
                if room is None:
                    raise RoomNotFoundError(f"Room not found: {request.room_id}")

                guest = await uow.guests.get_by_email(guest_email)
                if guest is None:
                    raise GuestNotFoundError(f"Guest not found: {guest_email}")

                room_type = await uow.rooms.get_room_type(room.room_type_id)
                if room_type is None:
                    raise RoomTypeNotFoundError(f"Room type not found: {room.room_type_id}")

                calendar = RoomCalendar(uow.rooms)
                if not await calendar.is_available(room.id, request.check_in, request.check_out):
                    raise RoomUnavailableError(
                        f"Room {room.room_number} is not available from "
                        f"{request.check_in} to {request.check_out}"
                    )

                now = self.clock.now()
                total_price = price_stay(
                    room_type.price_per_night, request.check_in, request.check_out
                )
                transaction = None
                if request.payment_reference:
                    transaction = self._new_transaction(
                        request.payment_reference, total_price, now
                    )

                reservation = Reservation(
                    guest_id=guest.id,
                    room_id=room.id,
                    check_in=request.check_in,
                    check_out=request.check_out,
                    guest_count=request.guest_count,
                    total_price=total_price,
                    status=ReservationStatus.CONFIRMED,
                    payment_status=PaymentStatus.PAID,
                    transaction=transaction,
                    created_at=now,
                    updated_at=now,
                )
                reservation = await uow.reservations.create(reservation)
                await calendar.book(
                    room.id, request.check_in, request.check_out, reservation.id
                )

        logger.info(
            "reservation_created",
            reservation_id=str(reservation.id),
            room_id=str(reservation.room_id),
            guest_id=str(guest.id),
            total_price=str(total_price),
        )
        AuditLogger.log_reservation_created(
            actor_id=str(guest.id),
            reservation_id=reservation.id,
            room_id=reservation.room_id,
            check_in=reservation.check_in.isoformat(),
            check_out=reservation.check_out.isoformat(),
            amount_cents=to_cents(total_price),
        )
        await notify_best_effort(
            self.notifier, NotificationKind.RESERVATION_CONFIRMED, guest.email, reservation
        )
        return reservation

    async def get_reservation(self, reservation_id: UUID) -> Reservation:
        """Fetch one reservation."""
        async with self.uow_factory() as uow:
            reservation = await uow.reservations.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(f"Reservation not found: {reservation_id}")
        return reservation

    async def get_reservations_by_guest(self, guest_email: str) -> list[Reservation]:
        """All reservations of a guest, newest first."""
        async with self.uow_factory() as uow:
            guest = await uow.guests.get_by_email(guest_email)
            if guest is None:
                raise GuestNotFoundError(f"Guest not found: {guest_email}")
            return await uow.reservations.list_by_guest(guest.id)

    async def cancel_reservation(
        self,
        reservation_id: UUID,
        actor_id: Optional[str] = None,
        blocked_statuses: frozenset[ReservationStatus] = frozenset(),
    ) -> Reservation:
        """Cancel a CONFIRMED reservation, refunding it with enough notice.

        At least ``full_refund_window_hours`` before the check-in day
        starts, the payment is refunded in full and the reservation ends
        REFUNDED; later it ends CANCELLED and the money is kept. Either way
        the booked interval is released. Any status other than CONFIRMED is
        left untouched, unless listed in ``blocked_statuses``, which raises.

        Raises:
            ReservationNotFoundError, InvalidStateError, PaymentGatewayError
        """
        room_id = await self.current_room_id(reservation_id)

        async with room_leases(self.locks, room_id):
            async with self.uow_factory() as uow:
                reservation = await self.load_for_update(uow, reservation_id, room_id)

                if reservation.status in blocked_statuses:
                    raise InvalidStateError(
                        f"Cannot cancel a reservation in status: {reservation.status.value}"
                    )

                if reservation.status != ReservationStatus.CONFIRMED:
                    logger.info(
                        "reservation_cancel_noop",
                        reservation_id=str(reservation_id),
                        status=reservation.status.value,
                    )
                    return reservation

                now = self.clock.now()
                hours_until_check_in = self._hours_until_check_in(reservation, now)
                refund_reference = None

                if hours_until_check_in >= self.full_refund_window_hours:
                    reference = reservation.payment_reference
                    if reference:
                        # Failure here aborts the whole cancellation.
                        refund_reference = await self.gateway.refund(reference)
                        self._mark_refunded(reservation.transaction, refund_reference, now)
                    else:
                        logger.warning(
                            "reservation_refund_skipped_no_payment",
                            reservation_id=str(reservation_id),
                        )
                    reservation.status = ReservationStatus.REFUNDED
                    reservation.payment_status = PaymentStatus.REFUNDED
                else:
                    reservation.status = ReservationStatus.CANCELLED

                await RoomCalendar(uow.rooms).release(
                    reservation.room_id,
                    reservation.check_in,
                    reservation.check_out,
                    reservation_id=reservation.id,
                )
                reservation.updated_at = now
                reservation = await uow.reservations.update(reservation)
                guest = await uow.guests.get_by_id(reservation.guest_id)

        refunded = reservation.status == ReservationStatus.REFUNDED
        logger.info(
            "reservation_cancelled",
            reservation_id=str(reservation_id),
            status=reservation.status.value,
            hours_until_check_in=hours_until_check_in,
        )
        AuditLogger.log_reservation_cancelled(
            actor_id=actor_id or str(reservation.guest_id),
            reservation_id=reservation.id,
            refunded=refunded,
            hours_until_check_in=hours_until_check_in,
            refund_reference=refund_reference,
        )
        await notify_best_effort(
            self.notifier,
            NotificationKind.RESERVATION_CANCELLED,
            guest.email if guest else None,
            reservation,
        )
        return reservation

    async def update_reservation(
        self,
        reservation_id: UUID,
        request: ReservationRequest,
        employee_override: bool = False,
        editable_statuses: frozenset[ReservationStatus] = GUEST_EDITABLE_STATUSES,
        actor_id: Optional[str] = None,
    ) -> Reservation:
        """Change dates, room or guest count and settle the price difference.

        A cheaper stay is partially refunded; a refund failure there is
        logged and the edit still commits. A dearer stay is waived when
        ``employee_override`` is set, otherwise it needs a new payment
        reference, after which the old payment is refunded in full and
        replaced.

        Raises:
            ReservationNotFoundError, RoomNotFoundError, InvalidStateError,
            RoomUnavailableError, PaymentRequiredError, PaymentGatewayError
        """
        held_room_id = await self.current_room_id(reservation_id)

        async with room_leases(self.locks, held_room_id, request.room_id):
            async with self.uow_factory() as uow:
                reservation = await self.load_for_update(uow, reservation_id, held_room_id)

                if reservation.status not in editable_statuses:
                    if reservation.status == ReservationStatus.CHECKED_IN:
                        raise InvalidStateError(
                            "Cannot edit a reservation that is currently checked in."
                        )
                    raise InvalidStateError(
                        f"Cannot edit a reservation in status: {reservation.status.value}"
                    )

                old_total = reservation.total_price
                old_reference = reservation.payment_reference
                old_room_id = reservation.room_id
                old_check_in = reservation.check_in
                old_check_out = reservation.check_out

                dates_changed = (
                    reservation.check_in != request.check_in
                    or reservation.check_out != request.check_out
                )
                room_changed = reservation.room_id != request.room_id
                # The occupancy flag follows the in-house room and dates.
                if reservation.status == ReservationStatus.CHECKED_IN and (
                    dates_changed or room_changed
                ):
                    raise InvalidStateError(
                        "A checked-in stay can only change its guest count."
                    )
                changes: dict[str, str] = {}

                if dates_changed or room_changed:
                    calendar = RoomCalendar(uow.rooms)

                    target_room = await uow.rooms.get_by_id(request.room_id, for_update=True)
                    if target_room is None:
                        raise RoomNotFoundError(f"Room not found: {request.room_id}")

                    # Free the old slot first so a same-room date shift can reuse it.
                    await calendar.release(
                        old_room_id, old_check_in, old_check_out, reservation_id=reservation.id
                    )

                    if not await calendar.is_available(
                        target_room.id, request.check_in, request.check_out
                    ):
                        raise RoomUnavailableError(
                            f"Room {target_room.room_number} is not available from "
                            f"{request.check_in} to {request.check_out}"
                        )

                    await calendar.book(
                        target_room.id, request.check_in, request.check_out, reservation.id
                    )

                    room_type = await uow.rooms.get_room_type(target_room.room_type_id)
                    if room_type is None:
                        raise RoomTypeNotFoundError(
                            f"Room type not found: {target_room.room_type_id}"
                        )

                    reservation.room_id = target_room.id
                    reservation.check_in = request.check_in
                    reservation.check_out = request.check_out
                    reservation.total_price = price_stay(
                        room_type.price_per_night, request.check_in, request.check_out
                    )

                    if room_changed:
                        changes["room_id"] = f"{old_room_id} -> {target_room.id}"
                    if dates_changed:
                        changes["dates"] = (
                            f"{old_check_in}/{old_check_out} -> "
                            f"{request.check_in}/{request.check_out}"
                        )

                if reservation.guest_count != request.guest_count:
                    changes["guest_count"] = f"{reservation.guest_count} -> {request.guest_count}"
                reservation.guest_count = request.guest_count

                now = self.clock.now()
                diff_cents = price_difference_cents(old_total, reservation.total_price)
                actor = actor_id or str(reservation.guest_id)

                if diff_cents < 0:
                    await self._refund_downgrade(reservation, old_reference, -diff_cents, now, actor)
                elif diff_cents > 0 and employee_override:
                    logger.info(
                        "upgrade_charge_waived",
                        reservation_id=str(reservation.id),
                        waived_cents=diff_cents,
                    )
                    AuditLogger.log_upgrade_waived(actor, reservation.id, diff_cents)
                elif diff_cents > 0:
                    await self._replace_payment(
                        reservation, old_reference, request.payment_reference, now, actor
                    )

                if diff_cents:
                    changes["total_price"] = f"{old_total} -> {reservation.total_price}"

                reservation.updated_at = now
                reservation = await uow.reservations.update(reservation)
                guest = await uow.guests.get_by_id(reservation.guest_id)

        logger.info(
            "reservation_edited",
            reservation_id=str(reservation_id),
            price_diff_cents=diff_cents,
            employee_override=employee_override,
        )
        AuditLogger.log_reservation_updated(actor, reservation.id, changes)
        await notify_best_effort(
            self.notifier,
            NotificationKind.RESERVATION_UPDATED,
            guest.email if guest else None,
            reservation,
        )
        return reservation

    async def _refund_downgrade(
        self,
        reservation: Reservation,
        reference: Optional[str],
        amount_cents: int,
        now: datetime,
        actor: str,
    ) -> None:
        """Return the difference of a cheaper stay. Failures are logged, not raised."""
        if not reference:
            logger.warning(
                "downgrade_refund_skipped_no_payment",
                reservation_id=str(reservation.id),
                amount_cents=amount_cents,
            )
            return

        try:
            refund_reference = await self.gateway.refund(reference, amount_cents)
        except PaymentGatewayError as e:
            logger.error(
                "downgrade_refund_failed",
                reservation_id=str(reservation.id),
                amount_cents=amount_cents,
                error=str(e),
                exc_info=True,
            )
            AuditLogger.log_partial_refund(
                actor, reservation.id, amount_cents, error=str(e)
            )
            return

        transaction = reservation.transaction
        if transaction is not None:
            transaction.refunded_cents += amount_cents
            transaction.refund_reference = refund_reference
            transaction.refunded_at = now
            transaction.status = (
                TransactionStatus.REFUNDED
                if transaction.refunded_cents >= transaction.amount_cents
                else TransactionStatus.PARTIALLY_REFUNDED
            )
        AuditLogger.log_partial_refund(
            actor, reservation.id, amount_cents, refund_reference=refund_reference
        )

    async def _replace_payment(
        self,
        reservation: Reservation,
        old_reference: Optional[str],
        new_reference: Optional[str],
        now: datetime,
        actor: str,
    ) -> None:
        """Swap the reservation onto a fresh payment covering the new total."""
        if not new_reference or new_reference == old_reference:
            raise PaymentRequiredError(
                "The new total is higher; authorize a new payment and retry."
            )

        old_transaction = reservation.transaction
        if old_reference:
            refund_reference = await self.gateway.refund(old_reference)
            self._mark_refunded(old_transaction, refund_reference, now)
        if old_transaction is not None:
            reservation.superseded_transactions.append(old_transaction)

        reservation.transaction = self._new_transaction(
            new_reference, reservation.total_price, now
        )
        reservation.payment_status = PaymentStatus.PAID
        AuditLogger.log_payment_replaced(
            actor,
            reservation.id,
            old_reference or "",
            new_reference,
            reservation.transaction.amount_cents,
        )

    def _new_transaction(
        self, reference: str, total_price: Decimal, now: datetime
    ) -> PaymentTransaction:
        return PaymentTransaction(
            provider=self.gateway.provider,
            reference=reference,
            amount_cents=to_cents(total_price),
            currency=self.currency,
            status=TransactionStatus.SUCCEEDED,
            paid_at=now,
        )

    @staticmethod
    def _mark_refunded(
        transaction: Optional[PaymentTransaction], refund_reference: str, now: datetime
    ) -> None:
        if transaction is None:
            return
        transaction.status = TransactionStatus.REFUNDED
        transaction.refund_reference = refund_reference
        transaction.refunded_cents = transaction.amount_cents
        transaction.refunded_at = now

    def _hours_until_check_in(self, reservation: Reservation, now: datetime) -> int:
        """Whole hours from ``now`` to the start of the check-in day, truncated toward zero."""
        delta = start_of_day(reservation.check_in, self.clock.tz) - now
        return int(delta.total_seconds() / 3600)

    async def current_room_id(self, reservation_id: UUID) -> UUID:
        """Room the reservation holds right now, read before taking leases."""
        async with self.uow_factory() as uow:
            reservation = await uow.reservations.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(f"Reservation not found: {reservation_id}")
        return reservation.room_id

    async def load_for_update(
        self, uow: SqlAlchemyUnitOfWork, reservation_id: UUID, expected_room_id: UUID
    ) -> Reservation:
        """Re-read under the lease and make sure the room did not move meanwhile."""
        reservation = await uow.reservations.get_by_id(reservation_id, for_update=True)
        if reservation is None:
            raise ReservationNotFoundError(f"Reservation not found: {reservation_id}")
        if reservation.room_id != expected_room_id:
            raise ConflictError(
                "Reservation was modified by another request. Please try again."
            )
        return reservation
