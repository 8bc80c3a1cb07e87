"""Front-desk operations: guarded edits, check-in/out, search and revenue."""

from datetime import date
from typing import Callable, Optional
from uuid import UUID

from reservation_engine.logging import get_logger
from reservation_engine.logging.audit import AuditLogger
from reservation_engine.models.reservation import (
    Reservation,
    ReservationPage,
    ReservationRequest,
    ReservationSearchCriteria,
    ReservationStatus,
)
from reservation_engine.models.revenue import RevenueReport
from reservation_engine.services.clock import Clock
from reservation_engine.services.errors import (
    CheckInTooEarlyError,
    CheckInTooLateError,
    GuestNotFoundError,
    InvalidStateError,
    RoomNotFoundError,
    RoomOccupiedError,
)
from reservation_engine.services.leases import room_leases
from reservation_engine.services.reservation_service import ReservationService
from reservation_engine.services.revenue import RevenueAggregator
from reservation_engine.storage.redis_locks import RedisLockHelper
from reservation_engine.storage.unit_of_work import SqlAlchemyUnitOfWork

logger = get_logger(__name__)

EMPLOYEE_EDITABLE_STATUSES = frozenset({ReservationStatus.CONFIRMED})
EMPLOYEE_CANCEL_BLOCKED_STATUSES = frozenset({ReservationStatus.CHECKED_IN})


class EmployeeReservationService:
    """Employee-side wrapper around the reservation state machine."""

    def __init__(
        self,
        reservations: ReservationService,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork],
        locks: RedisLockHelper,
        clock: Clock,
        revenue_aggregator: Optional[RevenueAggregator] = None,
    ):
        """
        Initialize employee reservation service.

        Args:
            reservations: Guest-facing reservation service to delegate edits to
            uow_factory: Creates a fresh unit of work per operation
            locks: Per-room lease helper
            clock: Hotel clock for the check-in window
            revenue_aggregator: Revenue aggregation strategy
        """
        self.reservations = reservations
        self.uow_factory = uow_factory
        self.locks = locks
        self.clock = clock
        self.revenue_aggregator = revenue_aggregator or RevenueAggregator()

    async def update_reservation(
        self, employee_id: str, reservation_id: UUID, request: ReservationRequest
    ) -> Reservation:
        """Edit a CONFIRMED reservation. Upgrade charges are waived."""
        return await self.reservations.update_reservation(
            reservation_id,
            request,
            employee_override=True,
            editable_statuses=EMPLOYEE_EDITABLE_STATUSES,
            actor_id=employee_id,
        )

    async def cancel_reservation(self, employee_id: str, reservation_id: UUID) -> Reservation:
        """Cancel on behalf of a guest. A guest in the room must be checked out instead."""
        return await self.reservations.cancel_reservation(
            reservation_id,
            actor_id=employee_id,
            blocked_statuses=EMPLOYEE_CANCEL_BLOCKED_STATUSES,
        )

    async def check_in(self, employee_id: str, reservation_id: UUID) -> Reservation:
        """Check a guest in and mark the room occupied.

        Raises:
            ReservationNotFoundError: Unknown reservation
            InvalidStateError: Reservation is not CONFIRMED
            CheckInTooEarlyError: Today is before the check-in date
            CheckInTooLateError: Today is on or after the check-out date
            RoomOccupiedError: Another guest is physically in the room
        """
        room_id = await self.reservations.current_room_id(reservation_id)

        async with room_leases(self.locks, room_id):
            async with self.uow_factory() as uow:
                reservation = await self.reservations.load_for_update(
                    uow, reservation_id, room_id
                )

                if reservation.status != ReservationStatus.CONFIRMED:
                    raise InvalidStateError(
                        f"Only confirmed reservations can be checked in "
                        f"(status: {reservation.status.value})"
                    )

                today = self.clock.today()
                if today < reservation.check_in:
                    raise CheckInTooEarlyError(
                        f"Check-in opens on {reservation.check_in.isoformat()}"
                    )
                if today >= reservation.check_out:
                    raise CheckInTooLateError(
                        f"Stay ended on {reservation.check_out.isoformat()}"
                    )

                room = await uow.rooms.get_by_id(room_id, for_update=True)
                if room is None:
                    raise RoomNotFoundError(f"Room not found: {room_id}")
                if room.occupied:
                    raise RoomOccupiedError(
                        f"Room {room.room_number} is already occupied"
                    )

                await uow.rooms.set_occupied(room_id, True)
                now = self.clock.now()
                reservation.status = ReservationStatus.CHECKED_IN
                reservation.checked_in_at = now
                reservation.updated_at = now
                reservation = await uow.reservations.update(reservation)

        logger.info(
            "guest_checked_in",
            reservation_id=str(reservation_id),
            room_id=str(room_id),
            employee_id=employee_id,
        )
        AuditLogger.log_check_in(employee_id, reservation_id, room_id)
        return reservation

    async def check_out(self, employee_id: str, reservation_id: UUID) -> Reservation:
        """Check a guest out, free the room and complete the stay.

        Early and late check-outs are both allowed.
        """
        room_id = await self.reservations.current_room_id(reservation_id)

        async with room_leases(self.locks, room_id):
            async with self.uow_factory() as uow:
                reservation = await self.reservations.load_for_update(
                    uow, reservation_id, room_id
                )

                if reservation.status != ReservationStatus.CHECKED_IN:
                    raise InvalidStateError(
                        f"Only checked-in reservations can be checked out "
                        f"(status: {reservation.status.value})"
                    )

                if await uow.rooms.get_by_id(room_id, for_update=True) is None:
                    raise RoomNotFoundError(f"Room not found: {room_id}")

                await uow.rooms.set_occupied(room_id, False)
                now = self.clock.now()
                reservation.status = ReservationStatus.COMPLETED
                reservation.checked_out_at = now
                reservation.updated_at = now
                reservation = await uow.reservations.update(reservation)

        logger.info(
            "guest_checked_out",
            reservation_id=str(reservation_id),
            room_id=str(room_id),
            employee_id=employee_id,
        )
        AuditLogger.log_check_out(employee_id, reservation_id, room_id)
        return reservation

    async def search(
        self,
        reservation_id: Optional[UUID] = None,
        guest_email: Optional[str] = None,
        room_type_id: Optional[UUID] = None,
        status: Optional[ReservationStatus] = None,
        currently_checked_in: Optional[bool] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ReservationPage:
        """Filtered, paged reservation search for the front desk."""
        async with self.uow_factory() as uow:
            guest_id = None
            if guest_email:
                guest = await uow.guests.get_by_email(guest_email)
                if guest is None:
                    raise GuestNotFoundError(f"Guest not found: {guest_email}")
                guest_id = guest.id

            room_ids = None
            if room_type_id is not None:
                room_ids = [room.id for room in await uow.rooms.list_by_room_type(room_type_id)]

            criteria = ReservationSearchCriteria(
                reservation_id=reservation_id,
                guest_id=guest_id,
                room_ids=room_ids,
                status=status,
                currently_checked_in=currently_checked_in,
                date_from=date_from,
                date_to=date_to,
                limit=limit,
                offset=offset,
            )
            items, total = await uow.reservations.search(criteria)

        return ReservationPage(items=items, total=total, limit=limit, offset=offset)

    async def revenue(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> RevenueReport:
        """Net revenue by paid month within ``[date_from, date_to)``."""
        async with self.uow_factory() as uow:
            reservations = await uow.reservations.list_all()
        return self.revenue_aggregator.aggregate(reservations, date_from, date_to)
