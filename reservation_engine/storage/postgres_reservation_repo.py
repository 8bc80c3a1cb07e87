"""PostgreSQL repository for Reservation entities."""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.logging import get_logger
from reservation_engine.models.reservation import (
    PaymentTransaction,
    Reservation,
    ReservationSearchCriteria,
    ReservationStatus,
)
from reservation_engine.storage.db_models import ReservationTable
from reservation_engine.storage.repository_base import RepositoryBase

logger = get_logger(__name__)


class PostgresReservationRepository(RepositoryBase[Reservation]):
    """Reservation repository using PostgreSQL."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, id: UUID, for_update: bool = False) -> Optional[Reservation]:
        """Retrieve reservation by ID."""
        db_reservation = await self._get_row(id, for_update=for_update)
        if not db_reservation:
            return None
        return self._to_domain_model(db_reservation)

    async def create(self, entity: Reservation) -> Reservation:
        """Create new reservation."""
        db_reservation = ReservationTable(id=entity.id, created_at=entity.created_at)
        self._apply(db_reservation, entity)

        self.session.add(db_reservation)
        await self.session.flush()

        logger.info(
            "reservation_persisted",
            reservation_id=str(db_reservation.id),
            room_id=str(entity.room_id),
            guest_id=str(entity.guest_id),
            total_price=str(entity.total_price),
        )

        return self._to_domain_model(db_reservation)

    async def update(self, entity: Reservation) -> Reservation:
        """Update existing reservation."""
        db_reservation = await self._get_row(entity.id)
        if not db_reservation:
            raise ValueError(f"Reservation not found: {entity.id}")

        self._apply(db_reservation, entity)
        await self.session.flush()

        logger.debug(
            "reservation_updated",
            reservation_id=str(entity.id),
            status=entity.status.value,
        )

        return self._to_domain_model(db_reservation)

    async def list_by_guest(self, guest_id: UUID) -> list[Reservation]:
        """Reservations for a guest, newest first."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.guest_id == guest_id)
            .order_by(ReservationTable.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_res) for db_res in result.scalars().all()]

    async def list_all(self) -> list[Reservation]:
        """Every reservation, including terminal ones."""
        stmt = select(ReservationTable).order_by(ReservationTable.created_at)
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_res) for db_res in result.scalars().all()]

    async def list_confirmed_ending_before(self, day: date) -> list[Reservation]:
        """CONFIRMED reservations whose check-out is strictly before ``day``."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.status == ReservationStatus.CONFIRMED)
            .where(ReservationTable.check_out < day)
            .order_by(ReservationTable.check_out)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_res) for db_res in result.scalars().all()]

    async def list_checked_in_covering(self, day: date) -> list[Reservation]:
        """CHECKED_IN reservations with ``check_in <= day < check_out``."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.status == ReservationStatus.CHECKED_IN)
            .where(ReservationTable.check_in <= day)
            .where(ReservationTable.check_out > day)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_res) for db_res in result.scalars().all()]

    async def search(
        self, criteria: ReservationSearchCriteria
    ) -> tuple[list[Reservation], int]:
        """Filtered, paged reservation search. Returns (items, total)."""
        if criteria.room_ids is not None and not criteria.room_ids:
            return [], 0

        conditions = []
        if criteria.reservation_id is not None:
            conditions.append(ReservationTable.id == criteria.reservation_id)
        if criteria.guest_id is not None:
            conditions.append(ReservationTable.guest_id == criteria.guest_id)
        if criteria.room_ids is not None:
            conditions.append(ReservationTable.room_id.in_(criteria.room_ids))
        if criteria.status is not None:
            conditions.append(ReservationTable.status == criteria.status)
        if criteria.currently_checked_in is True:
            conditions.append(ReservationTable.status == ReservationStatus.CHECKED_IN)
        elif criteria.currently_checked_in is False:
            conditions.append(ReservationTable.status != ReservationStatus.CHECKED_IN)
        # Overlap with [date_from, date_to)
        if criteria.date_to is not None:
            conditions.append(ReservationTable.check_in < criteria.date_to)
        if criteria.date_from is not None:
            conditions.append(ReservationTable.check_out > criteria.date_from)

        count_stmt = select(func.count()).select_from(ReservationTable).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(ReservationTable)
            .where(*conditions)
            .order_by(ReservationTable.check_in.desc(), ReservationTable.id)
            .limit(criteria.limit)
            .offset(criteria.offset)
        )
        result = await self.session.execute(stmt)
        items = [self._to_domain_model(db_res) for db_res in result.scalars().all()]
        return items, total

    async def _get_row(
        self, reservation_id: UUID, for_update: bool = False
    ) -> Optional[ReservationTable]:
        stmt = select(ReservationTable).where(ReservationTable.id == reservation_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _apply(self, db_reservation: ReservationTable, entity: Reservation) -> None:
        """Copy mutable fields from the domain model onto the row."""
        db_reservation.guest_id = entity.guest_id
        db_reservation.room_id = entity.room_id
        db_reservation.check_in = entity.check_in
        db_reservation.check_out = entity.check_out
        db_reservation.guest_count = entity.guest_count
        db_reservation.total_price = entity.total_price
        db_reservation.status = entity.status
        db_reservation.payment_status = entity.payment_status
        db_reservation.payment_transaction = (
            entity.transaction.model_dump(mode="json") if entity.transaction else None
        )
        db_reservation.superseded_transactions = [
            txn.model_dump(mode="json") for txn in entity.superseded_transactions
        ]
        db_reservation.checked_in_at = entity.checked_in_at
        db_reservation.checked_out_at = entity.checked_out_at
        db_reservation.updated_at = entity.updated_at

    def _to_domain_model(self, db_reservation: ReservationTable) -> Reservation:
        """Convert database model to domain model."""
        transaction = None
        if db_reservation.payment_transaction:
            transaction = PaymentTransaction.model_validate(db_reservation.payment_transaction)

        return Reservation(
            id=db_reservation.id,
            guest_id=db_reservation.guest_id,
            room_id=db_reservation.room_id,
            check_in=db_reservation.check_in,
            check_out=db_reservation.check_out,
            guest_count=db_reservation.guest_count,
            total_price=db_reservation.total_price,
            status=db_reservation.status,
            payment_status=db_reservation.payment_status,
            transaction=transaction,
            superseded_transactions=[
                PaymentTransaction.model_validate(txn)
                for txn in (db_reservation.superseded_transactions or [])
            ],
            checked_in_at=db_reservation.checked_in_at,
            checked_out_at=db_reservation.checked_out_at,
            created_at=db_reservation.created_at,
            updated_at=db_reservation.updated_at,
        )
