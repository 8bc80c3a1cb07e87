"""PostgreSQL repository for Room and RoomType entities."""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.logging import get_logger
from reservation_engine.models.room import BookedInterval, Room, RoomType
from reservation_engine.storage.db_models import RoomBookingTable, RoomTable, RoomTypeTable
from reservation_engine.storage.repository_base import RepositoryBase

logger = get_logger(__name__)


class PostgresRoomRepository(RepositoryBase[Room]):
    """Room repository using PostgreSQL.

    Booked intervals are always mutated through the owning room's
    ``bookings`` collection so that a room re-read in the same session
    sees its current calendar.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, id: UUID, for_update: bool = False) -> Optional[Room]:
        """Retrieve room with its booked intervals."""
        db_room = await self._get_row(id, for_update=for_update)
        if not db_room:
            return None
        return self._to_domain_model(db_room)

    async def create(self, entity: Room) -> Room:
        """Create new room (room administration and seeding)."""
        db_room = RoomTable(
            id=entity.id,
            room_number=entity.room_number,
            room_type_id=entity.room_type_id,
            accessible=entity.accessible,
            pet_friendly=entity.pet_friendly,
            non_smoking=entity.non_smoking,
            occupied=entity.occupied,
        )
        db_room.bookings = [self._to_row(interval) for interval in entity.booked_intervals]
        self.session.add(db_room)
        await self.session.flush()

        logger.info("room_created", room_id=str(db_room.id), room_number=entity.room_number)

        return self._to_domain_model(db_room)

    async def update(self, entity: Room) -> Room:
        """Update room attributes and occupancy flag. Bookings are left untouched."""
        db_room = await self._get_row(entity.id)
        if not db_room:
            raise ValueError(f"Room not found: {entity.id}")

        db_room.room_number = entity.room_number
        db_room.room_type_id = entity.room_type_id
        db_room.accessible = entity.accessible
        db_room.pet_friendly = entity.pet_friendly
        db_room.non_smoking = entity.non_smoking
        db_room.occupied = entity.occupied

        await self.session.flush()
        return self._to_domain_model(db_room)

    async def list_all(self) -> list[Room]:
        """All rooms ordered by room number."""
        stmt = select(RoomTable).order_by(RoomTable.room_number)
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_room) for db_room in result.scalars().all()]

    async def list_available(self, check_in: date, check_out: date) -> list[Room]:
        """Rooms with no booked interval overlapping ``[check_in, check_out)``."""
        overlapping = exists().where(
            and_(
                RoomBookingTable.room_id == RoomTable.id,
                RoomBookingTable.start_date < check_out,
                RoomBookingTable.end_date > check_in,
            )
        )
        stmt = select(RoomTable).where(~overlapping).order_by(RoomTable.room_number)
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_room) for db_room in result.scalars().all()]

    async def list_by_room_type(self, room_type_id: UUID) -> list[Room]:
        """Rooms of one room type."""
        stmt = select(RoomTable).where(RoomTable.room_type_id == room_type_id)
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_room) for db_room in result.scalars().all()]

    async def list_occupied(self) -> list[Room]:
        """Rooms currently flagged occupied."""
        stmt = select(RoomTable).where(RoomTable.occupied.is_(True))
        result = await self.session.execute(stmt)
        return [self._to_domain_model(db_room) for db_room in result.scalars().all()]

    async def set_occupied(self, room_id: UUID, occupied: bool) -> None:
        """Set the physical occupancy flag."""
        db_room = await self._get_row(room_id)
        if not db_room:
            raise ValueError(f"Room not found: {room_id}")
        db_room.occupied = occupied
        await self.session.flush()

    async def add_booking(self, interval: BookedInterval) -> BookedInterval:
        """Append a booked interval to the room's calendar."""
        db_room = await self._get_row(interval.room_id)
        if not db_room:
            raise ValueError(f"Room not found: {interval.room_id}")

        db_room.bookings.append(self._to_row(interval))
        await self.session.flush()
        return interval

    async def remove_booking(self, room_id: UUID, booking_id: UUID) -> bool:
        """Remove one booked interval by id."""
        db_room = await self._get_row(room_id)
        if not db_room:
            return False

        for db_booking in list(db_room.bookings):
            if db_booking.id == booking_id:
                db_room.bookings.remove(db_booking)
                await self.session.flush()
                return True
        return False

    async def get_room_type(self, room_type_id: UUID) -> Optional[RoomType]:
        """Retrieve room type by ID."""
        stmt = select(RoomTypeTable).where(RoomTypeTable.id == room_type_id)
        result = await self.session.execute(stmt)
        db_type = result.scalar_one_or_none()
        if not db_type:
            return None
        return self._to_room_type(db_type)

    async def get_room_types(self, ids: list[UUID]) -> list[RoomType]:
        """Retrieve several room types at once."""
        if not ids:
            return []
        stmt = select(RoomTypeTable).where(RoomTypeTable.id.in_(ids))
        result = await self.session.execute(stmt)
        return [self._to_room_type(db_type) for db_type in result.scalars().all()]

    async def create_room_type(self, room_type: RoomType) -> RoomType:
        """Create new room type (room administration and seeding)."""
        db_type = RoomTypeTable(
            id=room_type.id,
            name=room_type.name,
            price_per_night=room_type.price_per_night,
            capacity=room_type.capacity,
            num_beds=room_type.num_beds,
            num_bedrooms=room_type.num_bedrooms,
            square_feet=room_type.square_feet,
            has_jacuzzi=room_type.has_jacuzzi,
            has_kitchen=room_type.has_kitchen,
        )
        self.session.add(db_type)
        await self.session.flush()
        return self._to_room_type(db_type)

    async def _get_row(self, room_id: UUID, for_update: bool = False) -> Optional[RoomTable]:
        stmt = select(RoomTable).where(RoomTable.id == room_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_row(self, interval: BookedInterval) -> RoomBookingTable:
        return RoomBookingTable(
            id=interval.id,
            room_id=interval.room_id,
            reservation_id=interval.reservation_id,
            start_date=interval.start,
            end_date=interval.end,
        )

    def _to_domain_model(self, db_room: RoomTable) -> Room:
        """Convert database model to domain model."""
        return Room(
            id=db_room.id,
            room_number=db_room.room_number,
            room_type_id=db_room.room_type_id,
            accessible=db_room.accessible,
            pet_friendly=db_room.pet_friendly,
            non_smoking=db_room.non_smoking,
            occupied=db_room.occupied,
            booked_intervals=[
                BookedInterval(
                    id=db_booking.id,
                    room_id=db_room.id,
                    reservation_id=db_booking.reservation_id,
                    start=db_booking.start_date,
                    end=db_booking.end_date,
                )
                for db_booking in db_room.bookings
            ],
        )

    def _to_room_type(self, db_type: RoomTypeTable) -> RoomType:
        return RoomType(
            id=db_type.id,
            name=db_type.name,
            price_per_night=db_type.price_per_night,
            capacity=db_type.capacity,
            num_beds=db_type.num_beds,
            num_bedrooms=db_type.num_bedrooms,
            square_feet=db_type.square_feet,
            has_jacuzzi=db_type.has_jacuzzi,
            has_kitchen=db_type.has_kitchen,
        )
