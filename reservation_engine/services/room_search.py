"""Room availability search grouped by room type."""

from typing import Callable

from reservation_engine.logging import get_logger
from reservation_engine.models.room import (
    Room,
    RoomSearchCriteria,
    RoomType,
    RoomTypeAvailability,
)
from reservation_engine.storage.unit_of_work import SqlAlchemyUnitOfWork

logger = get_logger(__name__)


def _room_matches(room: Room, criteria: RoomSearchCriteria) -> bool:
    if criteria.accessible is not None and room.accessible != criteria.accessible:
        return False
    if criteria.pet_friendly is not None and room.pet_friendly != criteria.pet_friendly:
        return False
    if criteria.non_smoking is not None and room.non_smoking != criteria.non_smoking:
        return False
    return True


def _room_type_matches(room_type: RoomType, criteria: RoomSearchCriteria) -> bool:
    if criteria.min_price is not None and room_type.price_per_night < criteria.min_price:
        return False
    if criteria.max_price is not None and room_type.price_per_night > criteria.max_price:
        return False
    if criteria.guest_count is not None and room_type.capacity < criteria.guest_count:
        return False
    if criteria.min_beds is not None and room_type.num_beds < criteria.min_beds:
        return False
    if criteria.min_bedrooms is not None and room_type.num_bedrooms < criteria.min_bedrooms:
        return False
    if criteria.has_jacuzzi is not None and room_type.has_jacuzzi != criteria.has_jacuzzi:
        return False
    return True


class RoomSearchService:
    """Finds bookable rooms for a stay."""

    def __init__(self, uow_factory: Callable[[], SqlAlchemyUnitOfWork]):
        self.uow_factory = uow_factory

    async def search(self, criteria: RoomSearchCriteria) -> list[RoomTypeAvailability]:
        """Room types matching ``criteria``, each with its free matching rooms.

        Without dates every room is a candidate. Room types with no free
        matching room are left out. Results are ordered by nightly rate.
        """
        async with self.uow_factory() as uow:
            if criteria.check_in is not None and criteria.check_out is not None:
                rooms = await uow.rooms.list_available(criteria.check_in, criteria.check_out)
            else:
                rooms = await uow.rooms.list_all()

            rooms = [room for room in rooms if _room_matches(room, criteria)]
            room_types = await uow.rooms.get_room_types(
                list({room.room_type_id for room in rooms})
            )

        rooms_by_type: dict = {}
        for room in rooms:
            rooms_by_type.setdefault(room.room_type_id, []).append(room)

        results = [
            RoomTypeAvailability(
                room_type=room_type,
                rooms=sorted(rooms_by_type[room_type.id], key=lambda r: r.room_number),
            )
            for room_type in room_types
            if _room_type_matches(room_type, criteria)
        ]
        results.sort(key=lambda entry: (entry.room_type.price_per_night, entry.room_type.name))

        logger.info(
            "room_search_completed",
            check_in=criteria.check_in.isoformat() if criteria.check_in else None,
            check_out=criteria.check_out.isoformat() if criteria.check_out else None,
            room_types=len(results),
            rooms=sum(len(entry.rooms) for entry in results),
        )
        return results
