"""Room and room type domain models."""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


class RoomType(BaseModel):
    """Room type with its nightly rate and physical specification."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1, max_length=100)
    price_per_night: Decimal = Field(gt=0, decimal_places=2, description="Nightly rate")
    capacity: int = Field(gt=0, description="Maximum number of guests")
    num_beds: int = Field(default=1, ge=0)
    num_bedrooms: int = Field(default=1, ge=0)
    square_feet: Optional[int] = Field(default=None, gt=0)
    has_jacuzzi: bool = False
    has_kitchen: bool = False


class BookedInterval(BaseModel):
    """A half-open ``[start, end)`` date range blocking a room."""

    id: UUID = Field(default_factory=uuid4)
    room_id: UUID
    reservation_id: Optional[UUID] = Field(
        default=None, description="Reservation owning this interval"
    )
    start: date
    end: date

    def overlaps(self, start: date, end: date) -> bool:
        """Half-open overlap test against ``[start, end)``."""
        return self.start < end and self.end > start

    def matches(self, start: date, end: date) -> bool:
        """Exact match on both bounds."""
        return self.start == start and self.end == end


class Room(BaseModel):
    """Physical room with its booking calendar and occupancy flag."""

    id: UUID = Field(default_factory=uuid4)
    room_number: str = Field(min_length=1, max_length=20)
    room_type_id: UUID
    accessible: bool = False
    pet_friendly: bool = False
    non_smoking: bool = True
    occupied: bool = Field(default=False, description="A guest is physically in the room")
    booked_intervals: list[BookedInterval] = Field(default_factory=list)


class RoomSearchCriteria(BaseModel):
    """Filters for the availability search."""

    check_in: Optional[date] = None
    check_out: Optional[date] = Field(default=None, validate_default=True)
    guest_count: Optional[int] = Field(default=None, gt=0)
    accessible: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    non_smoking: Optional[bool] = None
    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)
    min_beds: Optional[int] = Field(default=None, ge=0)
    min_bedrooms: Optional[int] = Field(default=None, ge=0)
    has_jacuzzi: Optional[bool] = None

    @field_validator("check_out")
    @classmethod
    def validate_date_range(cls, v: Optional[date], info) -> Optional[date]:
        """Ensure check_in < check_out and that both or neither are given."""
        check_in = info.data.get("check_in")
        if (v is None) != (check_in is None):
            raise ValueError("check_in and check_out must be given together")
        if v is not None and check_in is not None and v <= check_in:
            raise ValueError("check_out must be after check_in")
        return v


class RoomTypeAvailability(BaseModel):
    """Search result: one room type and its free rooms."""

    room_type: RoomType
    rooms: list[Room]
