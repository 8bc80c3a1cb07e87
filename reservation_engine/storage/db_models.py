"""SQLAlchemy database models.

Maps domain models to PostgreSQL tables.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, relationship

from reservation_engine.models.reservation import PaymentStatus, ReservationStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class GuestTable(Base):
    """Guest account table."""

    __tablename__ = "guests"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(254), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    reservations = relationship("ReservationTable", back_populates="guest")

    __table_args__ = (Index("ix_guests_email", email, unique=True),)


class RoomTypeTable(Base):
    """Room type table."""

    __tablename__ = "room_types"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    capacity = Column(Integer, nullable=False)
    num_beds = Column(Integer, nullable=False, default=1)
    num_bedrooms = Column(Integer, nullable=False, default=1)
    square_feet = Column(Integer, nullable=True)
    has_jacuzzi = Column(Boolean, nullable=False, default=False)
    has_kitchen = Column(Boolean, nullable=False, default=False)

    rooms = relationship("RoomTable", back_populates="room_type")

    __table_args__ = (
        CheckConstraint("price_per_night > 0", name="check_positive_nightly_rate"),
        CheckConstraint("capacity > 0", name="check_positive_capacity"),
    )


class RoomTable(Base):
    """Room table."""

    __tablename__ = "rooms"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    room_number = Column(String(20), nullable=False, unique=True)
    room_type_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("room_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    accessible = Column(Boolean, nullable=False, default=False)
    pet_friendly = Column(Boolean, nullable=False, default=False)
    non_smoking = Column(Boolean, nullable=False, default=True)
    occupied = Column(Boolean, nullable=False, default=False)

    room_type = relationship("RoomTypeTable", back_populates="rooms")
    bookings = relationship(
        "RoomBookingTable",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="RoomBookingTable.start_date",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_rooms_room_type_id", room_type_id),
        Index("ix_rooms_occupied", occupied),
    )


class RoomBookingTable(Base):
    """Booked interval ``[start_date, end_date)`` on a room's calendar."""

    __tablename__ = "room_bookings"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    room_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
    )
    reservation_id = Column(PG_UUID(as_uuid=True), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    room = relationship("RoomTable", back_populates="bookings")

    __table_args__ = (
        Index("ix_room_bookings_room_dates", room_id, start_date, end_date),
        Index("ix_room_bookings_reservation_id", reservation_id),
    )


class ReservationTable(Base):
    """Reservation table. The current payment transaction is embedded as JSON."""

    __tablename__ = "reservations"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    guest_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("guests.id", ondelete="RESTRICT"),
        nullable=False,
    )
    room_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("rooms.id", ondelete="RESTRICT"),
        nullable=False,
    )
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    guest_count = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(ReservationStatus, native_enum=True),
        nullable=False,
        default=ReservationStatus.CONFIRMED,
    )
    payment_status = Column(
        Enum(PaymentStatus, native_enum=True),
        nullable=False,
        default=PaymentStatus.PAID,
    )
    payment_transaction = Column(JSON, nullable=True)
    superseded_transactions = Column(JSON, nullable=False, default=list)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    guest = relationship("GuestTable", back_populates="reservations")

    __table_args__ = (
        CheckConstraint("guest_count > 0", name="check_positive_guest_count"),
        CheckConstraint("total_price >= 0", name="check_nonnegative_total_price"),
        Index("ix_reservations_guest_created", guest_id, created_at.desc()),
        Index("ix_reservations_room_dates", room_id, check_in, check_out),
        Index("ix_reservations_status_check_out", status, check_out),
    )
