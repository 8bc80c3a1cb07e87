"""Initial schema with guests, room types, rooms, room bookings, reservations

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-11-21

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create initial database schema."""
    # Create enum types
    op.execute(
        "CREATE TYPE reservationstatus AS ENUM "
        "('CONFIRMED', 'CHECKED_IN', 'COMPLETED', 'CANCELLED', 'REFUNDED')"
    )
    op.execute("CREATE TYPE paymentstatus AS ENUM ('PAID', 'REFUNDED')")

    # Create guests table
    op.create_table(
        'guests',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, primary_key=True),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_guests_email', 'guests', ['email'], unique=True)

    # Create room_types table
    op.create_table(
        'room_types',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('price_per_night', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('num_beds', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('num_bedrooms', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('square_feet', sa.Integer(), nullable=True),
        sa.Column('has_jacuzzi', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('has_kitchen', sa.Boolean(), nullable=False, server_default='false'),
        sa.CheckConstraint('price_per_night > 0', name='check_positive_nightly_rate'),
        sa.CheckConstraint('capacity > 0', name='check_positive_capacity'),
        sa.PrimaryKeyConstraint('id')
    )

    # Create rooms table
    op.create_table(
        'rooms',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, primary_key=True),
        sa.Column('room_number', sa.String(length=20), nullable=False),
        sa.Column('room_type_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('accessible', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('pet_friendly', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('non_smoking', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('occupied', sa.Boolean(), nullable=False, server_default='false'),
        sa.ForeignKeyConstraint(['room_type_id'], ['room_types.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_number')
    )
    op.create_index('ix_rooms_room_type_id', 'rooms', ['room_type_id'])
    op.create_index('ix_rooms_occupied', 'rooms', ['occupied'])

    # Create room_bookings table (booked intervals, half-open [start_date, end_date))
    op.create_table(
        'room_bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, primary_key=True),
        sa.Column('room_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reservation_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_room_bookings_room_dates', 'room_bookings', ['room_id', 'start_date', 'end_date']
    )
    op.create_index('ix_room_bookings_reservation_id', 'room_bookings', ['reservation_id'])

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, primary_key=True),
        sa.Column('guest_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('room_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('check_in', sa.Date(), nullable=False),
        sa.Column('check_out', sa.Date(), nullable=False),
        sa.Column('guest_count', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', postgresql.ENUM('CONFIRMED', 'CHECKED_IN', 'COMPLETED', 'CANCELLED', 'REFUNDED', name='reservationstatus', create_type=False), nullable=False),
        sa.Column('payment_status', postgresql.ENUM('PAID', 'REFUNDED', name='paymentstatus', create_type=False), nullable=False),
        sa.Column('payment_transaction', sa.JSON(), nullable=True),
        sa.Column('superseded_transactions', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('checked_out_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('guest_count > 0', name='check_positive_guest_count'),
        sa.CheckConstraint('total_price >= 0', name='check_nonnegative_total_price'),
        sa.ForeignKeyConstraint(['guest_id'], ['guests.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_reservations_guest_created', 'reservations', ['guest_id', sa.text('created_at DESC')]
    )
    op.create_index('ix_reservations_room_dates', 'reservations', ['room_id', 'check_in', 'check_out'])
    op.create_index('ix_reservations_status_check_out', 'reservations', ['status', 'check_out'])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table('reservations')
    op.drop_table('room_bookings')
    op.drop_table('rooms')
    op.drop_table('room_types')
    op.drop_table('guests')

    op.execute('DROP TYPE IF EXISTS paymentstatus')
    op.execute('DROP TYPE IF EXISTS reservationstatus')
