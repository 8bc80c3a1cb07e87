"""Unit of work spanning rooms, reservations and guests.

Freeing an old interval, booking a new one and rewriting the reservation
must land together or not at all, so every engine operation runs its
reads and writes through one session and commits once.
"""

from types import TracebackType
from typing import Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.logging import get_logger
from reservation_engine.storage.database import Database
from reservation_engine.storage.postgres_guest_repo import PostgresGuestRepository
from reservation_engine.storage.postgres_reservation_repo import PostgresReservationRepository
from reservation_engine.storage.postgres_room_repo import PostgresRoomRepository

logger = get_logger(__name__)


class SqlAlchemyUnitOfWork:
    """Commit on clean exit, roll back on any exception."""

    rooms: PostgresRoomRepository
    reservations: PostgresReservationRepository
    guests: PostgresGuestRepository

    def __init__(self, database: Database):
        """
        Initialize unit of work.

        Args:
            database: Connected database providing sessions
        """
        self.database = database
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self._session = self.database.new_session()
        self.rooms = PostgresRoomRepository(self._session)
        self.reservations = PostgresReservationRepository(self._session)
        self.guests = PostgresGuestRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        assert self._session is not None
        try:
            if exc_type is None:
                await self._session.commit()
            else:
                await self._session.rollback()
                logger.debug("unit_of_work_rolled_back", error=str(exc))
        finally:
            await self._session.close()
            self._session = None
