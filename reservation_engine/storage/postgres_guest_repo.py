"""PostgreSQL repository for Guest entities."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.models.guest import Guest
from reservation_engine.storage.db_models import GuestTable
from reservation_engine.storage.repository_base import RepositoryBase


class PostgresGuestRepository(RepositoryBase[Guest]):
    """Guest repository using PostgreSQL."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, id: UUID) -> Optional[Guest]:
        """Retrieve guest by ID."""
        stmt = select(GuestTable).where(GuestTable.id == id)
        result = await self.session.execute(stmt)
        db_guest = result.scalar_one_or_none()
        return self._to_domain_model(db_guest) if db_guest else None

    async def get_by_email(self, email: str) -> Optional[Guest]:
        """Retrieve guest by email, case-insensitively."""
        stmt = select(GuestTable).where(GuestTable.email == email.strip().lower())
        result = await self.session.execute(stmt)
        db_guest = result.scalar_one_or_none()
        return self._to_domain_model(db_guest) if db_guest else None

    async def create(self, entity: Guest) -> Guest:
        """Create new guest."""
        db_guest = GuestTable(
            id=entity.id,
            email=entity.email,
            first_name=entity.first_name,
            last_name=entity.last_name,
            created_at=entity.created_at,
        )
        self.session.add(db_guest)
        await self.session.flush()
        return self._to_domain_model(db_guest)

    async def update(self, entity: Guest) -> Guest:
        """Update guest profile fields."""
        stmt = select(GuestTable).where(GuestTable.id == entity.id)
        result = await self.session.execute(stmt)
        db_guest = result.scalar_one_or_none()
        if not db_guest:
            raise ValueError(f"Guest not found: {entity.id}")

        db_guest.email = entity.email
        db_guest.first_name = entity.first_name
        db_guest.last_name = entity.last_name
        await self.session.flush()
        return self._to_domain_model(db_guest)

    def _to_domain_model(self, db_guest: GuestTable) -> Guest:
        """Convert database model to domain model."""
        return Guest(
            id=db_guest.id,
            email=db_guest.email,
            first_name=db_guest.first_name,
            last_name=db_guest.last_name,
            created_at=db_guest.created_at,
        )
