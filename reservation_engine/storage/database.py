"""Engine and session lifecycle for the reservation database."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from reservation_engine.config.settings import Settings
from reservation_engine.logging import get_logger
from reservation_engine.storage.db_models import Base

logger = get_logger(__name__)


class Database:
    """Owns the async engine; hands out sessions to units of work."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return

        self._engine = create_async_engine(
            self.settings.database_url,
            echo=self.settings.log_level == "DEBUG",
            pool_size=self.settings.database_pool_size,
            max_overflow=self.settings.database_max_overflow,
            pool_pre_ping=True,
        )
        # Reservations stay readable after commit for post-commit notifications
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

        logger.info(
            "database_connected",
            url=make_url(self.settings.database_url).render_as_string(hide_password=True),
            pool_size=self.settings.database_pool_size,
        )

    async def disconnect(self) -> None:
        if self._engine is None:
            return

        await self._engine.dispose()
        self._engine = None
        self._session_factory = None

        logger.info("database_disconnected")

    def new_session(self) -> AsyncSession:
        """Open a bare session; the caller owns commit, rollback and close."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._session_factory()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Session committed on clean exit and rolled back on error.

        Service code goes through ``SqlAlchemyUnitOfWork`` instead; this is
        for maintenance queries and health checks:

            async with db.session() as session:
                await session.execute(text("SELECT 1"))
        """
        session = self.new_session()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_tables(self) -> None:
        """Create the schema from metadata. Alembic owns it in deployments."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("database_tables_created")

    async def drop_tables(self) -> None:
        """Drop the schema. Test databases only."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        logger.info("database_tables_dropped")
