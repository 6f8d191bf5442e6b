"""Database utilities: engine construction and FastAPI wiring."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from .config import Settings, get_settings
from .logging_config import get_logger
from .schema import metadata

logger = get_logger("notesync.database")


def build_database_url(database_url: str) -> str:
    """Normalize a database URL to an async SQLAlchemy driver URL."""
    # Hosting providers hand out postgres:// URLs; SQLAlchemy needs the driver name
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


class Database:
    """Owns the async engine for the sync store.

    Repository functions never reach for this object directly; they receive
    a :class:`~notesync.repositories.transaction.StoreHandle` opened from it.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.url = build_database_url(database_url)
        engine_kwargs: dict = {"echo": echo}
        if self.url.startswith("sqlite"):
            # aiosqlite connections are bound to the loop that opened them
            engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs["pool_pre_ping"] = True
        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def create_all(self) -> None:
        """Create tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def ping(self) -> bool:
        """Run a trivial query to verify connectivity."""
        async with self.engine.connect() as conn:
            await conn.execute(select(1))
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


_database: Database | None = None


def get_database(settings: Settings | None = None) -> Database:
    """Get the process-wide Database, creating it on first use."""
    global _database
    if _database is None:
        if settings is None:
            settings = get_settings()
        _database = Database(settings.database_url, echo=settings.database_echo)
        logger.info(f"Database engine created ({_database.dialect_name})")
    return _database


def get_db(settings: Annotated[Settings, Depends(get_settings)]) -> Database:
    """FastAPI dependency for the sync store."""
    return get_database(settings)


# Type alias for dependency injection
DatabaseDep = Annotated[Database, Depends(get_db)]
