"""
Database handle.

The engine is created lazily on first use, reused for the life of the process
and disposed explicitly on shutdown (see the lifespan in ``api.main``).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from core.config import settings

logger = logging.getLogger(__name__)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


class DatabaseManager:
    """Owns the async engine and session factory."""

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self._url = url
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def url(self) -> str:
        return self._url or settings.database_url

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def _engine_options(self) -> dict:
        echo = settings.database_echo if self._echo is None else self._echo
        if self.url.startswith("sqlite"):
            # One shared connection so in-memory databases survive across sessions
            return {
                "echo": echo,
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        return {
            "echo": echo,
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
            "pool_pre_ping": True,
        }

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            logger.info(f"Creating database engine for {self.url.split('@')[-1]}")
            self._engine = create_async_engine(self.url, **self._engine_options())
            self._sessionmaker = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            self.engine  # noqa: B018 - creates the session factory
        return self._sessionmaker

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.sessionmaker() as session:
            yield session

    async def create_all(self) -> None:
        # Import models so every table is registered on Base.metadata
        from database.models import applications, profiles, users, vacancies  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database engine and connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._sessionmaker = None


db_manager = DatabaseManager()


# Dependency to get DB session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.session() as session:
        yield session


# Function to initialize the database (create tables)
async def init_db() -> None:
    await db_manager.create_all()


# Function to close database connections
async def close_db() -> None:
    await db_manager.dispose()
