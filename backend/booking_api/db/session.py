"""
Database handle, request-scoped sessions and bounded storage calls.

The Database object is created once at startup (see main.lifespan), stored
on app.state and disposed at shutdown. Tests build their own instance
against SQLite and put it on app.state instead.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Optional, TypeVar

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from booking_api.core.config import Settings, get_settings
from booking_api.core.exceptions import StorageError, StorageTimeoutError
from booking_api.core.logging import get_logger
from booking_api.core.metrics import record_storage_failure
from booking_api.db.base import Base

logger = get_logger(__name__)

T = TypeVar("T")


class Database:
    """Owns the async engine and the session factory built on it."""

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        engine_kwargs = {"pool_pre_ping": True}
        if settings.DATABASE_URL.startswith("postgresql"):
            engine_kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                connect_args={"command_timeout": settings.STORAGE_TIMEOUT_SECONDS},
            )
        return cls(settings.DATABASE_URL, echo=settings.DEBUG, **engine_kwargs)

    async def create_all(self) -> None:
        import booking_api.models  # noqa: F401 - register tables on Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("database_ping_failed", error=str(e))
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that commits on success and rolls back on any error."""
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the app's Database."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session


async def bounded(
    awaitable: Awaitable[T],
    operation: str,
    timeout: Optional[float] = None,
) -> T:
    """
    Await a storage call under a deadline.

    Timeouts become StorageTimeoutError; driver and ORM failures become
    StorageError. Domain errors raised inside pass through untouched.
    """
    if timeout is None:
        timeout = get_settings().STORAGE_TIMEOUT_SECONDS
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        record_storage_failure("timeout")
        logger.error("storage_timeout", operation=operation, timeout=timeout)
        raise StorageTimeoutError(operation, timeout) from e
    except SQLAlchemyError as e:
        record_storage_failure("error")
        logger.error("storage_error", operation=operation, error=str(e), exc_info=True)
        raise StorageError(operation) from e
