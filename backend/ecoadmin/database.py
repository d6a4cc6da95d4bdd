"""
EcoAdmin Backend: Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, FastAPI session dependency,
       and the translation of store failures into application errors.
How:   A Database object is built from Settings by create_app() and kept on
       app.state. Each request gets its own AsyncSession from it.

Connection Pooling Strategy:
    pool_size / max_overflow: from Settings (PostgreSQL only)
    pool_pre_ping:            validates connections before use
    pool_recycle=3600:        recycles connections every hour
    SQLite (tests, local runs) uses SQLAlchemy's default pool for the driver.
"""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Request
from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ecoadmin.config import Settings
from ecoadmin.exceptions import (
    DatabaseError,
    EcoAdminError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic reads for
    migrations and Database.create_all() uses in development and tests.
    """
    pass


def mask_url(url: str) -> str:
    """Hide credentials in a connection URL before it is logged."""
    return re.sub(r"//[^:/@]+:[^@]+@", "//***:***@", url)


class Database:
    """
    Owns the engine and the session factory for one application instance.

    Attributes:
        engine:          AsyncEngine managing the connection pool
        session_factory: async_sessionmaker producing per-request sessions
    """

    def __init__(self, settings: Settings):
        engine_kwargs = {
            "pool_pre_ping": settings.db_pool_pre_ping,
            "echo": settings.log_level == "DEBUG",
        }
        if settings.is_sqlite:
            engine_kwargs["connect_args"] = {"timeout": settings.db_connect_timeout}
        else:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=3600,
                pool_timeout=settings.db_connect_timeout,
                connect_args={"timeout": settings.db_connect_timeout},
            )

        self.url = settings.database_url
        self.engine = create_async_engine(settings.database_url, **engine_kwargs)

        # expire_on_commit=False: records stay readable after commit for
        # response serialization
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database configured: %s", mask_url(self.url))

    async def create_all(self) -> None:
        """Create every table registered on Base.metadata (idempotent)."""
        # Import models so they are registered before create_all runs
        from ecoadmin import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Lightweight connectivity probe used by the health check."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Store Error Translation ───────────────────────────────────────────────

# Connection-level failures: the operation never reached the data, so the
# client may retry.
_UNAVAILABLE_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
    asyncio.TimeoutError,
    OSError,
)


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """
    Map record-store failures raised inside the block to application errors.

    Usage:
        async with store_errors("list pending locations"):
            result = await db.execute(query)

    Mapping:
        EcoAdminError                      → re-raised unchanged
        connectivity / timeout failures    → StoreUnavailableError (503)
        DBAPIError with invalidated conn   → StoreUnavailableError (503)
        any other SQLAlchemyError          → DatabaseError (500)
    """
    try:
        yield
    except EcoAdminError:
        raise
    except _UNAVAILABLE_ERRORS as e:
        logger.error("Record store unavailable during %s: %s", operation, str(e))
        raise StoreUnavailableError(
            context={"operation": operation, "error_type": type(e).__name__},
        ) from e
    except sa_exc.DBAPIError as e:
        if e.connection_invalidated:
            logger.error("Record store connection lost during %s: %s", operation, str(e))
            raise StoreUnavailableError(
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__},
        ) from e
    except sa_exc.SQLAlchemyError as e:
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__},
        ) from e


# ── Session Dependency ────────────────────────────────────────────────────

async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Services commit their own writes; this dependency only guarantees that a
    failed request rolls back and that the connection returns to the pool.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
