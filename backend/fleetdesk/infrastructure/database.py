"""Database Session Manager — async engine, per-unit-of-work sessions, readiness check.

Invariants:
    - A session that raises is rolled back and closed before the error leaves the scope
    - SQLAlchemy failures leave the scope as DatabaseError (first matching row of _FAILURES)
    - FleetDeskError raised inside a scope (404, 409, ...) passes through unchanged
    - Postgres engines ping pooled connections before use; SQLite gets no pool options

Design Decisions:
    - One module-level db_manager created in the FastAPI lifespan, read at call time
    - expire_on_commit=False: rows returned by repositories stay readable after commit
    - get_session_scope hands background tasks (scan audit, client OCR) the session
      factory as a dependency, so they open their own unit of work after the response
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncContextManager, Callable

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from fleetdesk.core.errors import DatabaseError

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]

# Most specific first: IntegrityError and OperationalError are DBAPIError subclasses
_FAILURES: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


def to_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for exc_type, message, operation in _FAILURES:
        if isinstance(exc, exc_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the async engine and hands out rollback-safe sessions."""

    def __init__(
        self, database_url: str, pool_size: int = 10, max_overflow: int = 5,
    ):
        self.engine = create_async_engine(
            database_url, **_engine_options(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = to_database_error(e)
            logger.error(
                f"{error.message}: {e}",
                extra={"error_code": error.code},
            )
            raise error from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial query round-trips (readiness probe)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except DatabaseError as e:
            logger.error(f"DB health check failed: {e.message}")
            return False
        except OSError as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def close(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


def _require_manager() -> DatabaseSessionManager:
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with _require_manager().session() as session:
        yield session


def get_session_scope() -> SessionScope:
    """FastAPI dependency: session factory for work that outlives the request session."""
    return _require_manager().session
