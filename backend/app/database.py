"""
DevCamper Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, declarative base and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Unit of work:
    One request = one AsyncSession. There are no explicit transactions beyond
    the commit/rollback done here, so multi-step sequences in services
    (check-then-create, find-then-update) are not atomic.
"""

import uuid
from typing import Any, AsyncGenerator, Dict, Iterable, Optional, Sequence, Tuple

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.exceptions import NotFoundError


def _engine_options(url: str) -> Dict[str, Any]:
    """
    Pool options for the configured driver.

    SQLite (used by the test-suite and local tinkering) does not accept
    pool sizing arguments, so they are only passed to server databases.
    """
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# async driver requires (no implicit lazy loads outside the session)
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Adds `to_dict()`, the single serialization path used for API responses.
    It only touches the attributes it is asked for, so it is safe on rows
    loaded with `load_only()` (touching a deferred column would trigger a
    lazy load, which the async driver forbids).
    """

    # Column attributes never serialized (e.g. password hashes)
    __hidden__: frozenset = frozenset()

    @classmethod
    def public_fields(cls) -> Tuple[str, ...]:
        """Column attribute names that may appear in responses, in table order."""
        return tuple(
            attr.key
            for attr in sa_inspect(cls).column_attrs
            if attr.key not in cls.__hidden__
        )

    def to_dict(
        self,
        fields: Optional[Iterable[str]] = None,
        populate: Sequence[Tuple[str, Optional[Sequence[str]]]] = (),
    ) -> Dict[str, Any]:
        """
        Serialize this row.

        Args:
            fields:   Restrict to these columns (`id` is always included).
                      None means every public column.
            populate: (relationship, related_fields) pairs to embed. The
                      relationship must already be eagerly loaded.
        """
        names = self.public_fields()
        if fields is not None:
            wanted = set(fields) | {"id"}
            names = tuple(name for name in names if name in wanted)

        data = {name: getattr(self, name) for name in names}

        for relation, related_fields in populate:
            value = getattr(self, relation)
            if value is None:
                data[relation] = None
            elif isinstance(value, (list, tuple)):
                data[relation] = [item.to_dict(related_fields) for item in value]
            else:
                data[relation] = value.to_dict(related_fields)
        return data


def parse_id(value: str, resource: str, message: Optional[str] = None) -> uuid.UUID:
    """
    Convert a path id into a UUID.

    A malformed id can never match a row, so it is reported exactly like a
    well-formed id that matches nothing.
    """
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError(resource=resource, resource_id=str(value), message=message)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            # Roll back for ANY failure, then let the global handler respond
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()
