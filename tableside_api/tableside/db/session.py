from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Union
from uuid import UUID

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Session

from .config import get_settings

RESTAURANT_GUC = "app.restaurant_id"
_INFO_KEY = "restaurant_id"

_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


def _ensure_engine_initialized() -> None:
    """
    Lazily initialize the AsyncEngine and session maker.
    """
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        settings = get_settings()
        _ENGINE = create_async_engine(
            settings.async_database_url,
            echo=settings.SQL_ECHO,
            pool_pre_ping=True,
        )
    if _SESSION_MAKER is None:
        _SESSION_MAKER = async_sessionmaker(
            bind=_ENGINE, expire_on_commit=False, autoflush=False, autocommit=False
        )


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    """Return the global AsyncEngine instance."""
    _ensure_engine_initialized()
    assert _ENGINE is not None
    return _ENGINE


# PUBLIC_INTERFACE
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Return the global session factory."""
    _ensure_engine_initialized()
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession suitable for FastAPI dependency injection.
    Ensures engine/session factory is initialized.
    """
    async with get_session_maker()() as session:
        yield session


@event.listens_for(Session, "after_begin")
def _apply_restaurant_guc(session: Session, transaction, connection) -> None:
    """
    Re-apply the restaurant GUC at the start of every transaction.

    The setting is transaction-local, so a commit followed by more work on the
    same session would otherwise run without it (possibly on another pooled
    connection).
    """
    restaurant_id = session.info.get(_INFO_KEY)
    if restaurant_id and connection.dialect.name == "postgresql":
        connection.execute(
            text("SELECT set_config(:name, :value, true)"),
            {"name": RESTAURANT_GUC, "value": restaurant_id},
        )


# PUBLIC_INTERFACE
async def set_current_restaurant(
    session: AsyncSession, restaurant_id: Union[str, UUID]
) -> None:
    """
    Set the current restaurant for the DB session.

    Enables the row-level security policies that reference
      current_setting('app.restaurant_id', true)
    On backends without RLS (e.g. SQLite in tests) only the session info is recorded.
    """
    session.info[_INFO_KEY] = str(restaurant_id)
    if session.in_transaction() and session.bind is not None and session.bind.dialect.name == "postgresql":
        await session.execute(
            text("SELECT set_config(:name, :value, true)"),
            {"name": RESTAURANT_GUC, "value": str(restaurant_id)},
        )


# PUBLIC_INTERFACE
@asynccontextmanager
async def tenant_context(
    session: AsyncSession, restaurant_id: Union[str, UUID]
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager that sets and clears the restaurant context on the session.

    Usage:
        async with tenant_context(session, restaurant_id):
            ...  # queries are restricted to this restaurant by RLS
    """
    previous = session.info.get(_INFO_KEY)
    await set_current_restaurant(session, restaurant_id)
    try:
        yield session
    finally:
        if previous is None:
            session.info.pop(_INFO_KEY, None)
        else:
            session.info[_INFO_KEY] = previous
