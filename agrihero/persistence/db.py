from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite") and (":memory:" in database_url or database_url.endswith("://"))


def create_engine(database_url: str) -> AsyncEngine:
    engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    # An in-memory SQLite database lives on a single connection; share it across sessions.
    if _is_memory_sqlite(database_url):
        engine_kwargs["poolclass"] = StaticPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    elif not database_url.startswith("sqlite"):
        engine_kwargs["pool_timeout"] = 30
        engine_kwargs["pool_recycle"] = 1800
    return create_async_engine(database_url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Keep loaded attributes after commit so rows can be converted outside the session.
    return async_sessionmaker(engine, expire_on_commit=False)
