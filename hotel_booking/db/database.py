from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from hotel_booking.utils.config import get_settings


def _connect_args(database_url: str, timeout: float) -> Dict[str, Any]:
    url = make_url(database_url)
    if url.get_driver_name() == "asyncpg":
        return {"timeout": timeout, "command_timeout": timeout}
    if url.get_backend_name() == "sqlite":
        return {"timeout": timeout}
    return {}


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """SQLite ignores FOR UPDATE, so every transaction takes the write lock when it begins."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, echo: bool = False, timeout: float = 30.0) -> AsyncEngine:
    engine = create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=_connect_args(database_url, timeout),
    )
    if make_url(database_url).get_backend_name() == "sqlite":
        _use_immediate_transactions(engine)
    return engine


settings = get_settings()

engine = build_engine(settings.database_url, echo=settings.database_echo, timeout=settings.database_timeout)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything done inside the block, or roll all of it back."""

    try:
        yield session
    except BaseException:
        await session.rollback()
        raise
    else:
        await session.commit()
