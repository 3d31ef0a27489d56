from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """
    The sqlite driver manages BEGIN itself and breaks SAVEPOINT; take over
    transaction control so per-listing begin_nested() works.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


engine: AsyncEngine = enable_sqlite_savepoints(
    create_async_engine(settings.VANTERA_DB_URL, echo=False, future=True)
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency that yields a session.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def async_session() -> AsyncIterator[AsyncSession]:
    """
    Convenience context manager used in scripts.
    """
    async with AsyncSessionLocal() as session:
        yield session
