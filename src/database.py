"""Database connection and session management for the preference store."""

import logging
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.config import settings

logger = logging.getLogger(__name__)


def _build_engine(database_url: str) -> AsyncEngine:
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return create_async_engine(url, echo=settings.debug)

    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    sqlite_engine = create_async_engine(url, echo=settings.debug)

    # Webhook and command sessions write to the same file concurrently.
    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _set_busy_timeout(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA busy_timeout=30000;")
        cursor.close()

    return sqlite_engine


engine = _build_engine(settings.database_url)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        yield session


async def init_db():
    # Register the tables on Base.metadata before creating them.
    from src.models import delivered_message, preference_record, routed_event  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
