"""
Relational store access: async engine, per-request sessions and the
declarative base every model extends.
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from eats.core.config import get_settings

settings = get_settings()


def _engine_options() -> dict:
    options = {"echo": settings.debug}
    # SQLite runs on a single connection; pool sizing only applies to Postgres
    if not settings.is_sqlite:
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# Loaded attributes stay readable after commit; responses are built from them
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request, closed when the request finishes."""
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """Create missing tables. Runs once when the API starts."""
    import eats.models  # noqa: F401  registers the mapped classes

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
