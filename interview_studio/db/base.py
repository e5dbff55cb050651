"""Declarative base and the process-wide async engine.

``init_db`` is the single entry point that builds the engine: the API
lifespan calls it with ``DATABASE_URL`` and the test suite calls it with an
in-memory SQLite URL. Services only ever see the session factory.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from interview_studio.core.config import get_settings


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(url: str, *, echo: bool = False) -> dict:
    """Keyword arguments for ``create_async_engine`` suited to the URL's backend.

    In-memory SQLite gets a single shared connection (StaticPool); otherwise
    each pooled connection would open its own empty database.
    """
    parsed = make_url(url)
    options: dict = {"echo": echo}
    if parsed.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return options


async def init_db(url: str | None = None) -> AsyncEngine:
    """Build the engine and session factory, then create missing tables.

    Returns the live engine. A second call while it is alive returns it
    unchanged, whatever ``url`` is passed.
    """
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    settings = get_settings()
    db_url = url or settings.database_url
    engine = create_async_engine(db_url, **engine_options(db_url, echo=settings.debug))

    # Registers every table on Base.metadata
    import interview_studio.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    _engine = engine
    _session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine


async def close_db() -> None:
    """Dispose of the engine; ``init_db`` may be called again afterwards."""
    global _engine, _session_factory

    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the engine from ``init_db``."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
