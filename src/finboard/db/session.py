"""Process-wide database engine and session factories.

Engines are created lazily on first use and cached per database URL, so
every request reuses one connection pool. Nothing needs to be torn down
before process exit; `dispose_engines()` exists for tests and shutdown.
"""

from collections.abc import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from finboard.config import settings
from finboard.models import Base

_engines: dict[str, AsyncEngine] = {}
_sessionmakers: dict[str, async_sessionmaker[AsyncSession]] = {}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create a new async engine for ``url``."""
    engine = create_async_engine(url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_engine(url: str | None = None) -> AsyncEngine:
    """Return the shared engine for ``url`` (defaults to the configured one)."""
    url = url or settings.database_url
    engine = _engines.get(url)
    if engine is None:
        # Do not log SQL parameters outside development; they include descriptions.
        echo = settings.db_echo if settings.app_env.lower() == "development" else False
        engine = _engines[url] = build_engine(url, echo=echo)
    return engine


def get_sessionmaker(url: str | None = None) -> async_sessionmaker[AsyncSession]:
    url = url or settings.database_url
    factory = _sessionmakers.get(url)
    if factory is None:
        factory = _sessionmakers[url] = async_sessionmaker(
            get_engine(url), class_=AsyncSession, expire_on_commit=False
        )
    return factory


async def dispose_engines() -> None:
    for engine in _engines.values():
        await engine.dispose()
    _engines.clear()
    _sessionmakers.clear()


async def create_schema(engine: AsyncEngine | None = None) -> None:
    """Create the uploads and transactions tables if they don't exist."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as session:
        yield session
