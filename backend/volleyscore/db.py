from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool, StaticPool

from .config import database_url


engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[sessionmaker] = None
Base = declarative_base()


def engine_options(url: str) -> dict:
    """Pool settings for ``url``.

    In-memory SQLite must reuse a single connection or every session would
    see an empty database; file-backed SQLite is not pooled at all.
    """

    options: dict = {"echo": False}
    if url.startswith("sqlite+aiosqlite://"):
        options["poolclass"] = StaticPool if ":memory:" in url else NullPool
    else:
        options["pool_pre_ping"] = True
    return options


def get_engine() -> AsyncEngine:
    """Return the lazily created engine for ``DATABASE_URL``.

    Importing this module has no side effects, so tests can point
    ``DATABASE_URL`` somewhere else before the first call.
    """

    global engine, AsyncSessionLocal

    if engine is None:
        url = database_url()
        engine = create_async_engine(url, **engine_options(url))
        AsyncSessionLocal = sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    return engine


async def create_schema(target: Optional[AsyncEngine] = None) -> None:
    """Create every scoring table that does not exist yet."""

    from . import models  # noqa: F401  # register tables on Base.metadata

    target = target or get_engine()
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncSession:
    """Provide a request-scoped session for FastAPI dependencies.

    Nothing is committed here; an operation that fails before its router
    commits is rolled back when the session closes.
    """

    if AsyncSessionLocal is None:
        get_engine()

    assert AsyncSessionLocal is not None  # for type checkers
    async with AsyncSessionLocal() as session:
        yield session
