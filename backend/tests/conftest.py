import os
import sys
import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# main.py refuses to import without explicit CORS origins
os.environ.setdefault("ALLOWED_ORIGINS", "http://testserver")
os.environ.setdefault("ALLOW_CREDENTIALS", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from volleyscore import models  # noqa: F401,E402  # register tables on Base
from volleyscore.db import Base, get_session  # noqa: E402
from volleyscore.rate_limit import limiter  # noqa: E402


def _memory_engine():
    return create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def session(anyio_backend):
    """An ``AsyncSession`` bound to a fresh in-memory database."""

    engine = _memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with maker() as s:
        yield s
    await engine.dispose()


@pytest.fixture()
def client_and_session():
    """Create a TestClient for the full app with an in-memory SQLite database."""

    from volleyscore import main

    engine = _memory_engine()
    async_session_maker = sessionmaker(
        engine, expire_on_commit=False, class_=AsyncSession
    )

    async def init_models():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())

    async def override_get_session():
        async with async_session_maker() as session:
            yield session

    main.app.dependency_overrides[get_session] = override_get_session
    limiter.reset()
    try:
        with TestClient(main.app) as client:
            yield client, async_session_maker
    finally:
        main.app.dependency_overrides.pop(get_session, None)
        limiter.reset()
