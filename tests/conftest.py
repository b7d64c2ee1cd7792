"""Pytest configuration for the Evidence Approval API test suite.

Service tests run against an in-memory SQLite database (one shared
connection per test). API tests get a file-backed database so the app's
event loop and the fixture's event loop never share a connection.
"""

import asyncio
import os
from types import SimpleNamespace

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool, StaticPool


def _ensure_test_env() -> None:
    """Seed environment before app settings are imported."""
    os.environ.setdefault("APP_ENV", "test")
    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    os.environ.setdefault("STORAGE_BACKEND", "local")


_ensure_test_env()

import app.domain  # noqa: E402,F401  (registers every model on Base.metadata)
from app.db.base import Base, build_session_factory  # noqa: E402
from tests.helpers import FakeJobQueue, FakeObjectStore, FixedClock  # noqa: E402


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with build_session_factory(engine)() as s:
        yield s


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def queue() -> FakeJobQueue:
    return FakeJobQueue()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def api(tmp_path):
    """TestClient wired to a throwaway database and in-memory collaborators."""
    from app.db.base import get_db
    from app.main import create_app
    from app.routers.v1.dependencies import get_job_queue, get_object_store

    url = f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"

    async def _create_schema() -> None:
        eng = create_async_engine(url)
        async with eng.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await eng.dispose()

    asyncio.run(_create_schema())

    app_engine = create_async_engine(url, poolclass=NullPool)
    factory = build_session_factory(app_engine)

    async def _get_db():
        async with factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    fake_store = FakeObjectStore()
    fake_queue = FakeJobQueue()

    application = create_app()
    application.dependency_overrides[get_db] = _get_db
    application.dependency_overrides[get_object_store] = lambda: fake_store
    application.dependency_overrides[get_job_queue] = lambda: fake_queue

    with TestClient(application) as client:
        yield SimpleNamespace(client=client, store=fake_store, queue=fake_queue)
