import os

# Must be set before anything imports src.config.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api.deps import get_status_notifier
from src.database import get_db
from src.main import app
from src.models.base import Base
from src.services.notifications import StatusNotifier
from tests._client import get_async_client
from tests._fakes import FakeEmployeeLookup, RecordingDispatcher, make_contact


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(anyio_backend):
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory, anyio_backend):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def file_session_factory(tmp_path, anyio_backend):
    """Sessions on separate connections to one sqlite file, for interleaving two writers."""

    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'workflow.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, expire_on_commit=False, class_=AsyncSession)
    await eng.dispose()


@pytest.fixture
def lookup() -> FakeEmployeeLookup:
    return FakeEmployeeLookup({"emp-1": make_contact("emp-1"), "emp-2": make_contact("emp-2", first="Ravi", last="Kumar")})


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def notifier(lookup, dispatcher) -> StatusNotifier:
    return StatusNotifier(lookup=lookup, dispatcher=dispatcher)


@pytest.fixture
async def client(session_factory, notifier, anyio_backend):
    async def _get_db():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_status_notifier] = lambda: notifier
    try:
        async with get_async_client() as c:
            yield c
    finally:
        app.dependency_overrides.clear()
