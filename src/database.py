from __future__ import annotations

from collections.abc import AsyncGenerator
import os
import sys

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from src.config import settings
from src.models.base import Base


_engine_kwargs: dict = {"pool_pre_ping": True}

if settings.is_sqlite:
    # Local runs against sqlite share one connection so an in-memory database
    # survives across sessions.
    _engine_kwargs = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
elif os.getenv("PYTEST_CURRENT_TEST") or ("pytest" in sys.modules):
    # NOTE: the sync TestClient may run requests on different event loops;
    # pooled asyncpg connections must not be reused across loops.
    _engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(settings.database_url, **_engine_kwargs)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create any missing tables. Used on startup; there is no migration chain."""

    # Importing the package registers every model on Base.metadata.
    import src.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
