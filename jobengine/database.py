from __future__ import annotations

import os
import sys

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from jobengine.config import settings


_engine_kwargs: dict = {"pool_pre_ping": True}

# NOTE: pytest-driven event loops are created and torn down per test; a pooled
# asyncpg connection reused across loops fails with
#   RuntimeError: got Future attached to a different loop
# so pooling is disabled whenever pytest is loaded.
if os.getenv("PYTEST_CURRENT_TEST") or ("pytest" in sys.modules):
    _engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(settings.database_url, **_engine_kwargs)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_db() -> None:
    """Create missing tables. Intended for local runs and tests."""

    from jobengine.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
