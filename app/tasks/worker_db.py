"""Database sessions for Celery tasks.

Each task runs its coroutine under ``asyncio.run``, i.e. on a fresh event
loop, so it gets its own engine and disposes of it before the loop closes.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

# Import all models to ensure they're registered before creating session
import models  # noqa: F401

from app.core.config import settings
from app.database import DB_URL, enable_sqlite_foreign_keys


@asynccontextmanager
async def task_session_factory() -> AsyncIterator[async_sessionmaker]:
    """Yield a session factory bound to a task-scoped engine."""
    engine = create_async_engine(DB_URL, pool_pre_ping=True, echo=settings.debug)
    enable_sqlite_foreign_keys(engine)
    try:
        yield async_sessionmaker(bind=engine, expire_on_commit=False)
    finally:
        await engine.dispose()
