"""
Database Session Management with Connection Pooling

This module handles async connections to the click event store using
SQLAlchemy's async engine. The backend-specific engine configuration comes
from a database adapter, chosen from DATABASE_URL.

Key Features:
- Database abstraction: SQLite locally, MySQL in production
- Connection pooling: Bounded pool with a pool-wait timeout
- Async session management: Sessions are always closed, including on error
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from linktrack.core.setting import settings
from linktrack.db.factory import get_database_adapter

db_adapter = get_database_adapter(
    settings.DATABASE_URL,
    pool_size=settings.DATABASE_POOL_SIZE,
    pool_timeout=settings.DATABASE_POOL_TIMEOUT,
)

# Engines connect lazily, so building one at import time opens no connection
engine = db_adapter.create_engine(settings.DATABASE_URL)

async_session_maker = async_sessionmaker(
    engine,
    class_=SQLModelAsyncSession,
    expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get a read session on the event store.

    Usage in FastAPI:
        @router.get("/endpoint")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
