"""Async database engine and session factory construction.

Engines are built by whoever owns the process lifecycle (the FastAPI lifespan or a
Celery task) and handed down explicitly; nothing here connects at import time.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the cart store."""
    return create_async_engine(
        str(settings.database_url),
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_size=max(settings.recovery_concurrency, 5),
        max_overflow=5,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``engine``."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
