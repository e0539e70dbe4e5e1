"""Dependency injection for FastAPI routes.

Process-level resources live on ``app.state`` (created in the lifespan); these
dependencies hand them to route handlers so tests can override them.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.core.security import verify_bearer_token
from app.services.email_service import EmailService
from app.services.recovery_service import RecoveryPipeline, build_recovery_pipeline

logger = logging.getLogger(__name__)

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory created by the application lifespan."""
    return request.app.state.session_factory  # type: ignore[no-any-return]


SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_db(session_factory: SessionFactoryDep) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for the duration of a request."""
    async with session_factory() as session:
        yield session


# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


def get_email_service(request: Request) -> EmailService:
    """Email service created by the application lifespan."""
    return request.app.state.email_service  # type: ignore[no-any-return]


def get_recovery_pipeline(
    settings: SettingsDep,
    session_factory: SessionFactoryDep,
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> RecoveryPipeline:
    """Build a fresh pipeline per trigger; it holds no state between runs."""
    return build_recovery_pipeline(settings, session_factory, email_service)


async def verify_cron_secret(
    settings: SettingsDep,
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Require ``Authorization: Bearer <cron_secret>`` when a secret is configured."""
    if not settings.cron_secret:
        logger.warning("CRON_SECRET is not set; recovery endpoints are unauthenticated")
        return
    if not verify_bearer_token(authorization, settings.cron_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


__all__ = [
    "DBSession",
    "SessionFactoryDep",
    "SettingsDep",
    "get_db",
    "get_email_service",
    "get_recovery_pipeline",
    "get_session_factory",
    "verify_cron_secret",
]
