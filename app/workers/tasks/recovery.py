"""Celery task for the periodic abandoned-cart recovery sweep."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.exceptions import RecoveryConfigurationError
from app.services.recovery_service import build_recovery_pipeline
from app.workers.celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine in a fresh event loop.

    Each Celery prefork worker creates a new event loop per task. asyncpg connections
    are bound to the loop that created them, so the task builds and disposes its own
    engine inside the coroutine rather than sharing one across loops.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(  # type: ignore[untyped-decorator]
    name="tasks.recovery.recover_abandoned_carts",
    base=BaseTask,
    bind=True,
    dont_autoretry_for=(RecoveryConfigurationError,),
)
def recover_abandoned_carts(self: BaseTask) -> dict[str, Any]:  # noqa: ARG001
    """Periodic task: email every newly abandoned cart exactly once."""
    return _run_async(_recover_abandoned_carts_async())


async def _recover_abandoned_carts_async() -> dict[str, Any]:
    """Async implementation of the recovery sweep."""
    settings = get_settings()
    engine = build_engine(settings)
    try:
        pipeline = build_recovery_pipeline(settings, build_session_factory(engine))
        result = await pipeline.run()
    finally:
        await engine.dispose()

    return result.model_dump(mode="json")
