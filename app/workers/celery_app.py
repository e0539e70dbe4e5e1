"""Celery application configuration."""

from celery import Celery

from app.core.config import settings

# Create Celery app
celery_app = Celery(
    "cart_recovery",
    broker=str(settings.redis_url),
    backend=str(settings.redis_url),
    include=[
        "app.workers.tasks.recovery",
    ],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task safety limits (the sweep's own budget is recovery_run_budget_seconds)
    task_time_limit=300,
    task_soft_time_limit=270,
    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Result backend settings
    result_expires=3600,  # Results expire after 1 hour
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
    # Default queue name (must match worker -Q flag)
    task_default_queue="default",
    task_routes={
        "tasks.recovery.*": {"queue": "recovery"},
    },
    # Beat schedule (time-based trigger for the sweep)
    beat_schedule={
        "recover-abandoned-carts": {
            "task": "tasks.recovery.recover_abandoned_carts",
            "schedule": settings.recovery_interval_minutes * 60.0,
            # A sweep that waited longer than one interval is superseded by the next one
            "options": {"expires": settings.recovery_interval_minutes * 60.0},
        },
    },
)


# Task base class with common error handling
class BaseTask(celery_app.Task):  # type: ignore[misc, name-defined]
    """Base task class with error handling."""

    abstract = True
    autoretry_for = (Exception,)
    retry_backoff = True
    retry_backoff_max = 600  # Max 10 minutes between retries
    retry_jitter = True
    max_retries = 3
