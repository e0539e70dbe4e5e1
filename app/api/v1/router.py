"""API v1 router combining all route modules."""

from fastapi import APIRouter

from app.api.v1 import cron, health, recovery

api_router = APIRouter()

# Include health check routes (no prefix)
api_router.include_router(health.router)

# Scheduled sweep trigger (bearer secret)
api_router.include_router(
    cron.router,
    prefix="/cron",
    tags=["cron"],
)

# Operator recovery endpoints (bearer secret)
api_router.include_router(
    recovery.router,
    prefix="/recovery",
    tags=["recovery"],
)
