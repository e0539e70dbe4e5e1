"""Time-based trigger endpoint for the recovery sweep."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.deps import get_recovery_pipeline, verify_cron_secret
from app.core.exceptions import CartStoreUnavailableError, RecoveryConfigurationError
from app.core.rate_limit import trigger_limit
from app.schemas.recovery import RecoveryRunFailure, RecoveryRunResponse
from app.services.recovery_service import RecoveryPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.api_route(
    "/recover-carts",
    methods=["GET", "POST"],
    response_model=RecoveryRunResponse,
    responses={500: {"model": RecoveryRunFailure}},
    dependencies=[Depends(verify_cron_secret)],
)
@trigger_limit
async def recover_carts(
    request: Request,  # noqa: ARG001  # Required by the rate limiter
    pipeline: Annotated[RecoveryPipeline, Depends(get_recovery_pipeline)],
) -> RecoveryRunResponse | JSONResponse:
    """Run one abandoned-cart recovery sweep.

    Called by the platform scheduler; overlapping calls are safe.
    """
    try:
        return await pipeline.run()
    except (CartStoreUnavailableError, RecoveryConfigurationError) as exc:
        logger.error("Recovery sweep aborted: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=RecoveryRunFailure(error=str(exc)).model_dump(),
        )
