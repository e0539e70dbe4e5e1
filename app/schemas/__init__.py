"""Pydantic schemas for request/response validation."""

from app.schemas.common import HealthResponse
from app.schemas.recovery import (
    CartResult,
    FailedCartResponse,
    RecoveryRunFailure,
    RecoveryRunResponse,
    ReleaseClaimResponse,
)

__all__ = [
    "HealthResponse",
    "CartResult",
    "FailedCartResponse",
    "RecoveryRunFailure",
    "RecoveryRunResponse",
    "ReleaseClaimResponse",
]
