"""Pydantic schemas for the cart recovery sweep."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.common import BaseSchema

CartOutcome = Literal["sent", "error", "skipped"]


# --- Run payload ---


class CartResult(BaseSchema):
    """Outcome of one cart within a recovery run.

    ``email`` is masked; ``error`` is composed by the service, never a raw provider body.
    """

    id: str
    email: str | None = None
    status: CartOutcome
    reason: str | None = None
    error: str | None = None


class RecoveryRunResponse(BaseSchema):
    """Summary returned by the trigger endpoint and the scheduled task."""

    success: bool = True
    processed: int = 0
    found: int = 0
    sent: int = 0
    skipped: int = 0
    claim_lost: int = 0  # included in skipped
    failed: int = 0
    deferred: int = 0
    window_start: datetime | None = None
    window_end: datetime | None = None
    details: list[CartResult] = Field(default_factory=list)


class RecoveryRunFailure(BaseSchema):
    """Infrastructure failure: the run was aborted and nothing is reported per cart."""

    success: Literal[False] = False
    error: str


# --- Operator endpoints ---


class FailedCartResponse(BaseSchema):
    """A claimed cart whose recovery email could not be delivered."""

    id: str
    email: str | None
    status: str | None
    last_error: str | None
    email_sent_at: datetime | None


class ReleaseClaimResponse(BaseSchema):
    """Result of re-arming a claimed cart for the next sweep."""

    id: str
    status: str
