"""Per-run aggregation of cart outcomes."""

from dataclasses import dataclass, field

from app.core.security import mask_email
from app.models.abandoned_cart import AbandonedCart
from app.schemas.recovery import CartResult, RecoveryRunResponse
from app.services.recovery_window import RecoveryWindow

# Skip reasons
REASON_MISSING_EMAIL = "missing_email"
REASON_EMPTY_CART = "empty_cart"
REASON_CLAIM_LOST = "claim_lost"


@dataclass
class RunReport:
    """Collects outcomes while a sweep runs; never raises for per-cart failures."""

    window: RecoveryWindow
    found: int = 0
    deferred: int = 0
    results: list[CartResult] = field(default_factory=list)

    def _add(self, cart: AbandonedCart, status: str, **extra: str | None) -> None:
        self.results.append(
            CartResult(id=cart.id, email=mask_email(cart.email), status=status, **extra)  # type: ignore[arg-type]
        )

    def record_sent(self, cart: AbandonedCart) -> None:
        self._add(cart, "sent")

    def record_skipped(self, cart: AbandonedCart, reason: str) -> None:
        self._add(cart, "skipped", reason=reason)

    def record_error(self, cart: AbandonedCart, error: str) -> None:
        self._add(cart, "error", error=error)

    def record_deferred(self) -> None:
        self.deferred += 1

    def count(self, status: str, reason: str | None = None) -> int:
        return sum(
            1
            for r in self.results
            if r.status == status and (reason is None or r.reason == reason)
        )

    @property
    def claim_lost(self) -> int:
        return self.count("skipped", REASON_CLAIM_LOST)

    def to_response(self) -> RecoveryRunResponse:
        return RecoveryRunResponse(
            success=True,
            processed=len(self.results),
            found=self.found,
            sent=self.count("sent"),
            skipped=self.count("skipped"),
            claim_lost=self.claim_lost,
            failed=self.count("error"),
            deferred=self.deferred,
            window_start=self.window.start,
            window_end=self.window.end,
            details=list(self.results),
        )
