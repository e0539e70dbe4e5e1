"""Cart recovery sweep: detect abandoned carts, claim each one, send one email."""

import asyncio
import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.core.exceptions import EmailDeliveryError, RecoveryConfigurationError
from app.core.logging_config import generate_run_id, run_id_var
from app.models.abandoned_cart import AbandonedCart, CartStatus
from app.schemas.recovery import RecoveryRunResponse
from app.services.cart_repository import CartRepository
from app.services.email_service import EmailService
from app.services.recovery_links import issue_recovery_link
from app.services.recovery_renderer import render_recovery_email
from app.services.recovery_window import Clock, RecoveryWindow, compute_window, utc_now
from app.services.run_report import (
    REASON_CLAIM_LOST,
    REASON_EMPTY_CART,
    REASON_MISSING_EMAIL,
    RunReport,
)

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]

UNEXPECTED_SEND_ERROR = "Unexpected error during send"


class RecoveryDispatcher:
    """Sends at most one recovery email per cart.

    The claim is always committed before the email is sent. A failed send after
    the claim leaves the cart claimed but unsent until an operator releases it.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        email_service: EmailService,
        settings: Settings,
        clock: Clock = utc_now,
    ) -> None:
        self.session_factory = session_factory
        self.email_service = email_service
        self.settings = settings
        self.clock = clock

    async def dispatch(self, cart: AbandonedCart, window: RecoveryWindow, report: RunReport) -> None:
        """Process one candidate cart and record its outcome on ``report``."""
        if not (cart.email or "").strip():
            logger.warning("Cart %s has no email, skipping", cart.id)
            report.record_skipped(cart, REASON_MISSING_EMAIL)
            return
        if not cart.items:
            logger.warning("Cart %s has no items, skipping", cart.id)
            report.record_skipped(cart, REASON_EMPTY_CART)
            return

        link = issue_recovery_link(self.settings.base_url, cart.recovery_token)
        html_content = render_recovery_email(
            cart.items,
            link.url,
            store_name=self.settings.store_name,
            currency=self.settings.store_currency,
            customer_name=cart.customer_name,
            total=cart.total,
        )

        try:
            async with self.session_factory() as session:
                claimed = await CartRepository(session).claim(
                    cart.id, link.token, window, self.clock()
                )
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Failed to claim cart %s", cart.id)
            report.record_error(cart, f"Claim failed: {type(exc).__name__}")
            return

        if not claimed:
            logger.info("Cart %s no longer eligible or claimed by another run, skipping", cart.id)
            report.record_skipped(cart, REASON_CLAIM_LOST)
            return

        try:
            async with asyncio.timeout(self.settings.email_send_timeout_seconds):
                email_id = await self.email_service.send_recovery_email(
                    to_email=cart.email.strip(),  # type: ignore[union-attr]
                    subject=self.settings.recovery_email_subject,
                    html_content=html_content,
                    tags=[{"name": "type", "value": "cart_recovery"}],
                )
        except (EmailDeliveryError, TimeoutError) as exc:
            error = str(exc) or f"Send timed out after {self.settings.email_send_timeout_seconds:g}s"
            logger.error("Recovery email failed, cart left claimed: cart=%s error=%s", cart.id, error)
            await self._record_outcome(cart.id, CartStatus.RECOVERY_EMAIL_FAILED, error)
            report.record_error(cart, error)
            return
        except Exception:
            # Still claimed: list it as failed, then let the pipeline report it
            await self._record_outcome(
                cart.id, CartStatus.RECOVERY_EMAIL_FAILED, UNEXPECTED_SEND_ERROR
            )
            raise

        logger.info("Recovery email sent: cart=%s id=%s", cart.id, email_id)
        await self._record_outcome(cart.id, CartStatus.RECOVERY_EMAIL_SENT)
        report.record_sent(cart)

    async def _record_outcome(
        self, cart_id: str, status: CartStatus, error: str | None = None
    ) -> None:
        # Observability only; the claim already holds the cart.
        try:
            async with self.session_factory() as session:
                await CartRepository(session).record_outcome(cart_id, status, error)
        except (SQLAlchemyError, OSError):
            logger.warning("Could not record status %s for cart %s", status.value, cart_id, exc_info=True)


class RecoveryPipeline:
    """One stateless recovery sweep over the cart store."""

    def __init__(
        self,
        session_factory: SessionFactory,
        email_service: EmailService,
        settings: Settings,
        clock: Clock = utc_now,
    ) -> None:
        self.session_factory = session_factory
        self.email_service = email_service
        self.settings = settings
        self.clock = clock
        self.dispatcher = RecoveryDispatcher(session_factory, email_service, settings, clock)

    async def run(self) -> RecoveryRunResponse:
        """Run a sweep.

        Raises:
            RecoveryConfigurationError: The email provider is not configured.
            CartStoreUnavailableError: Candidates could not be loaded.
        """
        token = run_id_var.set(generate_run_id())
        try:
            report = await self._run()
        finally:
            run_id_var.reset(token)
        return report.to_response()

    async def _run(self) -> RunReport:
        if not self.email_service.is_configured:
            raise RecoveryConfigurationError("Email provider API key is not configured")

        window = compute_window(
            self.clock(),
            min_age=timedelta(minutes=self.settings.recovery_min_age_minutes),
            max_age=timedelta(minutes=self.settings.recovery_max_age_minutes),
        )
        logger.info("Checking for carts modified in [%s, %s)", window.start, window.end)

        async with self.session_factory() as session:
            candidates = await CartRepository(session).find_candidates(
                window, self.settings.recovery_batch_size
            )

        report = RunReport(window=window, found=len(candidates))
        if not candidates:
            logger.info("No abandoned carts found in window")
            return report

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.recovery_run_budget_seconds
        semaphore = asyncio.Semaphore(self.settings.recovery_concurrency)

        async def process(cart: AbandonedCart) -> None:
            async with semaphore:
                if loop.time() >= deadline:
                    report.record_deferred()
                    return
                try:
                    await self.dispatcher.dispatch(cart, window, report)
                except Exception:
                    logger.exception("Unexpected error dispatching cart %s", cart.id)
                    report.record_error(cart, "Unexpected error during dispatch")

        async with asyncio.TaskGroup() as tg:
            for cart in candidates:
                tg.create_task(process(cart))

        logger.info(
            "Recovery sweep complete: found=%d sent=%d skipped=%d claim_lost=%d failed=%d deferred=%d",
            report.found,
            report.count("sent"),
            report.count("skipped"),
            report.claim_lost,
            report.count("error"),
            report.deferred,
        )
        return report


def build_recovery_pipeline(
    settings: Settings,
    session_factory: SessionFactory,
    email_service: EmailService | None = None,
    clock: Clock = utc_now,
) -> RecoveryPipeline:
    """Wire a pipeline from process-owned resources."""
    return RecoveryPipeline(
        session_factory=session_factory,
        email_service=email_service or EmailService.from_settings(settings),
        settings=settings,
        clock=clock,
    )
