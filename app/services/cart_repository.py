"""Cart store access: candidate detection and the atomic recovery claim."""

import logging
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import CartStoreUnavailableError
from app.models.abandoned_cart import AbandonedCart, CartStatus
from app.services.recovery_window import RecoveryWindow

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 500


class CartRepository:
    """Reads and conditionally updates abandoned carts.

    Every mutation is a single conditional UPDATE committed immediately, so two
    sweeps racing on the same row can never both win.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_candidates(self, window: RecoveryWindow, limit: int) -> list[AbandonedCart]:
        """Unclaimed, unrecovered carts last modified inside ``window``.

        Carts without an email are returned too; the dispatcher skips them so
        they stay eligible once the storefront fills the address in.
        """
        stmt = (
            select(AbandonedCart)
            .where(
                AbandonedCart.email_sent == False,  # noqa: E712
                AbandonedCart.recovered == False,  # noqa: E712
                AbandonedCart.last_modified >= window.start,
                AbandonedCart.last_modified < window.end,
            )
            .order_by(AbandonedCart.last_modified.asc())
            .limit(limit)
        )
        try:
            result = await self.db.execute(stmt)
        except (SQLAlchemyError, OSError) as exc:
            raise CartStoreUnavailableError(f"Cart store query failed: {type(exc).__name__}") from exc
        return list(result.scalars().all())

    async def get(self, cart_id: str) -> AbandonedCart | None:
        stmt = select(AbandonedCart).where(AbandonedCart.id == cart_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def claim(
        self,
        cart_id: str,
        token: str,
        window: RecoveryWindow,
        now: datetime,
    ) -> bool:
        """Compare-and-swap ``email_sent`` false -> true, writing the token in the same statement.

        Eligibility is re-checked in the WHERE clause: a cart touched again by the
        customer, recovered, or claimed by another sweep since detection is not updated.
        Returns True iff this call won the claim.
        """
        stmt = (
            update(AbandonedCart)
            .where(
                AbandonedCart.id == cart_id,
                AbandonedCart.email_sent == False,  # noqa: E712
                AbandonedCart.recovered == False,  # noqa: E712
                AbandonedCart.last_modified >= window.start,
                AbandonedCart.last_modified < window.end,
                or_(
                    AbandonedCart.recovery_token.is_(None),
                    AbandonedCart.recovery_token == token,
                ),
            )
            .values(
                email_sent=True,
                email_sent_at=now,
                recovery_token=token,
                status=CartStatus.RECOVERY_EMAIL_PENDING.value,
                last_error=None,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def record_outcome(
        self,
        cart_id: str,
        status: CartStatus,
        error: str | None = None,
    ) -> None:
        """Write the observability status of a claimed cart. Never touches the claim itself."""
        stmt = (
            update(AbandonedCart)
            .where(
                AbandonedCart.id == cart_id,
                AbandonedCart.email_sent == True,  # noqa: E712
            )
            .values(
                status=status.value,
                last_error=error[:MAX_ERROR_LENGTH] if error else None,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def list_failed(self, limit: int = 100) -> list[AbandonedCart]:
        """Claimed carts whose email never went out, newest claim first."""
        stmt = (
            select(AbandonedCart)
            .where(
                AbandonedCart.email_sent == True,  # noqa: E712
                AbandonedCart.status == CartStatus.RECOVERY_EMAIL_FAILED.value,
            )
            .order_by(AbandonedCart.email_sent_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def release_claim(self, cart_id: str) -> bool:
        """Re-arm a claimed, unrecovered cart so the next sweep can notify it again.

        The recovery token is kept: once issued it never changes.
        """
        stmt = (
            update(AbandonedCart)
            .where(
                AbandonedCart.id == cart_id,
                AbandonedCart.email_sent == True,  # noqa: E712
                AbandonedCart.recovered == False,  # noqa: E712
            )
            .values(
                email_sent=False,
                email_sent_at=None,
                status=CartStatus.RECOVERY_EMAIL_RELEASED.value,
                last_error=None,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        released = result.rowcount == 1  # type: ignore[attr-defined]
        if released:
            logger.info("Recovery claim released: cart=%s", cart_id)
        return released
