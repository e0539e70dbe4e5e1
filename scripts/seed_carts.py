"""Seed script for local cart recovery testing.

Creates one cart per interesting state relative to the default 2h-24h window:
- stale, unclaimed cart with email (will be emailed)
- same but already emailed (ignored by the detector)
- stale cart without email (skipped, never claimed)
- cart still being shopped (too fresh)
- cart outside the window (too old)
- recovered cart (ignored)
- claimed cart whose email failed (shows up under /recovery/carts/failed)

Usage:
    uv run python -m scripts.seed_carts
"""

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.security import generate_recovery_token
from app.models.abandoned_cart import AbandonedCart, CartStatus, CartStep

SEED_PREFIX = "seed-"

SAMPLE_ITEMS = [
    {
        "name": "Oil Filter XL",
        "quantity": 2,
        "price": "24.99",
        "salePrice": "19.99",
        "image": "https://placehold.co/80x80/008a40/white?text=OF",
    },
    {
        "name": "Air Filter",
        "quantity": 1,
        "price": "15.00",
        "image": None,
    },
]


async def seed(session: AsyncSession) -> None:
    now = datetime.now(UTC)

    await session.execute(delete(AbandonedCart).where(AbandonedCart.id.startswith(SEED_PREFIX)))
    await session.flush()

    def cart(cart_id: str, age: timedelta, **overrides: object) -> AbandonedCart:
        values: dict[str, object] = {
            "id": f"{SEED_PREFIX}{cart_id}",
            "customer_name": "Alice Seed",
            "email": f"{cart_id}@test.com",
            "items": SAMPLE_ITEMS,
            "total": Decimal("54.98"),
            "last_modified": now - age,
            "last_step_reached": CartStep.SHIPPING_INFO,
        }
        values.update(overrides)
        return AbandonedCart(**values)

    session.add_all(
        [
            cart("stale", timedelta(hours=5)),
            cart(
                "already-emailed",
                timedelta(hours=5),
                email_sent=True,
                email_sent_at=now - timedelta(hours=1),
                recovery_token=generate_recovery_token(),
                status=CartStatus.RECOVERY_EMAIL_SENT.value,
            ),
            cart("no-email", timedelta(hours=5), email=None, customer_name="Guest"),
            cart("fresh", timedelta(minutes=30), last_step_reached=CartStep.PAYMENT_SELECTION),
            cart("too-old", timedelta(days=3)),
            cart("recovered", timedelta(hours=6), recovered=True, recovered_at=now),
            cart(
                "failed",
                timedelta(hours=8),
                email_sent=True,
                email_sent_at=now - timedelta(minutes=20),
                recovery_token=generate_recovery_token(),
                status=CartStatus.RECOVERY_EMAIL_FAILED.value,
                last_error="Email provider returned HTTP 422",
            ),
        ]
    )
    await session.commit()


async def main() -> None:
    settings = get_settings()
    engine = build_engine(settings)
    try:
        async with build_session_factory(engine)() as session:
            await seed(session)
    finally:
        await engine.dispose()

    print("=" * 60)
    print("  Cart recovery seed data created successfully!")
    print("=" * 60)
    print()
    print(f"  Window: {settings.recovery_min_age_minutes}-{settings.recovery_max_age_minutes} minutes")
    print("  Expected on next sweep:")
    print(f"    sent:     {SEED_PREFIX}stale")
    print(f"    skipped:  {SEED_PREFIX}no-email (missing_email)")
    print(f"    ignored:  {SEED_PREFIX}already-emailed, fresh, too-old, recovered")
    print(f"    failed:   {SEED_PREFIX}failed (release via /recovery/carts/{{id}}/release)")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
