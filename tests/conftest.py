"""Pytest configuration and fixtures for the cart recovery test suite.

Provides:
- Per-test SQLite cart store (aiosqlite, file-backed so concurrent sessions share it)
- Fixed clock and recovery settings
- Mock email service (no network)
- Disabled rate limiting
- Cart factory fixture
"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import Settings, get_settings
from app.core.deps import get_email_service, get_recovery_pipeline, get_session_factory
from app.core.rate_limit import limiter
from app.main import app
from app.models.abandoned_cart import AbandonedCart, CartStep
from app.models.base import Base
from app.services.recovery_service import RecoveryPipeline, build_recovery_pipeline

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
TEST_CRON_SECRET = "test-cron-secret"
TEST_BASE_URL = "https://shop.example.com"

DEFAULT_ITEMS = [
    {"name": "Oil Filter", "quantity": 2, "price": "24.99", "image": "https://cdn.example.com/oil.png"},
]

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database per test.

    NullPool gives every session its own connection, so concurrent claims race
    on the database the same way separate workers would.
    """
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'carts.db'}",
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for test setup and assertions."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Clock, settings, email
# ---------------------------------------------------------------------------


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now: datetime) -> Callable[[], datetime]:
    return lambda: fixed_now


@pytest.fixture
def recovery_settings() -> Settings:
    """Settings with the default 2h-24h window and a configured provider."""
    return Settings(
        resend_api_key="re_test_key",
        base_url=TEST_BASE_URL,
        store_name="Test Store",
        store_currency="USD",
        cron_secret=TEST_CRON_SECRET,
        recovery_min_age_minutes=120,
        recovery_max_age_minutes=1440,
        recovery_concurrency=5,
        email_send_timeout_seconds=2.0,
        recovery_run_budget_seconds=60.0,
    )


@pytest.fixture
def email_service() -> MagicMock:
    """Email service double that accepts every send."""
    service = MagicMock()
    service.is_configured = True
    service.send_recovery_email = AsyncMock(return_value="email_123")
    return service


@pytest.fixture
def pipeline(
    recovery_settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    email_service: MagicMock,
    clock: Callable[[], datetime],
) -> RecoveryPipeline:
    return build_recovery_pipeline(recovery_settings, session_factory, email_service, clock=clock)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    recovery_settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    email_service: MagicMock,
    pipeline: RecoveryPipeline,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client wired to the per-test database and mock email service."""
    app.dependency_overrides[get_settings] = lambda: recovery_settings
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_recovery_pipeline] = lambda: pipeline

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_CRON_SECRET}"}


# ---------------------------------------------------------------------------
# Model Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def cart_factory(db_session: AsyncSession, fixed_now: datetime) -> Callable[..., Any]:
    """Factory that creates AbandonedCart rows; ``age`` is measured from the fixed clock."""
    counter = {"n": 0}

    async def _create(
        *,
        cart_id: str | None = None,
        age: timedelta = timedelta(hours=5),
        customer_name: str | None = "Jane Doe",
        email: str | None = "jane@example.com",
        items: list[Any] | None = None,
        total: Decimal = Decimal("49.98"),
        email_sent: bool = False,
        email_sent_at: datetime | None = None,
        recovery_token: str | None = None,
        recovered: bool = False,
        status: str | None = None,
        last_error: str | None = None,
    ) -> AbandonedCart:
        counter["n"] += 1
        cart = AbandonedCart(
            id=cart_id or f"cart-{counter['n']}",
            customer_name=customer_name,
            email=email,
            items=DEFAULT_ITEMS if items is None else items,
            total=total,
            last_modified=fixed_now - age,
            last_step_reached=CartStep.SHIPPING_INFO,
            email_sent=email_sent,
            email_sent_at=email_sent_at,
            recovery_token=recovery_token,
            recovered=recovered,
            status=status,
            last_error=last_error,
        )
        db_session.add(cart)
        await db_session.commit()
        return cart

    return _create


@pytest.fixture
def load_cart(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Any]:
    """Read a cart back through a fresh session (bypasses the setup session's identity map)."""

    async def _load(cart_id: str) -> AbandonedCart | None:
        async with session_factory() as session:
            return await session.get(AbandonedCart, cart_id)

    return _load
