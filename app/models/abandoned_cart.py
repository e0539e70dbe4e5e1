"""AbandonedCart model: the shared cart store the recovery sweep reads and claims."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, DateTime, Enum, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, JSONType


class CartStep(str, enum.Enum):
    """Furthest checkout step the customer reached."""

    CART_PAGE = "cart_page"
    SHIPPING_INFO = "shipping_info"
    PAYMENT_SELECTION = "payment_selection"


class CartStatus(str, enum.Enum):
    """Lifecycle labels written by the recovery sweep (observability only)."""

    RECOVERY_EMAIL_PENDING = "recovery_email_pending"
    RECOVERY_EMAIL_SENT = "recovery_email_sent"
    RECOVERY_EMAIL_FAILED = "recovery_email_failed"
    RECOVERY_EMAIL_RELEASED = "recovery_email_released"


class AbandonedCart(Base):
    """One in-progress customer cart.

    Rows are created and updated by the storefront checkout flow. The recovery
    sweep only claims rows (``email_sent`` false -> true together with
    ``email_sent_at`` and ``recovery_token``) and writes ``status``/``last_error``.
    ``recovered`` belongs to the recovery landing page.
    """

    __tablename__ = "abandoned_carts"

    # Opaque id assigned by the storefront (user id or session id)
    id: Mapped[str] = mapped_column(String(128), primary_key=True)

    # Customer contact
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Cart contents
    items: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=0,
    )
    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    last_step_reached: Mapped[CartStep | None] = mapped_column(
        Enum(
            CartStep,
            name="cart_step",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )

    # Recovery tracking
    email_sent: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )
    email_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    recovery_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
    )
    recovered: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    recovered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_error: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<AbandonedCart {self.id} (email_sent={self.email_sent})>"
