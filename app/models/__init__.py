"""SQLAlchemy models."""

from app.models.abandoned_cart import AbandonedCart, CartStatus, CartStep
from app.models.base import Base

__all__ = [
    # Base
    "Base",
    # Cart Recovery
    "AbandonedCart",
    "CartStatus",
    "CartStep",
]
