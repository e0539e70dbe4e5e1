"""Recovery email rendering. Pure: no store, network or clock access."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

# Jinja2 template environment
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"
_jinja_env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=True)

PLACEHOLDER_IMAGE_URL = "https://placehold.co/80x80/eeeeee/999999?text=Item"
PLACEHOLDER_NAME = "Item"
PRICE_UNAVAILABLE = "Price unavailable"

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class RenderedItem:
    name: str
    image_url: str
    quantity: int
    unit_price: str
    line_total: str | None


def _parse_price(value: Any) -> Decimal | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value))
        if not price.is_finite() or price < 0:
            return None
        # Values too large for the context precision cannot be quantized
        return price.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return None


def _parse_quantity(value: Any) -> int:
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity > 0 else 1


def _format_money(amount: Decimal, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


def normalize_item(item: Any, currency: str) -> RenderedItem:
    """Turn a stored line item into display values, substituting placeholders for bad fields."""
    if not isinstance(item, dict):
        item = {}

    name = str(item.get("name") or "").strip() or PLACEHOLDER_NAME
    image = item.get("image")
    image_url = image.strip() if isinstance(image, str) and image.strip() else PLACEHOLDER_IMAGE_URL
    quantity = _parse_quantity(item.get("quantity", 1))

    # Sale price wins when it is set and positive
    price = _parse_price(item.get("salePrice"))
    if not price:
        price = _parse_price(item.get("price"))

    if price is None:
        return RenderedItem(name, image_url, quantity, PRICE_UNAVAILABLE, None)
    return RenderedItem(
        name=name,
        image_url=image_url,
        quantity=quantity,
        unit_price=_format_money(price, currency),
        line_total=_format_money(price * quantity, currency) if quantity > 1 else None,
    )


def render_recovery_email(
    items: list[Any] | None,
    recovery_url: str,
    *,
    store_name: str,
    currency: str,
    customer_name: str | None = None,
    total: Any = None,
) -> str:
    """Render the self-contained, inline-styled HTML body of a recovery email."""
    first_name = (customer_name or "").strip().split(" ")[0] or None
    if first_name and first_name.lower() == "guest":
        first_name = None

    total_amount = _parse_price(total)
    template = _jinja_env.get_template("cart_recovery.html")
    return template.render(
        store_name=store_name,
        first_name=first_name,
        items=[normalize_item(item, currency) for item in (items or [])],
        total=_format_money(total_amount, currency) if total_amount else None,
        recovery_url=recovery_url,
    )
