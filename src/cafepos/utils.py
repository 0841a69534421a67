"""Utility functions for cafepos."""

import re
from dataclasses import dataclass
from datetime import date, datetime

from . import config
from .errors import InvalidProductNameError, InvalidWindowError, ValidationError
from .models import Order
from .money import format_money


def parse_timestamp(value: str) -> datetime | None:
    """
    Parse an ISO 8601 timestamp into an aware local datetime.

    A trailing 'Z' is accepted; naive timestamps are taken as local time.
    Returns None for empty or malformed input.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed.astimezone()


def local_date(value: str) -> date | None:
    """Local calendar date of an ISO timestamp, or None if unparsable."""
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def local_now(now: datetime | None = None) -> datetime:
    """Return ``now`` (or the current time) as an aware local datetime."""
    if now is None:
        return datetime.now().astimezone()
    return now.astimezone()


def normalize_product_name(name: str) -> str:
    """
    Normalize a product name for the menu.

    Lowercases, collapses whitespace runs, strips, and capitalizes the
    first character: "  iced   LATTE " -> "Iced latte".

    Raises:
        InvalidProductNameError: If nothing remains after normalization.
    """
    if not isinstance(name, str):
        raise InvalidProductNameError(str(name))
    cleaned = re.sub(r"\s+", " ", name.lower()).strip()
    if not cleaned:
        raise InvalidProductNameError(name)
    return cleaned[0].upper() + cleaned[1:]


@dataclass(frozen=True)
class ItemSpec:
    """A cart line requested on the command line."""

    product_id: str
    quantity: int = 1
    notes: str = ""


def parse_item_spec(spec: str) -> ItemSpec:
    """
    Parse an item spec into an ItemSpec.

    Formats:
    - "3"              -> product 3, quantity 1
    - "3:2"            -> product 3, quantity 2
    - "3:2:no sugar"   -> product 3, quantity 2, with notes

    Raises:
        ValidationError: If the format or quantity is invalid.
    """
    match = re.match(r"^([^:]+)(?::(\d+))?(?::(.*))?$", spec.strip())
    if not match:
        raise ValidationError(f"Invalid item: {spec!r} (expected 'ID[:QTY[:NOTE]]')")

    product_id = match.group(1).strip()
    quantity = int(match.group(2)) if match.group(2) else 1
    notes = match.group(3) or ""

    if quantity < 1 or quantity > config.MAX_LINE_QUANTITY:
        raise ValidationError(
            f"Invalid item: {spec!r} (quantity must be between 1 and {config.MAX_LINE_QUANTITY})"
        )

    return ItemSpec(product_id=product_id, quantity=quantity, notes=notes)


WINDOW_ALIASES: dict[str, int | None] = {
    "today": 0,
    "hoy": 0,
    "all": None,
    "todos": None,
}


def parse_window(value: str | int | None) -> int | None:
    """
    Parse a summary window selector.

    Accepts "today" (0), a non-negative day count, or "all" (None).

    Raises:
        InvalidWindowError: If the selector is not recognized.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidWindowError(value)
    if isinstance(value, int):
        if value < 0:
            raise InvalidWindowError(value)
        return value

    text = str(value).strip().lower()
    if text in WINDOW_ALIASES:
        return WINDOW_ALIASES[text]
    if text.isdigit():
        return int(text)
    raise InvalidWindowError(value)


def format_order(order: Order, verbose: bool = False) -> str:
    """Format an order for display."""
    created = parse_timestamp(order.created_at)
    when = created.strftime("%Y-%m-%d %H:%M") if created else order.created_at

    result = f"#{order.order_number}  {truncate_id(order.id)}  {when}  {order.total}"

    if order.finished_at:
        finished = parse_timestamp(order.finished_at)
        if finished:
            result += f"  (ready {finished.strftime('%H:%M')})"

    if verbose:
        for line in order.items:
            result += f"\n    {line.product.name} x{line.quantity}  {format_money(line.subtotal)}"
            if line.notes.strip():
                result += f"\n      Note: {line.notes}"

    return result


def truncate_id(order_id: str) -> str:
    """Truncate an order ID for display."""
    return order_id[:8]
