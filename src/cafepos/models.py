"""Data models for cafepos."""

import random
import string
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from .money import ZERO, format_money, parse_money, quantize, to_decimal


def _utc_now(now: datetime | None = None) -> str:
    """Return the given (or current) time as a UTC ISO 8601 string."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.astimezone()
    return now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new order ID."""
    return str(uuid.uuid4())


def _generate_product_id() -> str:
    """Generate a short random product ID (7 base-36 characters)."""
    alphabet = string.digits + string.ascii_lowercase
    return "".join(random.choices(alphabet, k=7))


def _parse_amount(value: Any) -> Decimal | None:
    """Stored exact amount, or None when it is missing or unreadable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _price_to_json(price: Decimal) -> int | float:
    # Prices are plain JSON numbers in the menu blob
    if price == price.to_integral_value():
        return int(price)
    return float(price)


@dataclass
class Product:
    """A purchasable menu item."""

    id: str
    name: str
    price: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": _price_to_json(self.price),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        name = data["name"]
        if not isinstance(name, str):
            raise TypeError(f"product name must be a string, not {type(name).__name__}")
        price = to_decimal(data["price"])
        if not price.is_finite():
            raise ValueError(f"product price must be finite, not {price}")
        return cls(id=str(data["id"]), name=name, price=price)

    def copy(self) -> "Product":
        return Product(id=self.id, name=self.name, price=self.price)


@dataclass
class CartLine:
    """One product in a cart or order, with its quantity and free-text notes."""

    product: Product
    quantity: int = 1
    notes: str = ""

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartLine":
        return cls(
            product=Product.from_dict(data["product"]),
            quantity=int(data.get("quantity", 1)),
            notes=str(data.get("notes") or ""),
        )

    def copy(self) -> "CartLine":
        return CartLine(product=self.product.copy(), quantity=self.quantity, notes=self.notes)


@dataclass
class Order:
    """A submitted order.

    ``total`` is the formatted display string; ``amount`` is the exact value
    it was formatted from. Records written before ``amount`` existed only
    carry ``total``, which is then parsed leniently.
    """

    id: str
    order_number: int
    items: list[CartLine]
    total: str
    created_at: str
    amount: Decimal | None = None
    finished_at: str | None = None

    @property
    def value(self) -> Decimal:
        """Exact order value, falling back to parsing the display total."""
        if self.amount is not None:
            return self.amount
        return parse_money(self.total)

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "orderNumber": self.order_number,
            "items": [line.to_dict() for line in self.items],
            "total": self.total,
            "createdAt": self.created_at,
        }
        if self.amount is not None:
            result["amount"] = f"{self.amount:.2f}"
        if self.finished_at is not None:
            result["finishedAt"] = self.finished_at
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=str(data["id"]),
            order_number=int(data.get("orderNumber", 0)),
            items=[CartLine.from_dict(i) for i in data.get("items", [])],
            total=str(data.get("total") or ""),
            created_at=str(data.get("createdAt") or ""),
            amount=_parse_amount(data.get("amount")),
            finished_at=None if data.get("finishedAt") is None else str(data["finishedAt"]),
        )

    @classmethod
    def create(
        cls,
        order_number: int,
        items: list[CartLine],
        now: datetime | None = None,
    ) -> "Order":
        """Create a new order with generated ID, copied lines and computed total."""
        lines = [line.copy() for line in items]
        amount = quantize(sum((line.subtotal for line in lines), ZERO))
        return cls(
            id=_generate_id(),
            order_number=order_number,
            items=lines,
            total=format_money(amount),
            created_at=_utc_now(now),
            amount=amount,
        )


# Models for summaries


@dataclass(frozen=True)
class BestSeller:
    """The product sold the most within a summary window."""

    product_id: str
    name: str
    quantity: int


@dataclass
class SummaryResult:
    """Aggregated sales figures for a window of the order history."""

    window_days: int | None
    order_count: int = 0
    total_revenue: Decimal = ZERO
    best_seller: BestSeller | None = None
    highest_value_order: Order | None = None
    orders: list[Order] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.order_count == 0

    def to_dict(self) -> dict[str, Any]:
        best = None
        if self.best_seller is not None:
            best = {
                "product_id": self.best_seller.product_id,
                "name": self.best_seller.name,
                "quantity": self.best_seller.quantity,
            }
        highest = None
        if self.highest_value_order is not None:
            highest = {
                "id": self.highest_value_order.id,
                "orderNumber": self.highest_value_order.order_number,
                "total": self.highest_value_order.total,
                "amount": f"{self.highest_value_order.value:.2f}",
            }
        return {
            "window_days": self.window_days,
            "order_count": self.order_count,
            "total_revenue": f"{self.total_revenue:.2f}",
            "best_seller": best,
            "highest_value_order": highest,
            "is_empty": self.is_empty,
        }
