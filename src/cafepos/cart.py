"""In-memory cart for the order being assembled."""

from decimal import Decimal

from .models import CartLine, Product
from .money import ZERO, format_money, quantize


class Cart:
    """Product lines for one order, before submission.

    Holds at most one line per product id. A line whose quantity would drop
    to zero is removed. The cart is never persisted.
    """

    def __init__(self) -> None:
        self._lines: list[CartLine] = []

    def _find(self, product_id: str) -> CartLine | None:
        for line in self._lines:
            if line.product.id == product_id:
                return line
        return None

    @property
    def lines(self) -> list[CartLine]:
        """Copies of the current lines, in the order products were first added."""
        return [line.copy() for line in self._lines]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def quantity_of(self, product_id: str) -> int:
        line = self._find(product_id)
        return line.quantity if line else 0

    def add_line(self, product: Product) -> CartLine:
        """Add one unit of product, creating its line if needed."""
        line = self._find(product.id)
        if line is None:
            line = CartLine(product=product.copy(), quantity=1, notes="")
            self._lines.append(line)
        else:
            line.quantity += 1
        return line

    def remove_one(self, product_id: str) -> None:
        """Remove one unit; the line goes away when its last unit does."""
        line = self._find(product_id)
        if line is None:
            return
        if line.quantity <= 1:
            self._lines.remove(line)
        else:
            line.quantity -= 1

    def delete_line(self, product_id: str) -> None:
        line = self._find(product_id)
        if line is not None:
            self._lines.remove(line)

    def set_note(self, product_id: str, text: str) -> None:
        line = self._find(product_id)
        if line is not None:
            line.notes = text

    def clear(self) -> None:
        self._lines = []

    def total(self) -> Decimal:
        """Sum of quantity * price over all lines."""
        return quantize(sum((line.subtotal for line in self._lines), ZERO))

    def formatted_total(self) -> str:
        return format_money(self.total())
