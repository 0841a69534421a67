"""Custom exceptions for cafepos."""


class CafePosError(Exception):
    """Base exception for all cafepos errors."""

    pass


# --- Validation ---


class ValidationError(CafePosError):
    """Raised when user input is rejected before any state changes."""

    pass


class EmptyCartError(ValidationError):
    """Raised when submitting a cart with no lines."""

    def __init__(self):
        super().__init__("Cart is empty. Add at least one product before submitting.")


class InvalidProductNameError(ValidationError):
    """Raised when a product name is empty after normalization."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid product name: {name!r}")


class InvalidPriceError(ValidationError):
    """Raised when a price is not a number greater than zero."""

    def __init__(self, price: object, reason: str | None = None):
        self.price = price
        msg = f"Invalid price: {price!r}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class InvalidWindowError(ValidationError):
    """Raised when a summary window is not 'today', a day count or 'all'."""

    def __init__(self, window: object):
        self.window = window
        super().__init__(
            f"Invalid summary window: {window!r}. Use 'today', a number of days or 'all'."
        )


# --- Storage ---


class StorageError(CafePosError):
    """Base class for persistence failures."""

    _action = "Storage access to"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"{self._action} '{key}' failed: {reason}")


class StorageReadError(StorageError):
    """Raised when a blob cannot be read or decoded."""

    _action = "Reading"


class StorageWriteError(StorageError):
    """Raised when a blob cannot be written or deleted."""

    _action = "Writing"


# --- Lookups ---


class NotFoundError(CafePosError):
    """Base class for missing records."""

    pass


class OrderNotFoundError(NotFoundError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class ProductNotFoundError(NotFoundError):
    """Raised when a product ID doesn't exist in the menu."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


# --- Irreversible actions ---


class ConfirmationRequiredError(CafePosError):
    """Raised when an irreversible action is attempted without confirmation."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Refusing to {action} without explicit confirmation.")


class EmptyMenuError(CafePosError):
    """Raised when clearing a menu that has no products."""

    def __init__(self):
        super().__init__("The menu is already empty.")


class NothingToExportError(CafePosError):
    """Raised when exporting an empty order history."""

    def __init__(self):
        super().__init__("There are no orders in the history to export.")
