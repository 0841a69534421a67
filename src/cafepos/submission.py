"""Order numbering and submission."""

import logging
from datetime import datetime

from .cart import Cart
from .errors import EmptyCartError
from .models import Order
from .pending import PendingOrderStore
from .utils import local_date, local_now

logger = logging.getLogger(__name__)


def next_order_number(pending_orders: list[Order], now: datetime | None = None) -> int:
    """
    Day-scoped display number for the next order.

    Counts pending orders created on the same local calendar day as now,
    plus one. Numbers restart every day and are not unique identifiers.
    """
    today = local_now(now).date()
    return sum(1 for o in pending_orders if local_date(o.created_at) == today) + 1


def build_order(cart: Cart, order_number: int, now: datetime | None = None) -> Order:
    """
    Build an order from a snapshot of the cart.

    Raises:
        EmptyCartError: If the cart has no lines.
    """
    if cart.is_empty:
        raise EmptyCartError()
    return Order.create(order_number=order_number, items=cart.lines, now=local_now(now))


def submit_order(cart: Cart, pending: PendingOrderStore, now: datetime | None = None) -> Order:
    """
    Persist the cart as a new pending order and clear the cart.

    Reading the pending list, numbering the order and writing it back all
    happen under the storage lock, so concurrent submitters get distinct
    order numbers. The cart is cleared only after the write succeeds.

    Args:
        cart: Cart with at least one line. The caller has confirmed submission.
        pending: Pending order store.
        now: Submission time (defaults to the current time).

    Returns:
        The submitted Order.

    Raises:
        EmptyCartError: If the cart has no lines.
        StorageReadError: If the pending list can't be read.
        StorageWriteError: If the order can't be saved; the cart is unchanged.
    """
    if cart.is_empty:
        raise EmptyCartError()

    with pending.storage.lock():
        orders = pending.list_pending()
        order = build_order(cart, next_order_number(orders, now), now)
        pending.append(order)

    cart.clear()
    logger.info("Submitted order #%d (%s) for %s", order.order_number, order.id, order.total)
    return order
