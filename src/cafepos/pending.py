"""Pending order storage and the fulfillment transition."""

import logging
from contextlib import ExitStack
from datetime import datetime

from . import config
from .history import HistoryStore
from .models import Order, _utc_now
from .storage import Storage, decode_records, load_list

logger = logging.getLogger(__name__)


class PendingOrderStore:
    """Manages submitted orders that haven't been marked ready yet."""

    def __init__(self, storage: Storage, key: str = config.PENDING_KEY):
        self.storage = storage
        self.key = key

    def _load(self) -> list[Order]:
        return decode_records(self.key, load_list(self.storage, self.key), Order.from_dict)

    def _save(self, orders: list[Order]) -> None:
        self.storage.set(self.key, [o.to_dict() for o in orders])

    def list_pending(self) -> list[Order]:
        """List pending orders, oldest first."""
        return self._load()

    def get(self, order_id: str) -> Order | None:
        for o in self._load():
            if o.id == order_id:
                return o
        return None

    def append(self, order: Order) -> None:
        """Append an order. Caller holds the storage lock."""
        orders = self._load()
        orders.append(order)
        self._save(orders)

    def mark_ready(
        self, order_id: str, history: HistoryStore, now: datetime | None = None
    ) -> Order | None:
        """
        Move an order from pending to the front of the history.

        The history write is committed before the pending write, so an
        interruption between the two leaves the order in both lists rather
        than in neither. A later call then only drops the pending copy.

        Args:
            order_id: Order ID.
            history: History store receiving the order.
            now: Completion time (defaults to the current time).

        Returns:
            The finished Order, or None if no pending order has that ID.

        Raises:
            StorageReadError: If either list can't be read.
            StorageWriteError: If either list can't be written.
        """
        with ExitStack() as stack:
            stack.enter_context(self.storage.lock())
            if history.storage is not self.storage:
                stack.enter_context(history.storage.lock())

            orders = self._load()
            index = next((i for i, o in enumerate(orders) if o.id == order_id), None)
            if index is None:
                logger.warning("Order %s is not pending, nothing to mark ready", order_id)
                return None

            order = orders.pop(index)
            order.finished_at = _utc_now(now)

            history.prepend(order)
            self._save(orders)

        logger.info("Order #%d (%s) moved to history", order.order_number, order.id)
        return order
