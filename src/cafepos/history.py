"""Order history storage for cafepos."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from . import config
from .errors import (
    ConfirmationRequiredError,
    NothingToExportError,
    OrderNotFoundError,
    StorageWriteError,
)
from .models import Order
from .storage import Storage, decode_records, load_list

logger = logging.getLogger(__name__)


class HistoryStore:
    """Manages fulfilled orders, most recent first."""

    def __init__(self, storage: Storage, key: str = config.HISTORY_KEY):
        self.storage = storage
        self.key = key

    def _load_data(self) -> list[dict]:
        return load_list(self.storage, self.key)

    def _load(self) -> list[Order]:
        return decode_records(self.key, self._load_data(), Order.from_dict)

    def _save(self, orders: list[Order]) -> None:
        self.storage.set(self.key, [o.to_dict() for o in orders])

    def list(self) -> list[Order]:
        """List fulfilled orders, most recent first."""
        return self._load()

    def contains(self, order_id: str) -> bool:
        return any(o.id == order_id for o in self._load())

    def get(self, order_id: str) -> Order:
        """
        Get a finished order by ID.

        Raises:
            OrderNotFoundError: If the order is not in the history.
        """
        for o in self._load():
            if o.id == order_id:
                return o
        raise OrderNotFoundError(order_id)

    def prepend(self, order: Order) -> None:
        """
        Insert an order at the front of the history.

        Caller holds the storage lock. An order already present is not
        inserted twice.
        """
        orders = self._load()
        if any(o.id == order.id for o in orders):
            return
        self._save([order] + orders)

    def delete_one(self, order_id: str, confirm: bool = False) -> Order | None:
        """
        Permanently delete one order from the history.

        Args:
            order_id: Order ID.
            confirm: Must be True; deletion can't be undone.

        Returns:
            The removed Order, or None if it wasn't in the history.

        Raises:
            ConfirmationRequiredError: If confirm is False.
        """
        if not confirm:
            raise ConfirmationRequiredError("delete the order")

        with self.storage.lock():
            orders = self._load()
            for i, o in enumerate(orders):
                if o.id == order_id:
                    removed = orders.pop(i)
                    self._save(orders)
                    logger.info("Deleted order %s from history", order_id)
                    return removed

        logger.warning("Order %s not in history, nothing to delete", order_id)
        return None

    def clear_all(self, confirm: bool = False) -> int:
        """
        Permanently delete the whole history.

        Returns:
            Number of orders deleted.

        Raises:
            ConfirmationRequiredError: If confirm is False.
        """
        if not confirm:
            raise ConfirmationRequiredError("clear the order history")

        with self.storage.lock():
            count = len(self._load_data())
            self.storage.delete(self.key)

        logger.info("Cleared order history (%d orders)", count)
        return count

    def export_snapshot(self) -> str:
        """Pretty-printed JSON array of the full history, as stored."""
        return json.dumps(self._load_data(), indent=2, ensure_ascii=False)

    def export_to_file(self, directory: Path | None = None, now: datetime | None = None) -> Path:
        """
        Write a timestamped backup of the history.

        Args:
            directory: Target directory (defaults to the configured export dir).
            now: Timestamp used in the file name (defaults to the current time).

        Returns:
            Path of the written file.

        Raises:
            NothingToExportError: If the history is empty.
        """
        if not self._load_data():
            raise NothingToExportError()

        directory = Path(directory) if directory is not None else config.export_dir()
        directory.mkdir(parents=True, exist_ok=True)

        if now is None:
            now = datetime.now(timezone.utc)
        path = directory / f"{config.EXPORT_PREFIX}{int(now.timestamp() * 1000)}.json"

        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.export_snapshot())
                f.write("\n")
        except OSError as e:
            logger.error("Could not export order history to %s: %s", path, e)
            raise StorageWriteError(path.name, str(e)) from e

        logger.info("Exported order history to %s", path)
        return path
