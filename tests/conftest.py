"""Pytest fixtures for cafepos tests."""

import tempfile
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from cafepos.catalog import CatalogStore
from cafepos.history import HistoryStore
from cafepos.models import CartLine, Order, Product, _utc_now
from cafepos.pending import PendingOrderStore
from cafepos.storage import JsonFileStorage, MemoryStorage

# Fixed local reference time used by time-dependent tests
NOW = datetime(2026, 10, 19, 12, 0).astimezone()

ESPRESSO = Product(id="1", name="Espresso", price=Decimal("25"))
LATTE = Product(id="3", name="Latte", price=Decimal("40"))
MOKA = Product(id="5", name="Moka", price=Decimal("45"))


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def file_storage(temp_dir):
    """JSON file storage in a temporary data directory."""
    return JsonFileStorage(temp_dir / "data")


@pytest.fixture
def storage():
    """In-memory storage."""
    return MemoryStorage()


@pytest.fixture
def catalog(storage):
    return CatalogStore(storage)


@pytest.fixture
def pending(storage):
    return PendingOrderStore(storage)


@pytest.fixture
def history(storage):
    return HistoryStore(storage)


def make_order(
    total: str,
    created_at: datetime | str,
    items: list[CartLine] | None = None,
    order_number: int = 1,
    amount: Decimal | None = None,
    order_id: str | None = None,
) -> Order:
    """Build an order directly, bypassing the cart."""
    if isinstance(created_at, datetime):
        created_at = _utc_now(created_at)
    return Order(
        id=order_id or f"order-{total}-{created_at}",
        order_number=order_number,
        items=items if items is not None else [CartLine(product=ESPRESSO.copy())],
        total=total,
        created_at=created_at,
        amount=amount,
    )


def days_ago(days: float, hours: float = 0) -> datetime:
    """Local time relative to NOW."""
    return NOW - timedelta(days=days, hours=hours)
