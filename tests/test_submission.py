"""Tests for order numbering and submission."""

import threading
from decimal import Decimal

import pytest

from cafepos.cart import Cart
from cafepos.errors import EmptyCartError, StorageWriteError
from cafepos.pending import PendingOrderStore
from cafepos.storage import JsonFileStorage, MemoryStorage
from cafepos.submission import build_order, next_order_number, submit_order

from .conftest import ESPRESSO, LATTE, NOW, days_ago, make_order


class FailingStorage(MemoryStorage):
    """MemoryStorage whose writes always fail."""

    def set(self, key, value):
        raise StorageWriteError(key, "disk full")


def espresso_latte_cart() -> Cart:
    cart = Cart()
    cart.add_line(ESPRESSO)
    cart.add_line(ESPRESSO)
    cart.add_line(LATTE)
    return cart


class TestNextOrderNumber:
    def test_first_order_of_day(self):
        assert next_order_number([], NOW) == 1

    def test_counts_todays_orders(self):
        orders = [make_order("$25.00", days_ago(0, hours=h)) for h in (1, 2, 3)]
        assert next_order_number(orders, NOW) == 4

    def test_ignores_other_days(self):
        orders = [
            make_order("$25.00", days_ago(1)),
            make_order("$25.00", days_ago(2)),
            make_order("$25.00", days_ago(0, hours=1)),
        ]
        assert next_order_number(orders, NOW) == 2

    def test_ignores_unparsable_dates(self):
        orders = [make_order("$25.00", "not a date")]
        assert next_order_number(orders, NOW) == 1


class TestBuildOrder:
    def test_empty_cart_raises(self):
        with pytest.raises(EmptyCartError):
            build_order(Cart(), 1, NOW)

    def test_builds_from_cart(self):
        order = build_order(espresso_latte_cart(), 7, NOW)

        assert order.order_number == 7
        assert order.total == "$90.00"
        assert order.amount == Decimal("90.00")
        assert order.finished_at is None
        assert [line.product.id for line in order.items] == ["1", "3"]


class TestSubmitOrder:
    """Tests for submit_order."""

    def test_scenario_espresso_latte(self, pending):
        cart = espresso_latte_cart()

        order = submit_order(cart, pending, NOW)

        assert order.order_number == 1
        assert order.total == "$90.00"
        assert cart.is_empty
        assert pending.list_pending() == [order]

    def test_numbers_increase_within_day(self, pending):
        numbers = []
        for i in range(5):
            cart = Cart()
            cart.add_line(ESPRESSO)
            numbers.append(submit_order(cart, pending, days_ago(0, hours=5 - i)).order_number)

        assert numbers == [1, 2, 3, 4, 5]

    def test_numbering_restarts_next_day(self, pending):
        for _ in range(3):
            cart = Cart()
            cart.add_line(ESPRESSO)
            submit_order(cart, pending, days_ago(1))

        cart = Cart()
        cart.add_line(LATTE)
        order = submit_order(cart, pending, NOW)

        assert order.order_number == 1
        assert len(pending.list_pending()) == 4

    def test_empty_cart_raises(self, pending):
        with pytest.raises(EmptyCartError):
            submit_order(Cart(), pending, NOW)

        assert pending.list_pending() == []

    def test_write_failure_keeps_cart(self):
        pending = PendingOrderStore(FailingStorage())
        cart = espresso_latte_cart()

        with pytest.raises(StorageWriteError):
            submit_order(cart, pending, NOW)

        assert cart.quantity_of("1") == 2
        assert cart.quantity_of("3") == 1
        assert pending.list_pending() == []

    def test_items_are_snapshots(self, pending):
        cart = Cart()
        product = ESPRESSO.copy()
        cart.add_line(product)
        order = submit_order(cart, pending, NOW)

        product.price = Decimal("99")
        cart.add_line(product)

        stored = pending.list_pending()[0]
        assert stored.items[0].product.price == Decimal("25")
        assert stored.items == order.items

    def test_submission_time_is_utc(self, pending):
        cart = Cart()
        cart.add_line(ESPRESSO)
        order = submit_order(cart, pending, NOW)

        assert order.created_at.endswith("Z")

    def test_concurrent_submitters_get_distinct_numbers(self, temp_dir):
        data_dir = temp_dir / "data"
        results = []
        errors = []

        def submit():
            store = PendingOrderStore(JsonFileStorage(data_dir))
            for _ in range(5):
                cart = Cart()
                cart.add_line(ESPRESSO)
                try:
                    results.append(submit_order(cart, store, NOW).order_number)
                except Exception as e:
                    errors.append(e)

        threads = [threading.Thread(target=submit) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert sorted(results) == list(range(1, 21))
        assert len(PendingOrderStore(JsonFileStorage(data_dir)).list_pending()) == 20
