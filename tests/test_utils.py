"""Tests for utility functions."""

from datetime import datetime, timezone

import pytest

from cafepos.errors import InvalidWindowError, ValidationError
from cafepos.models import CartLine, _utc_now
from cafepos.utils import (
    ItemSpec,
    format_order,
    local_date,
    parse_item_spec,
    parse_timestamp,
    parse_window,
    truncate_id,
)

from .conftest import ESPRESSO, LATTE, NOW, make_order


class TestParseItemSpec:
    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("3", ItemSpec("3", 1, "")),
            ("3:2", ItemSpec("3", 2, "")),
            ("3:2:no sugar", ItemSpec("3", 2, "no sugar")),
            ("abc1234:1:extra: hot", ItemSpec("abc1234", 1, "extra: hot")),
            (" 5 ", ItemSpec("5", 1, "")),
        ],
    )
    def test_valid(self, spec, expected):
        assert parse_item_spec(spec) == expected

    @pytest.mark.parametrize("spec", ["", ":2", "3:0", "3:1000", "  "])
    def test_invalid(self, spec):
        with pytest.raises(ValidationError):
            parse_item_spec(spec)


class TestParseWindow:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("today", 0),
            ("HOY", 0),
            ("7", 7),
            (" 30 ", 30),
            ("all", None),
            ("todos", None),
            (None, None),
            (7, 7),
            (0, 0),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_window(value) == expected

    @pytest.mark.parametrize("value", ["-1", "week", "", -3, True])
    def test_invalid(self, value):
        with pytest.raises(InvalidWindowError):
            parse_window(value)


class TestParseTimestamp:
    def test_z_suffix(self):
        parsed = parse_timestamp("2026-10-19T10:00:00.000Z")
        assert parsed == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)
        assert parsed.tzinfo is not None

    def test_offset(self):
        parsed = parse_timestamp("2026-10-19T10:00:00-06:00")
        assert parsed == datetime(2026, 10, 19, 16, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "yesterday", "2026-13-40T00:00:00Z"])
    def test_malformed(self, value):
        assert parse_timestamp(value) is None

    def test_round_trip_with_utc_now(self):
        assert parse_timestamp(_utc_now(NOW)) == NOW

    def test_local_date(self):
        assert local_date(_utc_now(NOW)) == NOW.date()
        assert local_date("garbage") is None


class TestFormatOrder:
    def test_one_line(self):
        order = make_order("$90.00", NOW, order_number=3, order_id="0123456789abcdef")

        text = format_order(order)

        assert text.startswith("#3  01234567  ")
        assert text.endswith("$90.00")

    def test_verbose_lists_items_and_notes(self):
        order = make_order(
            "$90.00",
            NOW,
            items=[
                CartLine(product=ESPRESSO.copy(), quantity=2),
                CartLine(product=LATTE.copy(), notes="oat milk"),
            ],
        )

        text = format_order(order, verbose=True)

        assert "Espresso x2  $50.00" in text
        assert "Latte x1  $40.00" in text
        assert "Note: oat milk" in text

    def test_finished_order_shows_ready_time(self):
        order = make_order("$25.00", NOW)
        order.finished_at = _utc_now(NOW)

        assert "(ready " in format_order(order)

    def test_truncate_id(self):
        assert truncate_id("0123456789") == "01234567"
