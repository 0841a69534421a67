"""Sales summaries over the order history.

Everything here is pure: functions take a snapshot of orders and a window
selector and return values, without touching storage.
"""

from datetime import datetime, timedelta

from .errors import InvalidWindowError
from .models import BestSeller, Order, SummaryResult
from .money import ZERO, quantize
from .utils import local_now, parse_timestamp

# Windows offered to staff: today, last 7 days, last 30 days, all time
STANDARD_WINDOWS: list[int | None] = [0, 7, 30, None]


def filter_orders(
    orders: list[Order], window_days: int | None, now: datetime | None = None
) -> list[Order]:
    """
    Select the orders created within a window, keeping their order.

    Args:
        orders: Orders to filter.
        window_days: 0 for the current local calendar day, n > 0 for the
            continuous range [now - n days, ...], None for no filtering.
        now: Reference time (defaults to the current time).

    Raises:
        InvalidWindowError: If window_days is negative.
    """
    if window_days is None:
        return list(orders)
    if isinstance(window_days, bool) or window_days < 0:
        raise InvalidWindowError(window_days)

    current = local_now(now)
    cutoff = current - timedelta(days=window_days)

    selected = []
    for order in orders:
        created = parse_timestamp(order.created_at)
        if created is None:
            continue
        if window_days == 0:
            if created.date() == current.date():
                selected.append(order)
        elif created >= cutoff:
            selected.append(order)
    return selected


def best_seller(orders: list[Order]) -> BestSeller | None:
    """Product with the highest total quantity; ties go to the first seen."""
    totals: dict[str, int] = {}
    names: dict[str, str] = {}
    for order in orders:
        for line in order.items:
            pid = line.product.id
            if pid not in totals:
                totals[pid] = 0
                names[pid] = line.product.name
            totals[pid] += line.quantity

    best: BestSeller | None = None
    for pid, quantity in totals.items():
        if best is None or quantity > best.quantity:
            best = BestSeller(product_id=pid, name=names[pid], quantity=quantity)
    return best


def highest_value_order(orders: list[Order]) -> Order | None:
    """Order with the greatest value; ties go to the first seen."""
    highest: Order | None = None
    for order in orders:
        if highest is None or order.value > highest.value:
            highest = order
    return highest


def summarize(
    history: list[Order], window_days: int | None, now: datetime | None = None
) -> SummaryResult:
    """
    Compute order count, revenue, best seller and highest-value order.

    Order values come from the exact stored amount when present, otherwise
    from a lenient parse of the display total (malformed totals count as 0).
    An empty window yields zero revenue and no best seller or top order.

    Args:
        history: Snapshot of the order history.
        window_days: 0 (today), a positive day count, or None (all time).
        now: Reference time (defaults to the current time).
    """
    selected = filter_orders(history, window_days, now)
    if not selected:
        return SummaryResult(window_days=window_days)

    revenue = quantize(sum((o.value for o in selected), ZERO))
    return SummaryResult(
        window_days=window_days,
        order_count=len(selected),
        total_revenue=revenue,
        best_seller=best_seller(selected),
        highest_value_order=highest_value_order(selected),
        orders=selected,
    )
