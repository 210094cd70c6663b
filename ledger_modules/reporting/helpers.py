"""
Pure grouping of order totals for the reporting module.

No I/O and no recomputation: each order contributes its stored figures
unchanged, so the groups of a summary always add up to the ledger totals
of the same order set.
"""

from collections.abc import Callable, Hashable, Iterable
from typing import Any

from ledger_kernel.db.types import ZERO
from ledger_modules.reporting.models import SalesSummaryRow

_SUMMED = (
    ("subtotal_sum", "subtotal"),
    ("discount_sum", "discount_total"),
    ("tax_sum", "tax_total"),
    ("shipping_sum", "shipping_total"),
    ("grand_total_sum", "grand_total"),
    ("paid_total_sum", "paid_total"),
    ("due_total_sum", "due_total"),
)


def group_orders(
    orders: Iterable[Any],
    key_fn: Callable[[Any], Hashable],
) -> dict[Hashable, SalesSummaryRow]:
    """
    Sum order totals per group key.

    ``orders`` are objects carrying the stored total attributes
    (``subtotal``, ``discount_total``, ``tax_total``, ``shipping_total``,
    ``grand_total``, ``paid_total``, ``due_total``).
    """
    sums: dict[Hashable, dict[str, Any]] = {}
    for order in orders:
        key = key_fn(order)
        acc = sums.setdefault(key, {"orders_count": 0, **{name: ZERO for name, _ in _SUMMED}})
        acc["orders_count"] += 1
        for name, attr in _SUMMED:
            acc[name] += getattr(order, attr)
    return {key: SalesSummaryRow(key=key, **acc) for key, acc in sums.items()}


def month_key(order) -> str:
    return f"{order.order_date.year:04d}-{order.order_date.month:02d}"
