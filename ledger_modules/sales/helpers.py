"""
Pure order-total computations for the sales module.

No I/O.  The service feeds these from rows read inside its transaction and
writes the results back in the same transaction.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.db.types import ZERO

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    grand_total: Decimal
    paid_total: Decimal
    due_total: Decimal


def line_total(
    quantity: Decimal,
    unit_price: Decimal,
    discount_amount: Decimal = ZERO,
    discount_percent: Decimal = ZERO,
) -> Decimal:
    """
    Net value of one order line, floored at zero.

        base  = unit_price * quantity
        total = max(base - discount_amount - base * discount_percent / 100, 0)
    """
    base = unit_price * quantity
    total = base - discount_amount - base * discount_percent / HUNDRED
    return max(total, ZERO)


def compute_order_totals(
    item_totals: Iterable[Decimal],
    discount_total: Decimal,
    tax_total: Decimal,
    shipping_total: Decimal,
    payment_amounts: Iterable[Decimal],
) -> OrderTotals:
    """
    Derive the order's totals from its lines and payments.

    ``due_total`` is not clamped: an overpaid order carries a negative due
    (a credit in the customer's favour).
    """
    subtotal = sum(item_totals, ZERO)
    grand_total = max(subtotal - discount_total + tax_total + shipping_total, ZERO)
    paid_total = sum(payment_amounts, ZERO)
    return OrderTotals(
        subtotal=subtotal,
        grand_total=grand_total,
        paid_total=paid_total,
        due_total=grand_total - paid_total,
    )
