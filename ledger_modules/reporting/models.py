"""
Reporting Domain Models (``ledger_modules.reporting.models``).

Summary rows produced by grouping stored sales orders.  Every figure is a
plain sum of already-stored order totals.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Hashable
from uuid import UUID

from ledger_kernel.db.types import ZERO


@dataclass(frozen=True)
class SalesSummaryRow:
    """
    Totals for one group of orders.

    ``key`` is the group value: a ``date`` (daily), ``"YYYY-MM"`` (monthly),
    a party or employee id, ``(branch_id, date)`` for the branch-daily
    summary, or ``None`` for orders without a party/employee.
    """
    key: Hashable
    orders_count: int = 0
    subtotal_sum: Decimal = ZERO
    discount_sum: Decimal = ZERO
    tax_sum: Decimal = ZERO
    shipping_sum: Decimal = ZERO
    grand_total_sum: Decimal = ZERO
    paid_total_sum: Decimal = ZERO
    due_total_sum: Decimal = ZERO


@dataclass(frozen=True)
class BranchDailyKey:
    branch_id: UUID
    sales_date: date
