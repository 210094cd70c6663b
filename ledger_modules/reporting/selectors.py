"""
Reporting Aggregator: read-only sales summaries.

Each summary groups the same filtered order set that
``SalesOrderSelector.ledger_totals`` sums, so the rows of any summary
partition that set exactly.
"""

from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.base import BaseSelector
from ledger_modules.reporting.helpers import group_orders, month_key
from ledger_modules.reporting.models import BranchDailyKey, SalesSummaryRow
from ledger_modules.sales.models import OrderFilter
from ledger_modules.sales.selectors import SalesOrderSelector

logger = get_logger("modules.reporting.selectors")


def _by_grand_total(rows) -> list[SalesSummaryRow]:
    # largest first; None key (no party/employee) last among equals
    return sorted(
        rows,
        key=lambda r: (-r.grand_total_sum, r.key is None, str(r.key)),
    )


class SalesReportSelector(BaseSelector):
    """Daily, monthly, party and employee summaries over sales orders."""

    def __init__(self, session):
        super().__init__(session)
        self._orders = SalesOrderSelector(session)

    def _group(self, name: str, order_filter: OrderFilter | None, key_fn):
        orders = self._orders.filtered_orders(order_filter)
        groups = group_orders(orders, key_fn)
        logger.debug(
            "sales_summary_computed",
            extra={"summary": name, "orders_count": len(orders), "groups": len(groups)},
        )
        return groups

    def daily_summary(self, order_filter: OrderFilter | None = None) -> list[SalesSummaryRow]:
        groups = self._group("daily", order_filter, lambda o: o.order_date)
        return [groups[k] for k in sorted(groups)]

    def monthly_summary(self, order_filter: OrderFilter | None = None) -> list[SalesSummaryRow]:
        groups = self._group("monthly", order_filter, month_key)
        return [groups[k] for k in sorted(groups)]

    def party_summary(self, order_filter: OrderFilter | None = None) -> list[SalesSummaryRow]:
        groups = self._group("party", order_filter, lambda o: o.party_id)
        return _by_grand_total(groups.values())

    def employee_summary(self, order_filter: OrderFilter | None = None) -> list[SalesSummaryRow]:
        groups = self._group("employee", order_filter, lambda o: o.employee_id)
        return _by_grand_total(groups.values())

    def branch_daily_summary(self, order_filter: OrderFilter | None = None) -> list[SalesSummaryRow]:
        """Per branch and day, the shape of the sales summary report."""
        groups = self._group(
            "branch_daily",
            order_filter,
            lambda o: BranchDailyKey(branch_id=o.branch_id, sales_date=o.order_date),
        )
        return [
            groups[k]
            for k in sorted(groups, key=lambda k: (k.sales_date, str(k.branch_id)))
        ]
