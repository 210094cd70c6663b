"""
Reporting Module (``ledger_modules.reporting``).

Read-only projections over the order ledger.  No mutation and no
independent arithmetic beyond grouping and summing stored totals.
"""

from ledger_modules.reporting.helpers import group_orders
from ledger_modules.reporting.models import BranchDailyKey, SalesSummaryRow
from ledger_modules.reporting.selectors import SalesReportSelector

__all__ = ["group_orders", "BranchDailyKey", "SalesSummaryRow", "SalesReportSelector"]
