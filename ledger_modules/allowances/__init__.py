"""
Allowances Module (``ledger_modules.allowances``).

Employee allowance headers and items.  ``header.total`` always equals the
sum of its items' ``total_value``.
"""

from ledger_modules.allowances.models import (
    AllowanceItemRequest,
    AllowanceItemType,
    AllowanceRequest,
    EmployeeAllowance,
    EmployeeAllowanceItem,
)
from ledger_modules.allowances.selectors import AllowanceSelector
from ledger_modules.allowances.service import AllowanceService

__all__ = [
    "AllowanceItemRequest",
    "AllowanceItemType",
    "AllowanceRequest",
    "EmployeeAllowance",
    "EmployeeAllowanceItem",
    "AllowanceSelector",
    "AllowanceService",
]
