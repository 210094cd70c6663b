"""
Payroll Module (``ledger_modules.payroll``).

Responsibility
--------------
Salary profiles and the payroll engine: run creation, payslip generation,
locking, approval and payment.

Invariants
----------
- At most one active salary profile per employee, enforced on write.
- Run totals always equal the sum of the run's items.
- Items are regenerated only while the run is draft.
"""

from ledger_modules.payroll.config import PayrollConfig
from ledger_modules.payroll.helpers import compute_payslip
from ledger_modules.payroll.models import (
    CreateRunRequest,
    PayrollRun,
    PayrollRunItem,
    Payslip,
    ProfileRequest,
    ProfileUpdate,
    RunStatus,
    SalaryProfile,
)
from ledger_modules.payroll.selectors import PayrollSelector
from ledger_modules.payroll.service import PayrollService
from ledger_modules.payroll.workflows import PAYROLL_RUN_WORKFLOW

__all__ = [
    "PayrollConfig",
    "compute_payslip",
    "CreateRunRequest",
    "PayrollRun",
    "PayrollRunItem",
    "Payslip",
    "ProfileRequest",
    "ProfileUpdate",
    "RunStatus",
    "SalaryProfile",
    "PayrollSelector",
    "PayrollService",
    "PAYROLL_RUN_WORKFLOW",
]
