"""
Payroll Domain Models (``ledger_modules.payroll.models``).

Responsibility
--------------
Frozen value objects for salary profiles, payroll runs and run items, and
the typed requests that create and change them.

Invariants
----------
- Percentages are fractions in [0, 1] (``0.4`` means 40%).
- Amounts are non-negative Decimals; ``monthly_gross`` of ``None`` or zero
  means "derive gross from the components".
- ``effective_to`` (when set) is not before ``effective_from``.
- A run covers ``from_date <= to_date`` and a month in 1..12.

Failure Modes
-------------
- Malformed requests raise ``ValidationError`` at construction.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import ZERO, to_decimal
from ledger_kernel.exceptions import ValidationError

ONE = Decimal("1")

PERCENT_FIELDS = ("house_rent_percent", "pf_employee_percent", "pf_employer_percent")
AMOUNT_FIELDS = ("monthly_basic", "medical_allowance", "conveyance_allowance", "tax_monthly")

# Fields that feed the payslip computation
COMPENSATION_FIELDS = ("monthly_gross",) + AMOUNT_FIELDS + PERCENT_FIELDS
# Profile fields ``ProfileUpdate.clear`` may null out
CLEARABLE_FIELDS = frozenset({"effective_to", "monthly_gross", "branch_id", "note"})


class RunStatus(Enum):
    """Payroll run lifecycle states."""
    DRAFT = "draft"
    LOCKED = "locked"
    APPROVED = "approved"
    PAID = "paid"


def _validate_compensation(obj) -> None:
    if obj.monthly_gross is not None:
        value = to_decimal(obj.monthly_gross, "monthly_gross")
        if value < ZERO:
            raise ValidationError("monthly_gross", "cannot be negative")
        object.__setattr__(obj, "monthly_gross", value)
    for name in AMOUNT_FIELDS:
        if getattr(obj, name) is None:
            continue
        value = to_decimal(getattr(obj, name), name)
        if value < ZERO:
            raise ValidationError(name, "cannot be negative")
        object.__setattr__(obj, name, value)
    for name in PERCENT_FIELDS:
        if getattr(obj, name) is None:
            continue
        value = to_decimal(getattr(obj, name), name)
        if value < ZERO or value > ONE:
            raise ValidationError(name, f"must be a fraction between 0 and 1, got {value}")
        object.__setattr__(obj, name, value)


@dataclass(frozen=True)
class SalaryProfile:
    """An employee's dated compensation structure."""
    id: UUID
    employee_id: UUID
    effective_from: date
    currency: str
    monthly_basic: Decimal
    monthly_gross: Decimal | None = None
    house_rent_percent: Decimal = ZERO
    medical_allowance: Decimal = ZERO
    conveyance_allowance: Decimal = ZERO
    pf_employee_percent: Decimal = ZERO
    pf_employer_percent: Decimal = ZERO
    tax_monthly: Decimal = ZERO
    is_active: bool = True
    branch_id: UUID | None = None
    effective_to: date | None = None
    note: str | None = None


@dataclass(frozen=True)
class ProfileRequest:
    """Input to ``PayrollService.create_profile``.  ``currency`` defaults from config."""
    employee_id: UUID
    effective_from: date
    monthly_basic: Decimal
    monthly_gross: Decimal | None = None
    house_rent_percent: Decimal = ZERO
    medical_allowance: Decimal = ZERO
    conveyance_allowance: Decimal = ZERO
    pf_employee_percent: Decimal = ZERO
    pf_employer_percent: Decimal = ZERO
    tax_monthly: Decimal = ZERO
    currency: str | None = None
    is_active: bool = True
    branch_id: UUID | None = None
    effective_to: date | None = None
    note: str | None = None

    def __post_init__(self):
        _validate_compensation(self)
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValidationError("effective_to", "must not be before effective_from")
        if self.currency is not None and len(self.currency) != 3:
            raise ValidationError("currency", f"expected a 3-letter code, got {self.currency!r}")


@dataclass(frozen=True)
class ProfileUpdate:
    """
    Fields to change on a salary profile.  ``None`` leaves a field unchanged;
    names in ``clear`` are set to null.

    ``is_active`` is changed only through ``set_profile_active``.
    """
    effective_from: date | None = None
    effective_to: date | None = None
    monthly_basic: Decimal | None = None
    monthly_gross: Decimal | None = None
    house_rent_percent: Decimal | None = None
    medical_allowance: Decimal | None = None
    conveyance_allowance: Decimal | None = None
    pf_employee_percent: Decimal | None = None
    pf_employer_percent: Decimal | None = None
    tax_monthly: Decimal | None = None
    branch_id: UUID | None = None
    note: str | None = None
    clear: frozenset[str] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "clear", frozenset(self.clear))
        unknown = self.clear - CLEARABLE_FIELDS
        if unknown:
            raise ValidationError("clear", f"cannot clear {sorted(unknown)}")
        for name in self.clear:
            if getattr(self, name) is not None:
                raise ValidationError(name, "given a value and listed in clear")
        _validate_compensation(self)

    def changes(self) -> dict:
        changes = {
            name: value
            for name, value in vars(self).items()
            if name != "clear" and value is not None
        }
        changes.update(dict.fromkeys(self.clear))
        return changes

    def touches_compensation(self) -> bool:
        return any(
            getattr(self, name) is not None or name in self.clear
            for name in COMPENSATION_FIELDS
        )


@dataclass(frozen=True)
class CreateRunRequest:
    """Input to ``PayrollService.create_run``.  No branch means all branches."""
    period_year: int
    period_month: int
    from_date: date
    to_date: date
    branch_id: UUID | None = None

    def __post_init__(self):
        if not 1 <= self.period_month <= 12:
            raise ValidationError("period_month", f"must be 1..12, got {self.period_month}")
        if self.period_year < 1900:
            raise ValidationError("period_year", f"implausible year {self.period_year}")
        if self.from_date > self.to_date:
            raise ValidationError("from_date", "must not be after to_date")


@dataclass(frozen=True)
class Payslip:
    """Computed pay components for one employee in one run."""
    basic: Decimal
    house_rent: Decimal
    medical_allowance: Decimal
    conveyance_allowance: Decimal
    gross_pay: Decimal
    total_earnings: Decimal
    pf_employee: Decimal
    pf_employer: Decimal
    tax: Decimal
    total_deductions: Decimal
    net_pay: Decimal


@dataclass(frozen=True)
class PayrollRunItem:
    id: UUID
    run_id: UUID
    employee_id: UUID
    profile_id: UUID | None
    basic: Decimal
    house_rent: Decimal
    medical_allowance: Decimal
    conveyance_allowance: Decimal
    gross_pay: Decimal
    total_earnings: Decimal
    pf_employee: Decimal
    pf_employer: Decimal
    tax: Decimal
    total_deductions: Decimal
    net_pay: Decimal


@dataclass(frozen=True)
class PayrollRun:
    """One payroll processing cycle for a period."""
    id: UUID
    period_year: int
    period_month: int
    from_date: date
    to_date: date
    status: RunStatus
    branch_id: UUID | None = None
    total_gross: Decimal = ZERO
    total_net: Decimal = ZERO
    employee_count: int = 0
    generated_at: datetime | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    paid_by: UUID | None = None
    paid_at: datetime | None = None
    payment_method: str | None = None
    created_at: datetime | None = None
