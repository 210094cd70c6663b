"""
Allowance Domain Models (``ledger_modules.allowances.models``).

Frozen value objects for employee allowances: a header with a derived
total and its line items (``total_value = unit_value * quantity``).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import ZERO, to_decimal
from ledger_kernel.exceptions import ValidationError


class AllowanceItemType(Enum):
    """What an allowance line gives the employee."""
    PRODUCT = "product"
    MONEY = "money"
    GIFT = "gift"
    OTHER = "other"


@dataclass(frozen=True)
class EmployeeAllowanceItem:
    id: UUID
    allowance_id: UUID
    item_type: AllowanceItemType
    quantity: Decimal
    unit_value: Decimal
    total_value: Decimal
    line_no: int = 1
    product_id: UUID | None = None
    description: str | None = None


@dataclass(frozen=True)
class EmployeeAllowance:
    id: UUID
    employee_id: UUID
    allowance_date: date
    total: Decimal = ZERO
    branch_id: UUID | None = None
    note: str | None = None
    created_by_id: UUID | None = None
    created_at: datetime | None = None
    items: tuple[EmployeeAllowanceItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AllowanceRequest:
    """Input to ``AllowanceService.create_allowance``.  Date defaults to today."""
    employee_id: UUID
    branch_id: UUID | None = None
    allowance_date: date | None = None
    note: str | None = None


@dataclass(frozen=True)
class AllowanceItemRequest:
    item_type: AllowanceItemType
    quantity: Decimal
    unit_value: Decimal
    product_id: UUID | None = None
    description: str | None = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "item_type", AllowanceItemType(self.item_type))
        except ValueError:
            raise ValidationError(
                "item_type",
                f"unknown item type {self.item_type!r}; expected one of "
                f"{sorted(t.value for t in AllowanceItemType)}",
            ) from None
        quantity = to_decimal(self.quantity, "quantity")
        if quantity <= ZERO:
            raise ValidationError("quantity", f"must be positive, got {quantity}")
        unit_value = to_decimal(self.unit_value, "unit_value")
        if unit_value < ZERO:
            raise ValidationError("unit_value", f"cannot be negative, got {unit_value}")
        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "unit_value", unit_value)
        if self.item_type == AllowanceItemType.PRODUCT and self.product_id is None:
            raise ValidationError("product_id", "product allowances must name a product")

    @property
    def total_value(self) -> Decimal:
        return self.unit_value * self.quantity
