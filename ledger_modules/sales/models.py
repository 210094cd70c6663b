"""
Sales Domain Models (``ledger_modules.sales.models``).

Responsibility
--------------
Frozen value objects for the order ledger: orders, order items, payments,
the typed requests that mutate them, and the order filter shared with the
reporting module.

Invariants
----------
- Item quantity > 0, unit price >= 0, discount amount >= 0,
  discount percent within [0, 100].
- Payment amount > 0.
- Order-level discount, tax and shipping are >= 0.
- All monetary fields use ``Decimal`` -- never ``float``.

Failure Modes
-------------
- Malformed requests raise ``ValidationError`` at construction.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import ZERO, to_decimal
from ledger_kernel.exceptions import ValidationError

HUNDRED = Decimal("100")

# Header fields ``OrderUpdate.clear`` may null out
CLEARABLE_FIELDS = frozenset({"party_id", "employee_id", "customer_name", "customer_phone", "note"})


class OrderStatus(Enum):
    """Sales order lifecycle states."""
    DRAFT = "draft"
    POSTED = "posted"


def parse_order_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(
            "status",
            f"unknown order status {value!r}; expected one of "
            f"{sorted(s.value for s in OrderStatus)}",
        ) from None


def _non_negative(obj, name: str) -> None:
    value = to_decimal(getattr(obj, name), name)
    if value < ZERO:
        raise ValidationError(name, f"cannot be negative, got {value}")
    object.__setattr__(obj, name, value)


def _positive(obj, name: str) -> None:
    value = to_decimal(getattr(obj, name), name)
    if value <= ZERO:
        raise ValidationError(name, f"must be positive, got {value}")
    object.__setattr__(obj, name, value)


@dataclass(frozen=True)
class SalesOrderItem:
    id: UUID
    order_id: UUID
    product_id: UUID
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal
    discount_percent: Decimal
    total: Decimal
    line_no: int = 1
    batch_id: str | None = None


@dataclass(frozen=True)
class SalesPayment:
    id: UUID
    order_id: UUID
    amount: Decimal
    method: str
    reference: str | None = None
    received_by: UUID | None = None
    paid_at: datetime | None = None


@dataclass(frozen=True)
class SalesOrder:
    """A sales order with its derived totals."""
    id: UUID
    branch_id: UUID
    status: OrderStatus
    order_date: date
    party_id: UUID | None = None
    employee_id: UUID | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    note: str | None = None
    subtotal: Decimal = ZERO
    discount_total: Decimal = ZERO
    tax_total: Decimal = ZERO
    shipping_total: Decimal = ZERO
    grand_total: Decimal = ZERO
    paid_total: Decimal = ZERO
    due_total: Decimal = ZERO
    created_by_id: UUID | None = None
    posted_by: UUID | None = None
    posted_at: datetime | None = None
    created_at: datetime | None = None
    items: tuple[SalesOrderItem, ...] = field(default_factory=tuple)
    payments: tuple[SalesPayment, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CreateOrderRequest:
    """Input to ``SalesOrderService.create_order``."""
    branch_id: UUID
    party_id: UUID | None = None
    employee_id: UUID | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    note: str | None = None
    order_date: date | None = None
    discount_total: Decimal = ZERO
    tax_total: Decimal = ZERO
    shipping_total: Decimal = ZERO

    def __post_init__(self):
        for name in ("discount_total", "tax_total", "shipping_total"):
            _non_negative(self, name)


@dataclass(frozen=True)
class OrderItemRequest:
    product_id: UUID
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal = ZERO
    discount_percent: Decimal = ZERO
    batch_id: str | None = None

    def __post_init__(self):
        _positive(self, "quantity")
        _non_negative(self, "unit_price")
        _non_negative(self, "discount_amount")
        _non_negative(self, "discount_percent")
        if self.discount_percent > HUNDRED:
            raise ValidationError(
                "discount_percent", f"must be between 0 and 100, got {self.discount_percent}",
            )


@dataclass(frozen=True)
class PaymentRequest:
    """Input to ``SalesOrderService.add_payment``.  ``method`` defaults from config."""
    amount: Decimal
    method: str | None = None
    reference: str | None = None

    def __post_init__(self):
        _positive(self, "amount")


@dataclass(frozen=True)
class OrderUpdate:
    """
    Header fields to change on a draft order.

    ``None`` leaves a field unchanged; names in ``clear`` are set to null.
    """
    party_id: UUID | None = None
    employee_id: UUID | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    note: str | None = None
    order_date: date | None = None
    discount_total: Decimal | None = None
    tax_total: Decimal | None = None
    shipping_total: Decimal | None = None
    clear: frozenset[str] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "clear", frozenset(self.clear))
        unknown = self.clear - CLEARABLE_FIELDS
        if unknown:
            raise ValidationError("clear", f"cannot clear {sorted(unknown)}")
        for name in self.clear:
            if getattr(self, name) is not None:
                raise ValidationError(name, "given a value and listed in clear")
        for name in ("discount_total", "tax_total", "shipping_total"):
            if getattr(self, name) is not None:
                _non_negative(self, name)

    def changes(self) -> dict:
        changes = {
            name: value
            for name, value in vars(self).items()
            if name != "clear" and value is not None
        }
        changes.update(dict.fromkeys(self.clear))
        return changes


@dataclass(frozen=True)
class OrderFilter:
    """Selects a set of orders for totals and summaries."""
    branch_id: UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    status: OrderStatus | None = None

    def __post_init__(self):
        if self.status is not None:
            object.__setattr__(self, "status", parse_order_status(self.status))
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValidationError("date_from", "must not be after date_to")


@dataclass(frozen=True)
class LedgerTotals:
    """Sums over an order set, straight from the stored order totals."""
    orders_count: int
    grand_total: Decimal
    paid_total: Decimal
    due_total: Decimal
