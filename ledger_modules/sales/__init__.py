"""
Sales Module (``ledger_modules.sales``).

Responsibility
--------------
The order ledger: sales orders, their items and payments, and the derived
order totals.  Posting an order deducts stock through
``ledger_modules.inventory``.

Invariants
----------
- Order totals are recomputed from stored items and payments in the same
  transaction as every mutation; they are never cached elsewhere.
- Posting is irreversible and all-or-nothing across the order's items.
"""

from ledger_modules.sales.config import SalesConfig
from ledger_modules.sales.helpers import OrderTotals, compute_order_totals, line_total
from ledger_modules.sales.models import (
    CreateOrderRequest,
    LedgerTotals,
    OrderFilter,
    OrderItemRequest,
    OrderStatus,
    OrderUpdate,
    PaymentRequest,
    SalesOrder,
    SalesOrderItem,
    SalesPayment,
)
from ledger_modules.sales.selectors import SalesOrderSelector
from ledger_modules.sales.service import SalesOrderService
from ledger_modules.sales.workflows import ORDER_WORKFLOW

__all__ = [
    "SalesConfig",
    "OrderTotals",
    "compute_order_totals",
    "line_total",
    "CreateOrderRequest",
    "LedgerTotals",
    "OrderFilter",
    "OrderItemRequest",
    "OrderStatus",
    "OrderUpdate",
    "PaymentRequest",
    "SalesOrder",
    "SalesOrderItem",
    "SalesPayment",
    "SalesOrderSelector",
    "SalesOrderService",
    "ORDER_WORKFLOW",
]
