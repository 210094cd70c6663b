"""
ORM-Level Immutability Enforcement.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Stock movements and payments are the audit trail behind every derived
balance and total.  Changing them in place would silently break the
reconciliation between a stock balance and its movements, or between an
order's paid_total and its payments.

    Record               | UPDATE                 | DELETE
    ---------------------|------------------------|------------------------
    InventoryMovement    | never                  | never
    SalesPayment         | never                  | never
    BranchTransferItem   | never                  | with its transfer only
    SalesOrderItem       | while order is draft   | while order is draft
    PayrollRunItem       | while run is draft     | while run is draft

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database:

    session.flush()
         |
         v
    [before_update event] --> _check_*() --> ImmutabilityViolationError
         |
         v
    SQL UPDATE (only if all checks pass)

The error propagates out of ``flush()``; the service's transaction boundary
rolls back.  Parent status is read through the flush connection rather than
the session, so no lazy load is triggered mid-flush.

Bulk ``session.execute(update(...))`` bypasses mapper events.  Services never
issue bulk updates against these tables.

Usage::

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup
"""

from sqlalchemy import event, inspect, select

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Audit columns that may change on an otherwise frozen row
_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})


def _changed_fields(target) -> list[str]:
    """Names of mapped columns with pending changes, audit columns excluded."""
    state = inspect(target)
    return [
        attr.key
        for attr in state.mapper.column_attrs
        if attr.key not in _AUDIT_FIELDS
        and state.attrs[attr.key].history.has_changes()
    ]


def _block(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=target.id,
        reason=reason,
    )


def _block_update_if_changed(entity_type: str, target, reason: str) -> None:
    # before_update fires for every dirty instance, even with no net change
    changed = _changed_fields(target)
    if changed:
        _block(entity_type, target, "UPDATE", f"{reason} (field '{changed[0]}')")


# -----------------------------------------------------------------------------
# Always-immutable records
# -----------------------------------------------------------------------------

def _check_movement_update(mapper, connection, target):
    _block_update_if_changed(
        "InventoryMovement", target, "Inventory movements are append-only",
    )


def _check_movement_delete(mapper, connection, target):
    _block("InventoryMovement", target, "DELETE", "Inventory movements cannot be deleted")


def _check_payment_update(mapper, connection, target):
    _block_update_if_changed("SalesPayment", target, "Sales payments are append-only")


def _check_payment_delete(mapper, connection, target):
    _block("SalesPayment", target, "DELETE", "Sales payments cannot be deleted")


def _check_transfer_item_update(mapper, connection, target):
    _block_update_if_changed(
        "BranchTransferItem", target, "Transfer items are fixed at creation",
    )


# -----------------------------------------------------------------------------
# Records frozen by their parent's status
# -----------------------------------------------------------------------------

def _order_status(connection, order_id) -> str | None:
    from ledger_modules.sales.orm import SalesOrderModel

    return connection.execute(
        select(SalesOrderModel.status).where(SalesOrderModel.id == order_id)
    ).scalar()


def _run_status(connection, run_id) -> str | None:
    from ledger_modules.payroll.orm import PayrollRunModel

    return connection.execute(
        select(PayrollRunModel.status).where(PayrollRunModel.id == run_id)
    ).scalar()


def _check_order_item_update(mapper, connection, target):
    status = _order_status(connection, target.order_id)
    if status is not None and status != "draft":
        _block_update_if_changed(
            "SalesOrderItem", target, f"Order items are frozen once the order is {status}",
        )


def _check_order_item_delete(mapper, connection, target):
    status = _order_status(connection, target.order_id)
    if status is not None and status != "draft":
        _block(
            "SalesOrderItem", target, "DELETE",
            f"Order items cannot be deleted once the order is {status}",
        )


def _check_run_item_update(mapper, connection, target):
    status = _run_status(connection, target.run_id)
    if status is not None and status != "draft":
        _block_update_if_changed(
            "PayrollRunItem", target, f"Payroll items are frozen once the run is {status}",
        )


def _check_run_item_delete(mapper, connection, target):
    status = _run_status(connection, target.run_id)
    if status is not None and status != "draft":
        _block(
            "PayrollRunItem", target, "DELETE",
            f"Payroll items cannot be deleted once the run is {status}",
        )


def _listeners():
    from ledger_modules.inventory.orm import (
        BranchTransferItemModel,
        InventoryMovementModel,
    )
    from ledger_modules.payroll.orm import PayrollRunItemModel
    from ledger_modules.sales.orm import SalesOrderItemModel, SalesPaymentModel

    return (
        (InventoryMovementModel, "before_update", _check_movement_update),
        (InventoryMovementModel, "before_delete", _check_movement_delete),
        (SalesPaymentModel, "before_update", _check_payment_update),
        (SalesPaymentModel, "before_delete", _check_payment_delete),
        (BranchTransferItemModel, "before_update", _check_transfer_item_update),
        (SalesOrderItemModel, "before_update", _check_order_item_update),
        (SalesOrderItemModel, "before_delete", _check_order_item_delete),
        (PayrollRunItemModel, "before_update", _check_run_item_update),
        (PayrollRunItemModel, "before_delete", _check_run_item_delete),
    )


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are not added twice.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that must write an append-only row
    directly.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
