"""
Sales Module Service (``ledger_modules.sales.service``).

Responsibility
--------------
The order ledger: creates draft orders, adds items and payments, edits
draft headers, posts orders (deducting stock through the stock ledger) and
deletes drafts.  Order totals are recomputed from the stored items and
payments inside the same transaction as every mutation.

Architecture position
---------------------
**Modules layer**.  ``SalesOrderService`` extends ``BaseService`` and
composes ``StockLedgerService`` for posting; pure arithmetic lives in
``helpers.py``.

Invariants enforced
-------------------
* ``grand_total = max(subtotal - discount_total + tax_total +
  shipping_total, 0)`` and ``due_total = grand_total - paid_total`` after
  every mutating call.
* Items and header fields change only while the order is draft; payments
  are accepted in draft and posted states.
* Posting checks every product's balance at the order's branch under lock
  before deducting any of them; a shortage aborts the whole post.
* A duplicate ``post_order`` resolves to ``InvalidTransitionError`` and
  deducts nothing.

Failure modes
-------------
* ``ValidationError``  -- malformed request, empty item list.
* ``NotFoundError``  -- unknown order, branch, employee or product.
* ``ConflictError``  -- edit of a posted order, post without items,
  delete of an order with payments.
* ``InsufficientStockError``  -- post aborted, nothing deducted.
* ``PersistenceError``  -- database failure; safe to retry.

Usage::

    orders = SalesOrderService(session, clock=clock)
    order = orders.create_order(CreateOrderRequest(branch_id=branch_id), actor)
    orders.add_items(order.id, [OrderItemRequest(product_id, 10, 5)], actor)
    orders.post_order(order.id, actor)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.actor import Actor
from ledger_kernel.domain.clock import Clock
from ledger_kernel.exceptions import ConflictError, ValidationError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.reference import BranchModel, EmployeeModel, ProductModel
from ledger_kernel.services.base import BaseService
from ledger_modules.inventory.models import MovementRequest, MovementType
from ledger_modules.inventory.service import StockLedgerService
from ledger_modules.sales.config import SalesConfig
from ledger_modules.sales.helpers import compute_order_totals, line_total
from ledger_modules.sales.models import (
    CreateOrderRequest,
    OrderItemRequest,
    OrderStatus,
    OrderUpdate,
    PaymentRequest,
    SalesOrder,
)
from ledger_modules.sales.orm import SalesOrderItemModel, SalesOrderModel, SalesPaymentModel
from ledger_modules.sales.workflows import ORDER_WORKFLOW

logger = get_logger("modules.sales.service")


class SalesOrderService(BaseService):
    """
    Order ledger operations.

    Contract
    --------
    * Every public method runs in one transaction and returns the mutated
      order as a ``SalesOrder`` DTO (``delete_order`` returns nothing).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: SalesConfig | None = None,
        stock: StockLedgerService | None = None,
    ):
        super().__init__(session, clock)
        self._config = config or SalesConfig.with_defaults()
        self._stock = stock or StockLedgerService(session, self._clock)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _lock_order(self, order_id: UUID) -> SalesOrderModel:
        return self._lock(SalesOrderModel, order_id, "sales_order")

    @staticmethod
    def _require_draft(order: SalesOrderModel, action: str) -> None:
        if order.status != OrderStatus.DRAFT.value:
            raise ConflictError(
                "sales_order", order.id, order.status, action,
                reason="only draft orders can be changed",
            )

    def _check_employee(self, employee_id: UUID | None) -> None:
        if employee_id is not None:
            self._get(EmployeeModel, employee_id, "employee")

    def _recompute_totals(self, order: SalesOrderModel) -> None:
        """Rewrite the order's derived totals from its stored items and payments."""
        self.session.flush()
        item_totals = self.session.scalars(
            select(SalesOrderItemModel.total).where(SalesOrderItemModel.order_id == order.id)
        ).all()
        payment_amounts = self.session.scalars(
            select(SalesPaymentModel.amount).where(SalesPaymentModel.order_id == order.id)
        ).all()
        totals = compute_order_totals(
            item_totals,
            order.discount_total,
            order.tax_total,
            order.shipping_total,
            payment_amounts,
        )
        order.subtotal = totals.subtotal
        order.grand_total = totals.grand_total
        order.paid_total = totals.paid_total
        order.due_total = totals.due_total
        self.session.flush()
        logger.debug(
            "order_totals_recomputed",
            extra={
                "order_id": str(order.id),
                "subtotal": str(totals.subtotal),
                "grand_total": str(totals.grand_total),
                "paid_total": str(totals.paid_total),
                "due_total": str(totals.due_total),
            },
        )

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def create_order(self, request: CreateOrderRequest, actor: Actor) -> SalesOrder:
        """Open a draft order with all totals zero.  No stock effect."""
        with self._atomic("create_order", branch_id=str(request.branch_id)):
            self._get(BranchModel, request.branch_id, "branch")
            self._check_employee(request.employee_id)
            order = SalesOrderModel(
                branch_id=request.branch_id,
                party_id=request.party_id,
                employee_id=request.employee_id,
                customer_name=request.customer_name,
                customer_phone=request.customer_phone,
                note=request.note,
                order_date=request.order_date or self._clock.today(),
                status=ORDER_WORKFLOW.initial_state,
                discount_total=request.discount_total,
                tax_total=request.tax_total,
                shipping_total=request.shipping_total,
                **self._stamp(actor),
            )
            self.session.add(order)
            self._recompute_totals(order)
            result = order.to_dto()

        logger.info(
            "order_created",
            extra={
                "order_id": str(result.id),
                "branch_id": str(result.branch_id),
                "order_date": str(result.order_date),
            },
        )
        return result

    def add_items(
        self, order_id: UUID, items: Sequence[OrderItemRequest], actor: Actor,
    ) -> SalesOrder:
        """Append lines to a draft order.  All-or-nothing."""
        if not items:
            raise ValidationError("items", "at least one item is required")

        with self._atomic("add_order_items", order_id=str(order_id)):
            order = self._lock_order(order_id)
            self._require_draft(order, "add_items")
            next_line = self.session.execute(
                select(func.coalesce(func.max(SalesOrderItemModel.line_no), 0))
                .where(SalesOrderItemModel.order_id == order.id)
            ).scalar_one()
            for offset, item in enumerate(items, start=1):
                self._get(ProductModel, item.product_id, "product")
                order.items.append(SalesOrderItemModel(
                    product_id=item.product_id,
                    line_no=next_line + offset,
                    batch_id=item.batch_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount_amount=item.discount_amount,
                    discount_percent=item.discount_percent,
                    total=line_total(
                        item.quantity,
                        item.unit_price,
                        item.discount_amount,
                        item.discount_percent,
                    ),
                    **self._stamp(actor),
                ))
            self._touch(order, actor)
            self._recompute_totals(order)
            result = order.to_dto()

        logger.info(
            "order_items_added",
            extra={
                "order_id": str(order_id),
                "item_count": len(items),
                "subtotal": str(result.subtotal),
                "grand_total": str(result.grand_total),
            },
        )
        return result

    def add_payment(self, order_id: UUID, request: PaymentRequest, actor: Actor) -> SalesOrder:
        """Record a payment.  Accepted on draft and posted orders."""
        with self._atomic("add_payment", order_id=str(order_id)):
            order = self._lock_order(order_id)
            order.payments.append(SalesPaymentModel(
                amount=request.amount,
                method=request.method or self._config.default_payment_method,
                reference=request.reference,
                received_by=actor.id,
                paid_at=self._clock.now(),
                **self._stamp(actor),
            ))
            self._touch(order, actor)
            self._recompute_totals(order)
            result = order.to_dto()

        logger.info(
            "order_payment_added",
            extra={
                "order_id": str(order_id),
                "amount": str(request.amount),
                "paid_total": str(result.paid_total),
                "due_total": str(result.due_total),
            },
        )
        return result

    def update_order(self, order_id: UUID, update: OrderUpdate, actor: Actor) -> SalesOrder:
        """Change header fields of a draft order."""
        changes = update.changes()
        with self._atomic("update_order", order_id=str(order_id)):
            order = self._lock_order(order_id)
            self._require_draft(order, "update")
            self._check_employee(changes.get("employee_id"))
            for name, value in changes.items():
                setattr(order, name, value)
            self._touch(order, actor)
            self._recompute_totals(order)
            result = order.to_dto()

        logger.info(
            "order_updated",
            extra={
                "order_id": str(order_id),
                "fields": sorted(changes),
                "grand_total": str(result.grand_total),
            },
        )
        return result

    def post_order(self, order_id: UUID, actor: Actor) -> SalesOrder:
        """
        Deduct the order's stock from its branch and mark it posted.

        Every product is checked against its locked balance before any is
        deducted; the first short product raises InsufficientStockError.
        """
        with self._atomic("post_order", order_id=str(order_id)):
            order = self._lock_order(order_id)
            transition = ORDER_WORKFLOW.resolve(order.status, "post", "sales_order", order_id)
            if not order.items:
                raise ConflictError(
                    "sales_order", order_id, order.status, "post",
                    reason="order has no items",
                )

            requested: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
            for item in order.items:
                requested[item.product_id] += item.quantity
            locked = self._stock.lock_balances((order.branch_id, p) for p in requested)
            self._stock.check_available(order.branch_id, requested, locked)

            note = f"order {order.id}"
            for item in order.items:
                self._stock.apply_movement(
                    MovementRequest(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        movement_type=MovementType.SALE,
                        from_branch_id=order.branch_id,
                        note=note,
                        batch_id=item.batch_id,
                    ),
                    actor,
                )

            order.status = transition.to_state
            order.posted_by = actor.id
            order.posted_at = self._clock.now()
            self._touch(order, actor)
            self.session.flush()
            result = order.to_dto()

        logger.info(
            "order_posted",
            extra={
                "order_id": str(order_id),
                "branch_id": str(result.branch_id),
                "item_count": len(result.items),
                "grand_total": str(result.grand_total),
                "actor_id": str(actor.id),
            },
        )
        return result

    def delete_order(self, order_id: UUID, actor: Actor) -> None:
        """Delete a draft order that has no payments."""
        with self._atomic("delete_order", order_id=str(order_id)):
            order = self._lock_order(order_id)
            self._require_draft(order, "delete")
            if order.payments:
                raise ConflictError(
                    "sales_order", order_id, order.status, "delete",
                    reason="order has payments",
                )
            self.session.delete(order)
            self.session.flush()

        logger.info(
            "order_deleted",
            extra={"order_id": str(order_id), "actor_id": str(actor.id)},
        )
