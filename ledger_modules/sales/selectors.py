"""
Order ledger read side.

``SalesOrderSelector.filtered_orders`` is the single definition of "the
orders selected by an OrderFilter"; the reporting module groups the same
rows, so summaries and ledger totals always cover the same set.
"""

from uuid import UUID

from sqlalchemy import Select, select

from ledger_kernel.db.types import ZERO
from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.selectors.base import BaseSelector
from ledger_modules.sales.models import (
    LedgerTotals,
    OrderFilter,
    OrderStatus,
    SalesOrder,
    SalesOrderItem,
    SalesPayment,
)
from ledger_modules.sales.orm import SalesOrderItemModel, SalesOrderModel, SalesPaymentModel


def apply_order_filter(stmt: Select, order_filter: OrderFilter | None) -> Select:
    """Restrict a statement over SalesOrderModel to the filtered order set."""
    if order_filter is None:
        return stmt
    if order_filter.branch_id is not None:
        stmt = stmt.where(SalesOrderModel.branch_id == order_filter.branch_id)
    if order_filter.date_from is not None:
        stmt = stmt.where(SalesOrderModel.order_date >= order_filter.date_from)
    if order_filter.date_to is not None:
        stmt = stmt.where(SalesOrderModel.order_date <= order_filter.date_to)
    if order_filter.status is not None:
        stmt = stmt.where(SalesOrderModel.status == order_filter.status.value)
    return stmt


class SalesOrderSelector(BaseSelector):
    """Queries over sales orders, their items and payments."""

    def get_order(self, order_id: UUID) -> SalesOrder:
        row = self.session.get(SalesOrderModel, order_id)
        if row is None:
            raise NotFoundError("sales_order", order_id)
        return row.to_dto()

    def list_orders(
        self,
        branch_id: UUID | None = None,
        status: OrderStatus | None = None,
    ) -> list[SalesOrder]:
        """Orders newest first."""
        stmt = apply_order_filter(
            select(SalesOrderModel),
            OrderFilter(branch_id=branch_id, status=status),
        ).order_by(
            SalesOrderModel.order_date.desc(),
            SalesOrderModel.created_at.desc(),
            SalesOrderModel.id,
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get_items(self, order_id: UUID) -> list[SalesOrderItem]:
        rows = self.session.scalars(
            select(SalesOrderItemModel)
            .where(SalesOrderItemModel.order_id == order_id)
            .order_by(SalesOrderItemModel.line_no)
        )
        return [row.to_dto() for row in rows]

    def get_payments(self, order_id: UUID) -> list[SalesPayment]:
        rows = self.session.scalars(
            select(SalesPaymentModel)
            .where(SalesPaymentModel.order_id == order_id)
            .order_by(SalesPaymentModel.paid_at, SalesPaymentModel.created_at)
        )
        return [row.to_dto() for row in rows]

    def filtered_orders(self, order_filter: OrderFilter | None = None) -> list[SalesOrderModel]:
        """Header rows of the filtered order set (no items or payments loaded)."""
        stmt = apply_order_filter(select(SalesOrderModel), order_filter).order_by(
            SalesOrderModel.order_date, SalesOrderModel.id,
        )
        return list(self.session.scalars(stmt))

    def ledger_totals(self, order_filter: OrderFilter | None = None) -> LedgerTotals:
        """Sum the stored grand/paid/due totals over the filtered orders."""
        orders = self.filtered_orders(order_filter)
        return LedgerTotals(
            orders_count=len(orders),
            grand_total=sum((o.grand_total for o in orders), ZERO),
            paid_total=sum((o.paid_total for o in orders), ZERO),
            due_total=sum((o.due_total for o in orders), ZERO),
        )
