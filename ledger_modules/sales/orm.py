"""
Module: ledger_modules.sales.orm
Responsibility: SQLAlchemy ORM persistence models for the order ledger --
    orders, order items and payments.

Architecture position: Modules > Sales > ORM.  Inherits from TrackedBase.
    party_id references an externally owned party with NO foreign key.

Invariants enforced:
    - Item quantity > 0, unit_price >= 0, discount_amount >= 0,
      0 <= discount_percent <= 100, total >= 0 (CHECK).
    - Payment amount > 0 (CHECK).
    - Order totals are written only by SalesOrderService's recomputation.
    - Items are frozen once the order is posted and payments are never
      updated or deleted (ledger_kernel.db.immutability).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase


class SalesOrderModel(TrackedBase):
    """
    ORM model for a sales order header and its derived totals.

    Maps to: ledger_modules.sales.models.SalesOrder.
    """

    __tablename__ = "sales_orders"

    __table_args__ = (
        Index("idx_sales_order_branch", "branch_id"),
        Index("idx_sales_order_status", "status"),
        Index("idx_sales_order_date", "order_date"),
        Index("idx_sales_order_party", "party_id"),
        Index("idx_sales_order_employee", "employee_id"),
    )

    branch_id: Mapped[UUID] = mapped_column(ForeignKey("branches.id"))
    party_id: Mapped[UUID | None] = mapped_column(nullable=True)
    employee_id: Mapped[UUID | None] = mapped_column(ForeignKey("employees.id"), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    order_date: Mapped[date] = mapped_column(Date)

    # OrderStatus enum stored as string
    status: Mapped[str] = mapped_column(String(50), default="draft")

    subtotal: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    discount_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    tax_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    shipping_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    grand_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    paid_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    due_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    posted_by: Mapped[UUID | None] = mapped_column(nullable=True)
    posted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    items: Mapped[list["SalesOrderItemModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItemModel.line_no",
    )
    payments: Mapped[list["SalesPaymentModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SalesPaymentModel.paid_at",
    )

    def to_dto(self):
        from ledger_modules.sales.models import OrderStatus, SalesOrder
        return SalesOrder(
            id=self.id,
            branch_id=self.branch_id,
            status=OrderStatus(self.status),
            order_date=self.order_date,
            party_id=self.party_id,
            employee_id=self.employee_id,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            note=self.note,
            subtotal=self.subtotal,
            discount_total=self.discount_total,
            tax_total=self.tax_total,
            shipping_total=self.shipping_total,
            grand_total=self.grand_total,
            paid_total=self.paid_total,
            due_total=self.due_total,
            created_by_id=self.created_by_id,
            posted_by=self.posted_by,
            posted_at=self.posted_at,
            created_at=self.created_at,
            items=tuple(item.to_dto() for item in self.items),
            payments=tuple(payment.to_dto() for payment in self.payments),
        )

    def __repr__(self) -> str:
        return f"<SalesOrderModel {self.id} status={self.status} grand={self.grand_total}>"


class SalesOrderItemModel(TrackedBase):
    """One product line of an order."""

    __tablename__ = "sales_order_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sales_item_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_sales_item_price_non_negative"),
        CheckConstraint("discount_amount >= 0", name="ck_sales_item_discount_non_negative"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_sales_item_discount_percent_range",
        ),
        CheckConstraint("total >= 0", name="ck_sales_item_total_non_negative"),
        Index("idx_sales_item_order", "order_id"),
        Index("idx_sales_item_product", "product_id"),
    )

    order_id: Mapped[UUID] = mapped_column(ForeignKey("sales_orders.id", ondelete="CASCADE"))
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"))
    line_no: Mapped[int] = mapped_column(default=1)
    batch_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quantity: Mapped[Decimal] = mapped_column()
    unit_price: Mapped[Decimal] = mapped_column()
    discount_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    discount_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column()

    order: Mapped[SalesOrderModel] = relationship(back_populates="items")

    def to_dto(self):
        from ledger_modules.sales.models import SalesOrderItem
        return SalesOrderItem(
            id=self.id,
            order_id=self.order_id,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount_amount=self.discount_amount,
            discount_percent=self.discount_percent,
            total=self.total,
            line_no=self.line_no,
            batch_id=self.batch_id,
        )

    def __repr__(self) -> str:
        return f"<SalesOrderItemModel product={self.product_id} qty={self.quantity} total={self.total}>"


class SalesPaymentModel(TrackedBase):
    """An append-only payment against an order."""

    __tablename__ = "sales_payments"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_sales_payment_positive"),
        Index("idx_sales_payment_order", "order_id"),
    )

    order_id: Mapped[UUID] = mapped_column(ForeignKey("sales_orders.id"))
    amount: Mapped[Decimal] = mapped_column()
    method: Mapped[str] = mapped_column(String(50))
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    received_by: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime] = mapped_column()

    order: Mapped[SalesOrderModel] = relationship(back_populates="payments")

    def to_dto(self):
        from ledger_modules.sales.models import SalesPayment
        return SalesPayment(
            id=self.id,
            order_id=self.order_id,
            amount=self.amount,
            method=self.method,
            reference=self.reference,
            received_by=self.received_by,
            paid_at=self.paid_at,
        )

    def __repr__(self) -> str:
        return f"<SalesPaymentModel order={self.order_id} amount={self.amount}>"
