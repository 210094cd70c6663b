"""
Module: ledger_modules.allowances.orm
Responsibility: SQLAlchemy ORM persistence models for employee allowances.

Architecture position: Modules > Allowances > ORM.  Inherits from TrackedBase.

Invariants enforced:
    - Item quantity > 0 and unit_value >= 0 (CHECK).
    - Header total is written only by AllowanceService's recomputation.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase


class EmployeeAllowanceModel(TrackedBase):
    """
    ORM model for an allowance header.

    Maps to: ledger_modules.allowances.models.EmployeeAllowance.
    """

    __tablename__ = "employee_allowances"

    __table_args__ = (
        Index("idx_allowance_employee", "employee_id"),
        Index("idx_allowance_date", "allowance_date"),
    )

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    branch_id: Mapped[UUID | None] = mapped_column(ForeignKey("branches.id"), nullable=True)
    allowance_date: Mapped[date] = mapped_column(Date)
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    total: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    items: Mapped[list["EmployeeAllowanceItemModel"]] = relationship(
        back_populates="allowance",
        cascade="all, delete-orphan",
        order_by="EmployeeAllowanceItemModel.line_no",
    )

    def to_dto(self):
        from ledger_modules.allowances.models import EmployeeAllowance
        return EmployeeAllowance(
            id=self.id,
            employee_id=self.employee_id,
            allowance_date=self.allowance_date,
            total=self.total,
            branch_id=self.branch_id,
            note=self.note,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
            items=tuple(item.to_dto() for item in self.items),
        )

    def __repr__(self) -> str:
        return f"<EmployeeAllowanceModel employee={self.employee_id} total={self.total}>"


class EmployeeAllowanceItemModel(TrackedBase):
    """One line of an allowance."""

    __tablename__ = "employee_allowance_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_allowance_item_quantity_positive"),
        CheckConstraint("unit_value >= 0", name="ck_allowance_item_value_non_negative"),
        Index("idx_allowance_item_allowance", "allowance_id"),
    )

    allowance_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee_allowances.id", ondelete="CASCADE"),
    )
    line_no: Mapped[int] = mapped_column(default=1)
    # AllowanceItemType enum stored as string
    item_type: Mapped[str] = mapped_column(String(50))
    product_id: Mapped[UUID | None] = mapped_column(ForeignKey("products.id"), nullable=True)
    description: Mapped[str | None] = mapped_column(String(200), nullable=True)
    quantity: Mapped[Decimal] = mapped_column()
    unit_value: Mapped[Decimal] = mapped_column()
    total_value: Mapped[Decimal] = mapped_column()

    allowance: Mapped[EmployeeAllowanceModel] = relationship(back_populates="items")

    def to_dto(self):
        from ledger_modules.allowances.models import AllowanceItemType, EmployeeAllowanceItem
        return EmployeeAllowanceItem(
            id=self.id,
            allowance_id=self.allowance_id,
            item_type=AllowanceItemType(self.item_type),
            quantity=self.quantity,
            unit_value=self.unit_value,
            total_value=self.total_value,
            line_no=self.line_no,
            product_id=self.product_id,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<EmployeeAllowanceItemModel {self.item_type} total={self.total_value}>"
