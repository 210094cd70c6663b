"""
Module: ledger_kernel.models.reference
Responsibility: ORM persistence for externally owned reference data --
    branches, products and employees.  The ledger only looks these up by id;
    it never derives state onto them.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Branch.code, Product.sku and Employee.employee_code are unique.

Non-goals:
    - Reference data CRUD belongs to an external collaborator.  Rows are
      written here only by seeding scripts and tests.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


@dataclass(frozen=True)
class Branch:
    id: UUID
    name: str
    code: str
    is_active: bool = True
    address: str | None = None


@dataclass(frozen=True)
class Product:
    id: UUID
    sku: str
    name: str
    purchase_price: Decimal = Decimal("0")
    trade_price: Decimal = Decimal("0")
    retail_price: Decimal = Decimal("0")
    is_active: bool = True


@dataclass(frozen=True)
class Employee:
    id: UUID
    employee_code: str
    name: str
    branch_id: UUID | None = None
    is_active: bool = True


class BranchModel(TrackedBase):
    """A selling/stocking location."""

    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("code", name="uq_branch_code"),
    )

    def to_dto(self) -> Branch:
        return Branch(
            id=self.id,
            name=self.name,
            code=self.code,
            is_active=self.is_active,
            address=self.address,
        )

    def __repr__(self) -> str:
        return f"<BranchModel {self.code}: {self.name}>"


class ProductModel(TrackedBase):
    """A stock-keeping unit with its price points."""

    __tablename__ = "products"

    sku: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    purchase_price: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    trade_price: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    retail_price: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
    )

    def to_dto(self) -> Product:
        return Product(
            id=self.id,
            sku=self.sku,
            name=self.name,
            purchase_price=self.purchase_price,
            trade_price=self.trade_price,
            retail_price=self.retail_price,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<ProductModel {self.sku}>"


class EmployeeModel(TrackedBase):
    """A staff member who can sell, receive allowances and be paid."""

    __tablename__ = "employees"

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    branch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("branches.id"), nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_code", name="uq_employee_code"),
        Index("idx_employee_branch", "branch_id"),
    )

    def to_dto(self) -> Employee:
        return Employee(
            id=self.id,
            employee_code=self.employee_code,
            name=self.name,
            branch_id=self.branch_id,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.employee_code}: {self.name}>"
