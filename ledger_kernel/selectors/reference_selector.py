"""
ReferenceSelector -- lookups of externally owned reference data.

The narrow getById/list interface the ledgers consume for branches,
products and employees.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.models.reference import (
    Branch,
    BranchModel,
    Employee,
    EmployeeModel,
    Product,
    ProductModel,
)
from ledger_kernel.selectors.base import BaseSelector


class ReferenceSelector(BaseSelector):
    """Read-only access to branches, products and employees."""

    def get_branch(self, branch_id: UUID) -> Branch:
        row = self.session.get(BranchModel, branch_id)
        if row is None:
            raise NotFoundError("branch", branch_id)
        return row.to_dto()

    def list_branches(self, active_only: bool = True) -> list[Branch]:
        stmt = select(BranchModel).order_by(BranchModel.name)
        if active_only:
            stmt = stmt.where(BranchModel.is_active.is_(True))
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get_product(self, product_id: UUID) -> Product:
        row = self.session.get(ProductModel, product_id)
        if row is None:
            raise NotFoundError("product", product_id)
        return row.to_dto()

    def list_products(self, active_only: bool = True) -> list[Product]:
        stmt = select(ProductModel).order_by(ProductModel.sku)
        if active_only:
            stmt = stmt.where(ProductModel.is_active.is_(True))
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get_employee(self, employee_id: UUID) -> Employee:
        row = self.session.get(EmployeeModel, employee_id)
        if row is None:
            raise NotFoundError("employee", employee_id)
        return row.to_dto()

    def list_employees(
        self,
        branch_id: UUID | None = None,
        active_only: bool = True,
    ) -> list[Employee]:
        stmt = select(EmployeeModel).order_by(EmployeeModel.employee_code)
        if branch_id is not None:
            stmt = stmt.where(EmployeeModel.branch_id == branch_id)
        if active_only:
            stmt = stmt.where(EmployeeModel.is_active.is_(True))
        return [row.to_dto() for row in self.session.scalars(stmt)]
