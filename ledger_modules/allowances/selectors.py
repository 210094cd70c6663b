"""
Allowance read side.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.selectors.base import BaseSelector
from ledger_modules.allowances.models import EmployeeAllowance, EmployeeAllowanceItem
from ledger_modules.allowances.orm import EmployeeAllowanceItemModel, EmployeeAllowanceModel


class AllowanceSelector(BaseSelector):

    def get_allowance(self, allowance_id: UUID) -> EmployeeAllowance:
        row = self.session.get(EmployeeAllowanceModel, allowance_id)
        if row is None:
            raise NotFoundError("employee_allowance", allowance_id)
        return row.to_dto()

    def list_allowances(
        self,
        employee_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[EmployeeAllowance]:
        """Allowances newest date first."""
        stmt = select(EmployeeAllowanceModel)
        if employee_id is not None:
            stmt = stmt.where(EmployeeAllowanceModel.employee_id == employee_id)
        if date_from is not None:
            stmt = stmt.where(EmployeeAllowanceModel.allowance_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(EmployeeAllowanceModel.allowance_date <= date_to)
        stmt = stmt.order_by(
            EmployeeAllowanceModel.allowance_date.desc(),
            EmployeeAllowanceModel.created_at.desc(),
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get_items(self, allowance_id: UUID) -> list[EmployeeAllowanceItem]:
        rows = self.session.scalars(
            select(EmployeeAllowanceItemModel)
            .where(EmployeeAllowanceItemModel.allowance_id == allowance_id)
            .order_by(EmployeeAllowanceItemModel.line_no)
        )
        return [row.to_dto() for row in rows]
