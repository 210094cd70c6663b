"""
Payroll read side: runs, run items and salary profiles.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.selectors.base import BaseSelector
from ledger_modules.payroll.models import (
    PayrollRun,
    PayrollRunItem,
    RunStatus,
    SalaryProfile,
)
from ledger_modules.payroll.orm import (
    PayrollRunItemModel,
    PayrollRunModel,
    SalaryProfileModel,
)


class PayrollSelector(BaseSelector):
    """Queries over payroll runs and salary profiles."""

    def get_run(self, run_id: UUID) -> PayrollRun:
        row = self.session.get(PayrollRunModel, run_id)
        if row is None:
            raise NotFoundError("payroll_run", run_id)
        return row.to_dto()

    def list_runs(
        self,
        branch_id: UUID | None = None,
        status: RunStatus | None = None,
    ) -> list[PayrollRun]:
        """Runs newest first."""
        stmt = select(PayrollRunModel)
        if branch_id is not None:
            stmt = stmt.where(PayrollRunModel.branch_id == branch_id)
        if status is not None:
            stmt = stmt.where(PayrollRunModel.status == RunStatus(status).value)
        stmt = stmt.order_by(
            PayrollRunModel.created_at.desc(),
            PayrollRunModel.period_year.desc(),
            PayrollRunModel.period_month.desc(),
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get_run_items(self, run_id: UUID) -> list[PayrollRunItem]:
        rows = self.session.scalars(
            select(PayrollRunItemModel)
            .where(PayrollRunItemModel.run_id == run_id)
            .order_by(PayrollRunItemModel.employee_id)
        )
        return [row.to_dto() for row in rows]

    def list_items_by_employee(self, employee_id: UUID) -> list[PayrollRunItem]:
        """An employee's items across runs, largest net pay first."""
        rows = self.session.scalars(
            select(PayrollRunItemModel)
            .where(PayrollRunItemModel.employee_id == employee_id)
            .order_by(PayrollRunItemModel.net_pay.desc(), PayrollRunItemModel.run_id)
        )
        return [row.to_dto() for row in rows]

    def list_profiles(self, employee_id: UUID) -> list[SalaryProfile]:
        """An employee's profiles, latest effective date first."""
        rows = self.session.scalars(
            select(SalaryProfileModel)
            .where(SalaryProfileModel.employee_id == employee_id)
            .order_by(SalaryProfileModel.effective_from.desc(), SalaryProfileModel.id)
        )
        return [row.to_dto() for row in rows]

    def active_profile(self, employee_id: UUID) -> SalaryProfile | None:
        row = self.session.scalars(
            select(SalaryProfileModel).where(
                SalaryProfileModel.employee_id == employee_id,
                SalaryProfileModel.is_active.is_(True),
            )
        ).first()
        return row.to_dto() if row is not None else None
