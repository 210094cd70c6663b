"""
Module: ledger_modules.payroll.orm
Responsibility: SQLAlchemy ORM persistence models for salary profiles,
    payroll runs and payroll run items.

Architecture position: Modules > Payroll > ORM.  Inherits from TrackedBase.

Invariants enforced:
    - At most one active salary profile per employee: checked by
      PayrollService on write and backed by a partial unique index on
      PostgreSQL and SQLite.
    - One run item per (run, employee).
    - Run items are generated, never hand-edited, and are frozen once the
      run leaves draft (ledger_kernel.db.immutability).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase


class SalaryProfileModel(TrackedBase):
    """
    ORM model for an employee's dated compensation structure.

    Maps to: ledger_modules.payroll.models.SalaryProfile.
    """

    __tablename__ = "salary_profiles"

    __table_args__ = (
        Index("idx_salary_profile_employee", "employee_id"),
        Index(
            "uq_salary_profile_one_active",
            "employee_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        CheckConstraint(
            "effective_to IS NULL OR effective_to >= effective_from",
            name="ck_salary_profile_effective_range",
        ),
    )

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    branch_id: Mapped[UUID | None] = mapped_column(ForeignKey("branches.id"), nullable=True)
    effective_from: Mapped[date] = mapped_column(Date)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    currency: Mapped[str] = mapped_column(String(3))
    monthly_gross: Mapped[Decimal | None] = mapped_column(nullable=True)
    monthly_basic: Mapped[Decimal] = mapped_column()
    house_rent_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    medical_allowance: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    conveyance_allowance: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    pf_employee_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    pf_employer_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    tax_monthly: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def to_dto(self):
        from ledger_modules.payroll.models import SalaryProfile
        return SalaryProfile(
            id=self.id,
            employee_id=self.employee_id,
            effective_from=self.effective_from,
            currency=self.currency,
            monthly_basic=self.monthly_basic,
            monthly_gross=self.monthly_gross,
            house_rent_percent=self.house_rent_percent,
            medical_allowance=self.medical_allowance,
            conveyance_allowance=self.conveyance_allowance,
            pf_employee_percent=self.pf_employee_percent,
            pf_employer_percent=self.pf_employer_percent,
            tax_monthly=self.tax_monthly,
            is_active=self.is_active,
            branch_id=self.branch_id,
            effective_to=self.effective_to,
            note=self.note,
        )

    def __repr__(self) -> str:
        return (
            f"<SalaryProfileModel employee={self.employee_id} "
            f"from={self.effective_from} active={self.is_active}>"
        )


class PayrollRunModel(TrackedBase):
    """
    ORM model for a payroll run header and its totals.

    Maps to: ledger_modules.payroll.models.PayrollRun.
    """

    __tablename__ = "payroll_runs"

    __table_args__ = (
        CheckConstraint("period_month >= 1 AND period_month <= 12", name="ck_payroll_run_month"),
        CheckConstraint("from_date <= to_date", name="ck_payroll_run_dates"),
        Index("idx_payroll_run_period", "period_year", "period_month"),
        Index("idx_payroll_run_status", "status"),
    )

    branch_id: Mapped[UUID | None] = mapped_column(ForeignKey("branches.id"), nullable=True)
    period_year: Mapped[int] = mapped_column()
    period_month: Mapped[int] = mapped_column()
    from_date: Mapped[date] = mapped_column(Date)
    to_date: Mapped[date] = mapped_column(Date)

    # RunStatus enum stored as string
    status: Mapped[str] = mapped_column(String(50), default="draft")

    total_gross: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_net: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    employee_count: Mapped[int] = mapped_column(default=0)

    generated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_by: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)

    items: Mapped[list["PayrollRunItemModel"]] = relationship(
        back_populates="run",
        cascade="all, delete-orphan",
    )

    def to_dto(self):
        from ledger_modules.payroll.models import PayrollRun, RunStatus
        return PayrollRun(
            id=self.id,
            period_year=self.period_year,
            period_month=self.period_month,
            from_date=self.from_date,
            to_date=self.to_date,
            status=RunStatus(self.status),
            branch_id=self.branch_id,
            total_gross=self.total_gross,
            total_net=self.total_net,
            employee_count=self.employee_count,
            generated_at=self.generated_at,
            approved_by=self.approved_by,
            approved_at=self.approved_at,
            paid_by=self.paid_by,
            paid_at=self.paid_at,
            payment_method=self.payment_method,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollRunModel {self.period_year}-{self.period_month:02d} "
            f"status={self.status} net={self.total_net}>"
        )


class PayrollRunItemModel(TrackedBase):
    """One employee's computed pay within a run."""

    __tablename__ = "payroll_run_items"

    __table_args__ = (
        UniqueConstraint("run_id", "employee_id", name="uq_payroll_run_item_employee"),
        Index("idx_payroll_run_item_employee", "employee_id"),
        Index("idx_payroll_run_item_profile", "profile_id"),
    )

    run_id: Mapped[UUID] = mapped_column(ForeignKey("payroll_runs.id", ondelete="CASCADE"))
    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    profile_id: Mapped[UUID | None] = mapped_column(ForeignKey("salary_profiles.id"), nullable=True)
    basic: Mapped[Decimal] = mapped_column()
    house_rent: Mapped[Decimal] = mapped_column()
    medical_allowance: Mapped[Decimal] = mapped_column()
    conveyance_allowance: Mapped[Decimal] = mapped_column()
    gross_pay: Mapped[Decimal] = mapped_column()
    total_earnings: Mapped[Decimal] = mapped_column()
    pf_employee: Mapped[Decimal] = mapped_column()
    pf_employer: Mapped[Decimal] = mapped_column()
    tax: Mapped[Decimal] = mapped_column()
    total_deductions: Mapped[Decimal] = mapped_column()
    net_pay: Mapped[Decimal] = mapped_column()

    run: Mapped[PayrollRunModel] = relationship(back_populates="items")

    def to_dto(self):
        from ledger_modules.payroll.models import PayrollRunItem
        return PayrollRunItem(
            id=self.id,
            run_id=self.run_id,
            employee_id=self.employee_id,
            profile_id=self.profile_id,
            basic=self.basic,
            house_rent=self.house_rent,
            medical_allowance=self.medical_allowance,
            conveyance_allowance=self.conveyance_allowance,
            gross_pay=self.gross_pay,
            total_earnings=self.total_earnings,
            pf_employee=self.pf_employee,
            pf_employer=self.pf_employer,
            tax=self.tax,
            total_deductions=self.total_deductions,
            net_pay=self.net_pay,
        )

    def __repr__(self) -> str:
        return f"<PayrollRunItemModel employee={self.employee_id} net={self.net_pay}>"
