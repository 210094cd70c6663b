"""
Payroll Module Service (``ledger_modules.payroll.service``).

Responsibility
--------------
Salary profile management (with the single-active-profile rule), payroll
run creation, item generation, locking, approval and payment.  Payslip
arithmetic is delegated to ``helpers.compute_payslip``.

Architecture position
---------------------
**Modules layer**.  ``PayrollService`` extends ``BaseService``; it is
independent of the stock and order ledgers.

Invariants enforced
-------------------
* An employee has at most one active salary profile.  Profile writes for
  an employee are serialized by locking the employee row first.
* ``generate`` replaces the run's items wholesale (delete, then insert) and
  sets run totals to the sum of the new items, inside one transaction.
  Calling it repeatedly on a draft run yields the same figures.
* ``generate`` on a run that is locked, approved or paid is rejected with
  ``InvalidTransitionError``; ``pay`` is valid only once, from approved.
* Compensation fields of a profile used by a non-draft run cannot change.

Failure modes
-------------
* ``ValidationError``  -- malformed request.
* ``NotFoundError``  -- unknown employee, branch, profile or run.
* ``ActiveProfileConflictError``  -- a second active profile.
* ``InvalidTransitionError``  -- status does not allow the action.
* ``PersistenceError``  -- database failure; safe to retry.

Usage::

    payroll = PayrollService(session, clock=clock)
    run = payroll.create_run(CreateRunRequest(2024, 1, date(2024, 1, 1),
                                              date(2024, 1, 31)), actor)
    payroll.generate(run.id, actor)
    payroll.approve(run.id, actor)
    payroll.pay(run.id, actor, method="bank")
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.actor import Actor
from ledger_kernel.domain.clock import Clock
from ledger_kernel.exceptions import (
    ActiveProfileConflictError,
    ConflictError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.reference import BranchModel, EmployeeModel
from ledger_kernel.services.base import BaseService
from ledger_modules.payroll.config import PayrollConfig
from ledger_modules.payroll.helpers import compute_payslip
from ledger_modules.payroll.models import (
    CreateRunRequest,
    PayrollRun,
    ProfileRequest,
    ProfileUpdate,
    RunStatus,
    SalaryProfile,
)
from ledger_modules.payroll.orm import (
    PayrollRunItemModel,
    PayrollRunModel,
    SalaryProfileModel,
)
from ledger_modules.payroll.workflows import PAYROLL_RUN_WORKFLOW

logger = get_logger("modules.payroll.service")


class PayrollService(BaseService):
    """
    Payroll engine operations.

    Contract
    --------
    * Every public method runs in one transaction and returns a DTO.
    * ``generate`` considers active employees (of the run's branch, when it
      has one) that have exactly one active profile overlapping the run
      period.  Employees with none, or with more than one, are skipped.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PayrollConfig | None = None,
    ):
        super().__init__(session, clock)
        self._config = config or PayrollConfig.with_defaults()

    # -------------------------------------------------------------------------
    # Salary profiles
    # -------------------------------------------------------------------------

    def _active_profile_for(self, employee_id: UUID, exclude_id: UUID | None = None):
        stmt = select(SalaryProfileModel).where(
            SalaryProfileModel.employee_id == employee_id,
            SalaryProfileModel.is_active.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(SalaryProfileModel.id != exclude_id)
        return self.session.scalars(stmt).first()

    def _ensure_no_other_active(self, employee_id: UUID, exclude_id: UUID | None = None) -> None:
        existing = self._active_profile_for(employee_id, exclude_id)
        if existing is not None:
            raise ActiveProfileConflictError(employee_id=employee_id, profile_id=existing.id)

    def create_profile(self, request: ProfileRequest, actor: Actor) -> SalaryProfile:
        with self._atomic("create_salary_profile", employee_id=str(request.employee_id)):
            self._lock(EmployeeModel, request.employee_id, "employee")
            if request.branch_id is not None:
                self._get(BranchModel, request.branch_id, "branch")
            if request.is_active:
                self._ensure_no_other_active(request.employee_id)
            profile = SalaryProfileModel(
                employee_id=request.employee_id,
                branch_id=request.branch_id,
                effective_from=request.effective_from,
                effective_to=request.effective_to,
                currency=request.currency or self._config.default_currency,
                monthly_gross=request.monthly_gross,
                monthly_basic=request.monthly_basic,
                house_rent_percent=request.house_rent_percent,
                medical_allowance=request.medical_allowance,
                conveyance_allowance=request.conveyance_allowance,
                pf_employee_percent=request.pf_employee_percent,
                pf_employer_percent=request.pf_employer_percent,
                tax_monthly=request.tax_monthly,
                is_active=request.is_active,
                note=request.note,
                **self._stamp(actor),
            )
            self.session.add(profile)
            self.session.flush()
            result = profile.to_dto()

        logger.info(
            "salary_profile_created",
            extra={
                "profile_id": str(result.id),
                "employee_id": str(result.employee_id),
                "is_active": result.is_active,
                "effective_from": str(result.effective_from),
            },
        )
        return result

    def update_profile(self, profile_id: UUID, update: ProfileUpdate, actor: Actor) -> SalaryProfile:
        changes = update.changes()
        with self._atomic("update_salary_profile", profile_id=str(profile_id)):
            profile = self._lock(SalaryProfileModel, profile_id, "salary_profile")
            if update.touches_compensation():
                used_by = self.session.execute(
                    select(PayrollRunModel.id, PayrollRunModel.status)
                    .join(PayrollRunItemModel, PayrollRunItemModel.run_id == PayrollRunModel.id)
                    .where(
                        PayrollRunItemModel.profile_id == profile_id,
                        PayrollRunModel.status != RunStatus.DRAFT.value,
                    )
                    .limit(1)
                ).first()
                if used_by is not None:
                    raise ConflictError(
                        "salary_profile", profile_id, "in_use", "update",
                        reason=f"used by payroll run {used_by.id} ({used_by.status})",
                    )
            if changes.get("branch_id") is not None:
                self._get(BranchModel, changes["branch_id"], "branch")
            for name, value in changes.items():
                setattr(profile, name, value)
            if profile.effective_to is not None and profile.effective_to < profile.effective_from:
                raise ValidationError("effective_to", "must not be before effective_from")
            self._touch(profile, actor)
            self.session.flush()
            result = profile.to_dto()

        logger.info(
            "salary_profile_updated",
            extra={"profile_id": str(profile_id), "fields": sorted(changes)},
        )
        return result

    def set_profile_active(self, profile_id: UUID, active: bool, actor: Actor) -> SalaryProfile:
        """Activate or deactivate a profile.  Activation never deactivates another."""
        with self._atomic("set_profile_active", profile_id=str(profile_id)):
            profile = self._get(SalaryProfileModel, profile_id, "salary_profile")
            self._lock(EmployeeModel, profile.employee_id, "employee")
            profile = self._lock(SalaryProfileModel, profile_id, "salary_profile")
            if active and not profile.is_active:
                self._ensure_no_other_active(profile.employee_id, exclude_id=profile.id)
            profile.is_active = active
            self._touch(profile, actor)
            self.session.flush()
            result = profile.to_dto()

        logger.info(
            "salary_profile_activation_set",
            extra={
                "profile_id": str(profile_id),
                "employee_id": str(result.employee_id),
                "is_active": active,
            },
        )
        return result

    # -------------------------------------------------------------------------
    # Payroll runs
    # -------------------------------------------------------------------------

    def create_run(self, request: CreateRunRequest, actor: Actor) -> PayrollRun:
        with self._atomic(
            "create_payroll_run",
            period=f"{request.period_year}-{request.period_month:02d}",
        ):
            if request.branch_id is not None:
                self._get(BranchModel, request.branch_id, "branch")
            run = PayrollRunModel(
                branch_id=request.branch_id,
                period_year=request.period_year,
                period_month=request.period_month,
                from_date=request.from_date,
                to_date=request.to_date,
                status=PAYROLL_RUN_WORKFLOW.initial_state,
                total_gross=ZERO,
                total_net=ZERO,
                employee_count=0,
                **self._stamp(actor),
            )
            self.session.add(run)
            self.session.flush()
            result = run.to_dto()

        logger.info(
            "payroll_run_created",
            extra={
                "run_id": str(result.id),
                "branch_id": str(result.branch_id) if result.branch_id else None,
                "period": f"{result.period_year}-{result.period_month:02d}",
            },
        )
        return result

    def _eligible_profiles(
        self, branch_id: UUID | None, from_date: date, to_date: date,
    ) -> list[SalaryProfileModel]:
        """One profile per employee that has exactly one active, in-period profile."""
        stmt = (
            select(SalaryProfileModel)
            .join(EmployeeModel, EmployeeModel.id == SalaryProfileModel.employee_id)
            .where(
                EmployeeModel.is_active.is_(True),
                SalaryProfileModel.is_active.is_(True),
                SalaryProfileModel.effective_from <= to_date,
                or_(
                    SalaryProfileModel.effective_to.is_(None),
                    SalaryProfileModel.effective_to >= from_date,
                ),
            )
            .order_by(SalaryProfileModel.employee_id)
        )
        if branch_id is not None:
            stmt = stmt.where(EmployeeModel.branch_id == branch_id)

        by_employee: dict[UUID, list[SalaryProfileModel]] = defaultdict(list)
        for profile in self.session.scalars(stmt):
            by_employee[profile.employee_id].append(profile)

        eligible = []
        for employee_id, profiles in by_employee.items():
            if len(profiles) == 1:
                eligible.append(profiles[0])
            else:
                logger.warning(
                    "payroll_employee_skipped",
                    extra={
                        "employee_id": str(employee_id),
                        "active_profiles": len(profiles),
                    },
                )
        return eligible

    def generate(self, run_id: UUID, actor: Actor) -> PayrollRun:
        """
        Replace the run's items with freshly computed payslips.

        Requires a draft run.  When ``lock_on_generate`` is configured the
        run moves to locked in the same transaction.
        """
        with self._atomic("generate_payroll", run_id=str(run_id)):
            run = self._lock(PayrollRunModel, run_id, "payroll_run")
            PAYROLL_RUN_WORKFLOW.resolve(run.status, "generate", "payroll_run", run_id)

            for item in list(run.items):
                run.items.remove(item)
            self.session.flush()

            total_gross = ZERO
            total_net = ZERO
            profiles = self._eligible_profiles(run.branch_id, run.from_date, run.to_date)
            for profile in profiles:
                slip = compute_payslip(
                    monthly_basic=profile.monthly_basic,
                    monthly_gross=profile.monthly_gross,
                    house_rent_percent=profile.house_rent_percent,
                    medical_allowance=profile.medical_allowance,
                    conveyance_allowance=profile.conveyance_allowance,
                    pf_employee_percent=profile.pf_employee_percent,
                    pf_employer_percent=profile.pf_employer_percent,
                    tax_monthly=profile.tax_monthly,
                )
                run.items.append(PayrollRunItemModel(
                    employee_id=profile.employee_id,
                    profile_id=profile.id,
                    basic=slip.basic,
                    house_rent=slip.house_rent,
                    medical_allowance=slip.medical_allowance,
                    conveyance_allowance=slip.conveyance_allowance,
                    gross_pay=slip.gross_pay,
                    total_earnings=slip.total_earnings,
                    pf_employee=slip.pf_employee,
                    pf_employer=slip.pf_employer,
                    tax=slip.tax,
                    total_deductions=slip.total_deductions,
                    net_pay=slip.net_pay,
                    **self._stamp(actor),
                ))
                total_gross += slip.gross_pay
                total_net += slip.net_pay

            run.total_gross = total_gross
            run.total_net = total_net
            run.employee_count = len(profiles)
            run.generated_at = self._clock.now()
            if self._config.lock_on_generate:
                transition = PAYROLL_RUN_WORKFLOW.resolve(run.status, "lock", "payroll_run", run_id)
                run.status = transition.to_state
            self._touch(run, actor)
            self.session.flush()
            result = run.to_dto()

        logger.info(
            "payroll_generated",
            extra={
                "run_id": str(run_id),
                "employee_count": result.employee_count,
                "total_gross": str(result.total_gross),
                "total_net": str(result.total_net),
                "status": result.status.value,
            },
        )
        return result

    def _advance(self, run_id: UUID, action: str, actor: Actor) -> PayrollRunModel:
        run = self._lock(PayrollRunModel, run_id, "payroll_run")
        transition = PAYROLL_RUN_WORKFLOW.resolve(run.status, action, "payroll_run", run_id)
        run.status = transition.to_state
        self._touch(run, actor)
        return run

    def lock(self, run_id: UUID, actor: Actor) -> PayrollRun:
        """Freeze a draft run's items ahead of approval."""
        with self._atomic("lock_payroll", run_id=str(run_id)):
            run = self._advance(run_id, "lock", actor)
            self.session.flush()
            result = run.to_dto()

        logger.info("payroll_locked", extra={"run_id": str(run_id), "actor_id": str(actor.id)})
        return result

    def approve(self, run_id: UUID, actor: Actor) -> PayrollRun:
        with self._atomic("approve_payroll", run_id=str(run_id)):
            run = self._advance(run_id, "approve", actor)
            run.approved_by = actor.id
            run.approved_at = self._clock.now()
            self.session.flush()
            result = run.to_dto()

        logger.info(
            "payroll_approved",
            extra={
                "run_id": str(run_id),
                "actor_id": str(actor.id),
                "total_net": str(result.total_net),
            },
        )
        return result

    def pay(self, run_id: UUID, actor: Actor, method: str | None = None) -> PayrollRun:
        """Mark an approved run paid.  Disbursement itself happens elsewhere."""
        with self._atomic("pay_payroll", run_id=str(run_id)):
            run = self._advance(run_id, "pay", actor)
            run.paid_by = actor.id
            run.paid_at = self._clock.now()
            run.payment_method = method or self._config.default_payment_method
            self.session.flush()
            result = run.to_dto()

        logger.info(
            "payroll_paid",
            extra={
                "run_id": str(run_id),
                "actor_id": str(actor.id),
                "payment_method": result.payment_method,
                "total_net": str(result.total_net),
            },
        )
        return result
