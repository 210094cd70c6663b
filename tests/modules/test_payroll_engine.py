"""
Tests for the payroll engine (``PayrollService`` / ``PayrollSelector``).

Validates:
- Payslip figures for a representative profile
- generate is repeatable while draft and rejected after approval
- Eligibility: one active, in-period profile of an active employee
- Single active profile per employee, enforced on every write
- Run lifecycle draft -> locked -> approved -> paid
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import update

from ledger_kernel.exceptions import (
    ActiveProfileConflictError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ledger_kernel.models.reference import EmployeeModel
from ledger_modules.payroll.config import PayrollConfig
from ledger_modules.payroll.models import (
    CreateRunRequest,
    ProfileRequest,
    ProfileUpdate,
    RunStatus,
)
from ledger_modules.payroll.selectors import PayrollSelector
from ledger_modules.payroll.service import PayrollService
from tests.modules.conftest import BRANCH_B_ID, EMPLOYEE_1_ID, EMPLOYEE_2_ID, EMPLOYEE_B_ID

JANUARY = CreateRunRequest(
    period_year=2024,
    period_month=1,
    from_date=date(2024, 1, 1),
    to_date=date(2024, 1, 31),
)


def _profile(employee_id, **overrides):
    fields = dict(
        employee_id=employee_id,
        effective_from=date(2023, 1, 1),
        monthly_basic=Decimal("10000"),
        house_rent_percent=Decimal("0.4"),
        medical_allowance=Decimal("500"),
        conveyance_allowance=Decimal("300"),
        pf_employee_percent=Decimal("0.1"),
        tax_monthly=Decimal("200"),
    )
    fields.update(overrides)
    return ProfileRequest(**fields)


@pytest.fixture
def payroll_selector(session):
    return PayrollSelector(session)


@pytest.fixture
def one_employee_profile(payroll_service, admin_actor, reference_data):
    return payroll_service.create_profile(_profile(EMPLOYEE_1_ID), admin_actor)


# =============================================================================
# Requests
# =============================================================================


class TestPayrollRequests:

    def test_percent_must_be_fraction(self):
        with pytest.raises(ValidationError) as exc_info:
            _profile(uuid4(), house_rent_percent=Decimal("40"))
        assert exc_info.value.field == "house_rent_percent"

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            _profile(uuid4(), tax_monthly=Decimal("-1"))

    def test_effective_range_checked(self):
        with pytest.raises(ValidationError):
            _profile(uuid4(), effective_to=date(2022, 12, 31))

    def test_run_month_checked(self):
        with pytest.raises(ValidationError):
            CreateRunRequest(2024, 13, date(2024, 1, 1), date(2024, 1, 31))

    def test_run_dates_checked(self):
        with pytest.raises(ValidationError):
            CreateRunRequest(2024, 1, date(2024, 1, 31), date(2024, 1, 1))


# =============================================================================
# Generation
# =============================================================================


class TestGenerate:

    def test_payslip_figures(self, payroll_service, payroll_selector, admin_actor, one_employee_profile):
        run = payroll_service.create_run(JANUARY, admin_actor)
        assert run.status == RunStatus.DRAFT
        assert run.total_net == Decimal("0")

        run = payroll_service.generate(run.id, admin_actor)

        assert run.employee_count == 1
        assert run.total_gross == Decimal("14800")
        assert run.total_net == Decimal("13600")
        (item,) = payroll_selector.get_run_items(run.id)
        assert item.employee_id == EMPLOYEE_1_ID
        assert item.profile_id == one_employee_profile.id
        assert item.house_rent == Decimal("4000")
        assert item.gross_pay == Decimal("14800")
        assert item.pf_employee == Decimal("1000")
        assert item.total_deductions == Decimal("1200")
        assert item.net_pay == Decimal("13600")

    def test_generate_twice_is_idempotent(
        self, payroll_service, payroll_selector, admin_actor, one_employee_profile,
    ):
        run = payroll_service.create_run(JANUARY, admin_actor)

        first = payroll_service.generate(run.id, admin_actor)
        first_items = payroll_selector.get_run_items(run.id)
        second = payroll_service.generate(run.id, admin_actor)
        second_items = payroll_selector.get_run_items(run.id)

        assert (second.total_gross, second.total_net, second.employee_count) == (
            first.total_gross, first.total_net, first.employee_count,
        )
        assert len(second_items) == len(first_items) == 1
        assert second_items[0].net_pay == first_items[0].net_pay
        assert second_items[0].gross_pay == first_items[0].gross_pay

    def test_generate_after_approve_is_conflict(
        self, payroll_service, payroll_selector, admin_actor, one_employee_profile,
    ):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.generate(run.id, admin_actor)
        payroll_service.approve(run.id, admin_actor)

        with pytest.raises(ConflictError) as exc_info:
            payroll_service.generate(run.id, admin_actor)

        assert isinstance(exc_info.value, InvalidTransitionError)
        assert exc_info.value.current_state == "approved"
        assert payroll_selector.get_run(run.id).total_net == Decimal("13600")

    def test_fixed_gross_overrides_components(self, payroll_service, admin_actor, reference_data):
        payroll_service.create_profile(
            _profile(EMPLOYEE_1_ID, monthly_gross=Decimal("20000")), admin_actor,
        )
        run = payroll_service.create_run(JANUARY, admin_actor)

        run = payroll_service.generate(run.id, admin_actor)

        assert run.total_gross == Decimal("20000")
        assert run.total_net == Decimal("18800")

    def test_generate_picks_up_profile_changes_while_draft(
        self, payroll_service, admin_actor, one_employee_profile,
    ):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.generate(run.id, admin_actor)
        payroll_service.update_profile(
            one_employee_profile.id, ProfileUpdate(tax_monthly=Decimal("700")), admin_actor,
        )

        run = payroll_service.generate(run.id, admin_actor)

        assert run.total_net == Decimal("13100")

    def test_eligibility_rules(self, payroll_service, session, admin_actor, reference_data):
        payroll_service.create_profile(_profile(EMPLOYEE_1_ID), admin_actor)
        # starts after the period
        payroll_service.create_profile(
            _profile(EMPLOYEE_2_ID, effective_from=date(2024, 2, 1)), admin_actor,
        )
        payroll_service.create_profile(_profile(EMPLOYEE_B_ID), admin_actor)
        session.execute(
            update(EmployeeModel).where(EmployeeModel.id == EMPLOYEE_B_ID).values(is_active=False)
        )
        session.commit()
        run = payroll_service.create_run(JANUARY, admin_actor)

        run = payroll_service.generate(run.id, admin_actor)

        assert run.employee_count == 1

    def test_branch_run_only_covers_branch(
        self, payroll_service, payroll_selector, admin_actor, reference_data,
    ):
        for employee_id in (EMPLOYEE_1_ID, EMPLOYEE_2_ID, EMPLOYEE_B_ID):
            payroll_service.create_profile(_profile(employee_id), admin_actor)
        request = CreateRunRequest(2024, 1, date(2024, 1, 1), date(2024, 1, 31), branch_id=BRANCH_B_ID)
        run = payroll_service.create_run(request, admin_actor)

        payroll_service.generate(run.id, admin_actor)

        assert [i.employee_id for i in payroll_selector.get_run_items(run.id)] == [EMPLOYEE_B_ID]

    def test_lock_on_generate(self, session, deterministic_clock, admin_actor, reference_data):
        service = PayrollService(
            session, clock=deterministic_clock, config=PayrollConfig(lock_on_generate=True),
        )
        service.create_profile(_profile(EMPLOYEE_1_ID), admin_actor)
        run = service.create_run(JANUARY, admin_actor)

        run = service.generate(run.id, admin_actor)

        assert run.status == RunStatus.LOCKED
        with pytest.raises(InvalidTransitionError):
            service.generate(run.id, admin_actor)

    def test_generate_logged(self, payroll_service, admin_actor, one_employee_profile, captured_logs):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.generate(run.id, admin_actor)

        (record,) = [r for r in captured_logs() if r["message"] == "payroll_generated"]
        assert record["run_id"] == str(run.id)
        assert record["employee_count"] == 1


# =============================================================================
# Lifecycle
# =============================================================================


class TestRunLifecycle:

    def test_lock_approve_pay(self, payroll_service, admin_actor, one_employee_profile):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.generate(run.id, admin_actor)

        assert payroll_service.lock(run.id, admin_actor).status == RunStatus.LOCKED
        approved = payroll_service.approve(run.id, admin_actor)
        assert approved.status == RunStatus.APPROVED
        assert approved.approved_by == admin_actor.id
        paid = payroll_service.pay(run.id, admin_actor, method="bank")
        assert paid.status == RunStatus.PAID
        assert paid.paid_by == admin_actor.id
        assert paid.payment_method == "bank"

    def test_pay_defaults_method_from_config(self, payroll_service, admin_actor, reference_data):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.approve(run.id, admin_actor)
        assert payroll_service.pay(run.id, admin_actor).payment_method == "cash"

    def test_pay_requires_approval(self, payroll_service, admin_actor, reference_data):
        run = payroll_service.create_run(JANUARY, admin_actor)
        with pytest.raises(InvalidTransitionError):
            payroll_service.pay(run.id, admin_actor)

    def test_second_pay_is_conflict(self, payroll_service, admin_actor, reference_data):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.approve(run.id, admin_actor)
        payroll_service.pay(run.id, admin_actor)
        with pytest.raises(InvalidTransitionError):
            payroll_service.pay(run.id, admin_actor)

    def test_unknown_run(self, payroll_service, admin_actor, reference_data):
        with pytest.raises(NotFoundError):
            payroll_service.approve(uuid4(), admin_actor)

    def test_list_runs_by_status(self, payroll_service, payroll_selector, admin_actor, reference_data):
        draft = payroll_service.create_run(JANUARY, admin_actor)
        approved = payroll_service.create_run(
            CreateRunRequest(2024, 2, date(2024, 2, 1), date(2024, 2, 29)), admin_actor,
        )
        payroll_service.approve(approved.id, admin_actor)

        assert [r.id for r in payroll_selector.list_runs(status=RunStatus.DRAFT)] == [draft.id]
        assert len(payroll_selector.list_runs()) == 2


# =============================================================================
# Salary profiles
# =============================================================================


class TestSalaryProfiles:

    def test_currency_defaults_from_config(self, one_employee_profile):
        assert one_employee_profile.currency == "BDT"
        assert one_employee_profile.is_active

    def test_second_active_profile_rejected(
        self, payroll_service, payroll_selector, admin_actor, one_employee_profile,
    ):
        with pytest.raises(ActiveProfileConflictError) as exc_info:
            payroll_service.create_profile(
                _profile(EMPLOYEE_1_ID, effective_from=date(2024, 1, 1)), admin_actor,
            )
        assert exc_info.value.profile_id == str(one_employee_profile.id)
        assert len(payroll_selector.list_profiles(EMPLOYEE_1_ID)) == 1

    def test_inactive_profile_allowed_then_activation_blocked(
        self, payroll_service, payroll_selector, admin_actor, one_employee_profile,
    ):
        spare = payroll_service.create_profile(
            _profile(EMPLOYEE_1_ID, effective_from=date(2024, 1, 1), is_active=False),
            admin_actor,
        )

        with pytest.raises(ActiveProfileConflictError):
            payroll_service.set_profile_active(spare.id, True, admin_actor)

        payroll_service.set_profile_active(one_employee_profile.id, False, admin_actor)
        payroll_service.set_profile_active(spare.id, True, admin_actor)
        assert payroll_selector.active_profile(EMPLOYEE_1_ID).id == spare.id
        assert [p.effective_from for p in payroll_selector.list_profiles(EMPLOYEE_1_ID)] == [
            date(2024, 1, 1), date(2023, 1, 1),
        ]

    def test_unknown_employee(self, payroll_service, admin_actor, reference_data):
        with pytest.raises(NotFoundError):
            payroll_service.create_profile(_profile(uuid4()), admin_actor)

    def test_profile_used_by_approved_run_is_frozen(
        self, payroll_service, admin_actor, one_employee_profile,
    ):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.generate(run.id, admin_actor)
        payroll_service.approve(run.id, admin_actor)

        with pytest.raises(ConflictError):
            payroll_service.update_profile(
                one_employee_profile.id, ProfileUpdate(monthly_basic=Decimal("1")), admin_actor,
            )
        updated = payroll_service.update_profile(
            one_employee_profile.id, ProfileUpdate(note="promoted"), admin_actor,
        )
        assert updated.note == "promoted"

    def test_update_clears_gross_and_end_date(self, payroll_service, admin_actor, reference_data):
        profile = payroll_service.create_profile(
            _profile(
                EMPLOYEE_1_ID,
                monthly_gross=Decimal("20000"),
                effective_to=date(2024, 12, 31),
            ),
            admin_actor,
        )

        updated = payroll_service.update_profile(
            profile.id, ProfileUpdate(clear={"monthly_gross", "effective_to"}), admin_actor,
        )

        assert updated.monthly_gross is None
        assert updated.effective_to is None
        run = payroll_service.create_run(JANUARY, admin_actor)
        run = payroll_service.generate(run.id, admin_actor)
        assert run.total_gross == Decimal("14800")

    def test_clearing_gross_counts_as_compensation_change(
        self, payroll_service, admin_actor, one_employee_profile,
    ):
        run = payroll_service.create_run(JANUARY, admin_actor)
        payroll_service.generate(run.id, admin_actor)
        payroll_service.approve(run.id, admin_actor)

        with pytest.raises(ConflictError):
            payroll_service.update_profile(
                one_employee_profile.id, ProfileUpdate(clear={"monthly_gross"}), admin_actor,
            )

    def test_clear_rejects_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            ProfileUpdate(clear={"monthly_basic"})
        assert exc_info.value.field == "clear"

    def test_items_by_employee(self, payroll_service, payroll_selector, admin_actor, one_employee_profile):
        for request in (JANUARY, CreateRunRequest(2024, 2, date(2024, 2, 1), date(2024, 2, 29))):
            run = payroll_service.create_run(request, admin_actor)
            payroll_service.generate(run.id, admin_actor)

        assert len(payroll_selector.list_items_by_employee(EMPLOYEE_1_ID)) == 2
        assert payroll_selector.list_items_by_employee(EMPLOYEE_2_ID) == []
