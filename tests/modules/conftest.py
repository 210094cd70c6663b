"""
Shared fixtures for module tests.

Reference data (branches, products, employees) is owned by an external
system; these fixtures insert it directly with well-known ids so tests can
refer to it without lookups.

DESIGN RULE: Every data fixture is opt-in.  No autouse.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest

from ledger_kernel.domain.actor import Actor, ActorRole
from ledger_kernel.models.reference import BranchModel, EmployeeModel, ProductModel
from ledger_modules.allowances.service import AllowanceService
from ledger_modules.inventory.models import MovementRequest, MovementType
from ledger_modules.inventory.selectors import StockSelector, TransferSelector
from ledger_modules.inventory.service import StockLedgerService, TransferService
from ledger_modules.payroll.service import PayrollService
from ledger_modules.sales.selectors import SalesOrderSelector
from ledger_modules.sales.service import SalesOrderService

# ---------------------------------------------------------------------------
# Deterministic reference ids
# ---------------------------------------------------------------------------

BRANCH_A_ID = UUID("00000000-0000-4000-a000-000000000001")
BRANCH_B_ID = UUID("00000000-0000-4000-a000-000000000002")
PRODUCT_1_ID = UUID("00000000-0000-4000-a000-000000000011")
PRODUCT_2_ID = UUID("00000000-0000-4000-a000-000000000012")
EMPLOYEE_1_ID = UUID("00000000-0000-4000-a000-000000000021")
EMPLOYEE_2_ID = UUID("00000000-0000-4000-a000-000000000022")
EMPLOYEE_B_ID = UUID("00000000-0000-4000-a000-000000000023")
BRANCH_A_USER_ID = UUID("00000000-0000-4000-b000-0000000000a1")
BRANCH_B_USER_ID = UUID("00000000-0000-4000-b000-0000000000b1")

SEED_DATE = date(2024, 1, 1)


@pytest.fixture
def reference_data(session, deterministic_clock, admin_actor):
    """Two branches, two products, three employees (two at branch A)."""
    now = deterministic_clock.now()
    audit = {"created_at": now, "updated_at": now, "created_by_id": admin_actor.id}
    session.add_all([
        BranchModel(id=BRANCH_A_ID, name="Dhaka Main", code="DHK", **audit),
        BranchModel(id=BRANCH_B_ID, name="Chittagong", code="CTG", **audit),
    ])
    session.flush()
    session.add_all([
        ProductModel(
            id=PRODUCT_1_ID, sku="SKU-001", name="Rice 5kg",
            purchase_price=Decimal("400"), trade_price=Decimal("450"),
            retail_price=Decimal("500"), **audit,
        ),
        ProductModel(
            id=PRODUCT_2_ID, sku="SKU-002", name="Lentils 1kg",
            purchase_price=Decimal("90"), trade_price=Decimal("100"),
            retail_price=Decimal("120"), **audit,
        ),
        EmployeeModel(
            id=EMPLOYEE_1_ID, employee_code="E-001", name="Rahim",
            branch_id=BRANCH_A_ID, **audit,
        ),
        EmployeeModel(
            id=EMPLOYEE_2_ID, employee_code="E-002", name="Karim",
            branch_id=BRANCH_A_ID, **audit,
        ),
        EmployeeModel(
            id=EMPLOYEE_B_ID, employee_code="E-003", name="Salma",
            branch_id=BRANCH_B_ID, **audit,
        ),
    ])
    session.commit()


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture
def branch_a_actor() -> Actor:
    return Actor(id=BRANCH_A_USER_ID, role=ActorRole.BRANCH, branch_id=BRANCH_A_ID)


@pytest.fixture
def branch_b_actor() -> Actor:
    return Actor(id=BRANCH_B_USER_ID, role=ActorRole.BRANCH, branch_id=BRANCH_B_ID)


# ---------------------------------------------------------------------------
# Services and selectors
# ---------------------------------------------------------------------------


@pytest.fixture
def stock_service(session, deterministic_clock):
    return StockLedgerService(session, clock=deterministic_clock)


@pytest.fixture
def transfer_service(session, deterministic_clock, stock_service):
    return TransferService(session, clock=deterministic_clock, stock=stock_service)


@pytest.fixture
def sales_service(session, deterministic_clock, stock_service):
    return SalesOrderService(session, clock=deterministic_clock, stock=stock_service)


@pytest.fixture
def payroll_service(session, deterministic_clock):
    return PayrollService(session, clock=deterministic_clock)


@pytest.fixture
def allowance_service(session, deterministic_clock):
    return AllowanceService(session, clock=deterministic_clock)


@pytest.fixture
def stock_selector(session):
    return StockSelector(session)


@pytest.fixture
def transfer_selector(session):
    return TransferSelector(session)


@pytest.fixture
def order_selector(session):
    return SalesOrderSelector(session)


@pytest.fixture
def receive_stock(stock_service, admin_actor, reference_data):
    """Purchase stock into a branch: ``receive_stock(product_id, branch_id, qty)``."""

    def _receive(product_id: UUID, branch_id: UUID, quantity) -> None:
        stock_service.create_movement(
            MovementRequest(
                product_id=product_id,
                quantity=Decimal(str(quantity)),
                movement_type=MovementType.PURCHASE,
                to_branch_id=branch_id,
            ),
            admin_actor,
        )

    return _receive
