"""
Tests for the order ledger (``ledger_modules.sales``).

Validates:
- Totals are recomputed from stored items and payments after every mutation
- Posting deducts stock all-or-nothing and is terminal
- Draft-only edits, deletion rules, payments after posting
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ledger_modules.inventory.models import MovementType
from ledger_modules.sales.models import (
    CreateOrderRequest,
    OrderFilter,
    OrderItemRequest,
    OrderStatus,
    OrderUpdate,
    PaymentRequest,
)
from tests.modules.conftest import (
    BRANCH_A_ID,
    BRANCH_B_ID,
    EMPLOYEE_1_ID,
    PRODUCT_1_ID,
    PRODUCT_2_ID,
)


@pytest.fixture
def draft_order(sales_service, branch_a_actor, reference_data):
    return sales_service.create_order(
        CreateOrderRequest(branch_id=BRANCH_A_ID, employee_id=EMPLOYEE_1_ID),
        branch_a_actor,
    )


# =============================================================================
# Requests
# =============================================================================


class TestOrderRequests:

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            OrderItemRequest(product_id=uuid4(), quantity=Decimal("-1"), unit_price=Decimal("5"))
        assert exc_info.value.field == "quantity"

    def test_discount_percent_over_hundred_rejected(self):
        with pytest.raises(ValidationError):
            OrderItemRequest(
                product_id=uuid4(),
                quantity=Decimal("1"),
                unit_price=Decimal("5"),
                discount_percent=Decimal("101"),
            )

    def test_payment_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            PaymentRequest(amount=Decimal("0"))

    def test_float_amounts_rejected(self):
        with pytest.raises(ValidationError):
            PaymentRequest(amount=10.5)

    def test_filter_date_range_checked(self):
        with pytest.raises(ValidationError):
            OrderFilter(date_from=date(2024, 2, 1), date_to=date(2024, 1, 1))

    def test_filter_status_parsed(self):
        assert OrderFilter(status="posted").status is OrderStatus.POSTED

        with pytest.raises(ValidationError) as exc_info:
            OrderFilter(status="bogus")
        assert exc_info.value.field == "status"

    def test_update_clear_limited_to_optional_header_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            OrderUpdate(clear={"tax_total"})
        assert exc_info.value.field == "clear"

        with pytest.raises(ValidationError):
            OrderUpdate(note="x", clear={"note"})


# =============================================================================
# Create / totals
# =============================================================================


class TestOrderTotals:

    def test_new_order_is_draft_with_zero_totals(self, draft_order, deterministic_clock):
        assert draft_order.status == OrderStatus.DRAFT
        assert draft_order.order_date == deterministic_clock.today()
        assert draft_order.subtotal == Decimal("0")
        assert draft_order.grand_total == Decimal("0")
        assert draft_order.due_total == Decimal("0")

    def test_unknown_branch_is_not_found(self, sales_service, branch_a_actor, reference_data):
        with pytest.raises(NotFoundError):
            sales_service.create_order(CreateOrderRequest(branch_id=uuid4()), branch_a_actor)

    def test_totals_follow_items_payments_and_header(
        self, sales_service, draft_order, branch_a_actor, deterministic_clock,
    ):
        order = sales_service.add_items(
            draft_order.id,
            [
                OrderItemRequest(PRODUCT_1_ID, Decimal("2"), Decimal("500")),
                OrderItemRequest(
                    PRODUCT_2_ID, Decimal("10"), Decimal("120"),
                    discount_amount=Decimal("20"), discount_percent=Decimal("10"),
                ),
            ],
            branch_a_actor,
        )
        # 1000 + (1200 - 20 - 120)
        assert order.subtotal == Decimal("2060")
        assert order.grand_total == Decimal("2060")

        order = sales_service.update_order(
            draft_order.id,
            OrderUpdate(
                discount_total=Decimal("60"),
                tax_total=Decimal("100"),
                shipping_total=Decimal("50"),
            ),
            branch_a_actor,
        )
        assert order.grand_total == Decimal("2150")

        order = sales_service.add_payment(
            draft_order.id, PaymentRequest(amount=Decimal("1000")), branch_a_actor,
        )
        deterministic_clock.advance(60)
        order = sales_service.add_payment(
            draft_order.id, PaymentRequest(amount=Decimal("500"), method="card"), branch_a_actor,
        )
        assert order.paid_total == Decimal("1500")
        assert order.due_total == Decimal("650")
        assert [p.method for p in order.payments] == ["cash", "card"]

    def test_update_clears_optional_fields(self, sales_service, draft_order, branch_a_actor):
        order = sales_service.update_order(
            draft_order.id,
            OrderUpdate(customer_name="Walk-in", note="gift"),
            branch_a_actor,
        )
        assert order.employee_id == EMPLOYEE_1_ID

        order = sales_service.update_order(
            draft_order.id,
            OrderUpdate(clear={"employee_id", "note"}),
            branch_a_actor,
        )

        assert order.employee_id is None
        assert order.note is None
        assert order.customer_name == "Walk-in"

    def test_none_leaves_field_unchanged(self, sales_service, draft_order, branch_a_actor):
        order = sales_service.update_order(
            draft_order.id, OrderUpdate(employee_id=None, note="kept"), branch_a_actor,
        )
        assert order.employee_id == EMPLOYEE_1_ID

    def test_grand_total_floors_at_zero(self, sales_service, draft_order, branch_a_actor):
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("100"))],
            branch_a_actor,
        )
        order = sales_service.update_order(
            draft_order.id, OrderUpdate(discount_total=Decimal("500")), branch_a_actor,
        )
        assert order.grand_total == Decimal("0")

    def test_overpayment_leaves_negative_due(self, sales_service, draft_order, branch_a_actor):
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("100"))],
            branch_a_actor,
        )
        order = sales_service.add_payment(
            draft_order.id, PaymentRequest(amount=Decimal("150")), branch_a_actor,
        )
        assert order.due_total == Decimal("-50")

    def test_line_total_floors_at_zero(self, sales_service, draft_order, branch_a_actor):
        order = sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(
                PRODUCT_1_ID, Decimal("1"), Decimal("100"), discount_amount=Decimal("250"),
            )],
            branch_a_actor,
        )
        assert order.items[0].total == Decimal("0")

    def test_add_items_is_all_or_nothing(
        self, sales_service, draft_order, branch_a_actor, order_selector,
    ):
        with pytest.raises(NotFoundError):
            sales_service.add_items(
                draft_order.id,
                [
                    OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("100")),
                    OrderItemRequest(uuid4(), Decimal("1"), Decimal("100")),
                ],
                branch_a_actor,
            )
        assert order_selector.get_items(draft_order.id) == []
        assert order_selector.get_order(draft_order.id).subtotal == Decimal("0")

    def test_empty_item_list_rejected(self, sales_service, draft_order, branch_a_actor):
        with pytest.raises(ValidationError):
            sales_service.add_items(draft_order.id, [], branch_a_actor)

    def test_line_numbers_continue_across_calls(self, sales_service, draft_order, branch_a_actor):
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("1"))],
            branch_a_actor,
        )
        order = sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_2_ID, Decimal("1"), Decimal("1"))],
            branch_a_actor,
        )
        assert [item.line_no for item in order.items] == [1, 2]

    def test_items_added_to_unknown_order(self, sales_service, branch_a_actor, reference_data):
        with pytest.raises(NotFoundError):
            sales_service.add_items(
                uuid4(),
                [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("1"))],
                branch_a_actor,
            )


# =============================================================================
# Posting
# =============================================================================


class TestPostOrder:

    def test_post_deducts_stock_to_zero(
        self, sales_service, draft_order, branch_a_actor, receive_stock, stock_selector,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 10)
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("10"), Decimal("5"))],
            branch_a_actor,
        )

        posted = sales_service.post_order(draft_order.id, branch_a_actor)

        assert posted.status == OrderStatus.POSTED
        assert posted.posted_by == branch_a_actor.id
        assert posted.posted_at is not None
        assert stock_selector.quantity(PRODUCT_1_ID, BRANCH_A_ID) == Decimal("0")
        sales = [
            m for m in stock_selector.list_movements(BRANCH_A_ID)
            if m.movement_type == MovementType.SALE
        ]
        assert len(sales) == 1
        assert sales[0].quantity == Decimal("10")

    def test_insufficient_stock_leaves_balance_unchanged(
        self, sales_service, draft_order, branch_a_actor, receive_stock, stock_selector,
        order_selector,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 5)
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("10"), Decimal("5"))],
            branch_a_actor,
        )

        with pytest.raises(InsufficientStockError) as exc_info:
            sales_service.post_order(draft_order.id, branch_a_actor)

        err = exc_info.value
        assert err.product_id == str(PRODUCT_1_ID)
        assert err.branch_id == str(BRANCH_A_ID)
        assert err.available == Decimal("5")
        assert err.requested == Decimal("10")
        assert stock_selector.quantity(PRODUCT_1_ID, BRANCH_A_ID) == Decimal("5")
        assert order_selector.get_order(draft_order.id).status == OrderStatus.DRAFT

    def test_second_line_short_deducts_nothing(
        self, sales_service, draft_order, branch_a_actor, receive_stock, stock_selector,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 10)
        receive_stock(PRODUCT_2_ID, BRANCH_A_ID, 1)
        sales_service.add_items(
            draft_order.id,
            [
                OrderItemRequest(PRODUCT_1_ID, Decimal("4"), Decimal("5")),
                OrderItemRequest(PRODUCT_2_ID, Decimal("3"), Decimal("5")),
            ],
            branch_a_actor,
        )

        with pytest.raises(InsufficientStockError):
            sales_service.post_order(draft_order.id, branch_a_actor)

        assert stock_selector.quantity(PRODUCT_1_ID, BRANCH_A_ID) == Decimal("10")
        assert stock_selector.quantity(PRODUCT_2_ID, BRANCH_A_ID) == Decimal("1")

    def test_repeated_product_lines_are_checked_together(
        self, sales_service, draft_order, branch_a_actor, receive_stock, stock_selector,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 5)
        sales_service.add_items(
            draft_order.id,
            [
                OrderItemRequest(PRODUCT_1_ID, Decimal("3"), Decimal("5")),
                OrderItemRequest(PRODUCT_1_ID, Decimal("3"), Decimal("5")),
            ],
            branch_a_actor,
        )

        with pytest.raises(InsufficientStockError) as exc_info:
            sales_service.post_order(draft_order.id, branch_a_actor)
        assert exc_info.value.requested == Decimal("6")
        assert stock_selector.quantity(PRODUCT_1_ID, BRANCH_A_ID) == Decimal("5")

    def test_stock_at_other_branch_does_not_count(
        self, sales_service, draft_order, branch_a_actor, receive_stock,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_B_ID, 100)
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("5"))],
            branch_a_actor,
        )
        with pytest.raises(InsufficientStockError) as exc_info:
            sales_service.post_order(draft_order.id, branch_a_actor)
        assert exc_info.value.available == Decimal("0")

    def test_post_without_items_is_conflict(self, sales_service, draft_order, branch_a_actor):
        with pytest.raises(ConflictError):
            sales_service.post_order(draft_order.id, branch_a_actor)

    def test_second_post_is_conflict_and_moves_nothing(
        self, sales_service, draft_order, branch_a_actor, receive_stock, stock_selector,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 10)
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("4"), Decimal("5"))],
            branch_a_actor,
        )
        sales_service.post_order(draft_order.id, branch_a_actor)

        with pytest.raises(InvalidTransitionError) as exc_info:
            sales_service.post_order(draft_order.id, branch_a_actor)

        assert exc_info.value.current_state == "posted"
        assert stock_selector.quantity(PRODUCT_1_ID, BRANCH_A_ID) == Decimal("6")

    def test_posted_order_rejects_edits_but_takes_payments(
        self, sales_service, draft_order, branch_a_actor, receive_stock,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 10)
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("2"), Decimal("50"))],
            branch_a_actor,
        )
        sales_service.post_order(draft_order.id, branch_a_actor)

        with pytest.raises(ConflictError):
            sales_service.add_items(
                draft_order.id,
                [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("50"))],
                branch_a_actor,
            )
        with pytest.raises(ConflictError):
            sales_service.update_order(
                draft_order.id, OrderUpdate(note="late change"), branch_a_actor,
            )

        order = sales_service.add_payment(
            draft_order.id, PaymentRequest(amount=Decimal("60")), branch_a_actor,
        )
        assert order.status == OrderStatus.POSTED
        assert order.due_total == Decimal("40")

    def test_post_logs_event(
        self, sales_service, draft_order, branch_a_actor, receive_stock, captured_logs,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 1)
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("5"))],
            branch_a_actor,
        )
        sales_service.post_order(draft_order.id, branch_a_actor)

        posted = [r for r in captured_logs() if r["message"] == "order_posted"]
        assert len(posted) == 1
        assert posted[0]["order_id"] == str(draft_order.id)
        assert Decimal(posted[0]["grand_total"]) == Decimal("5")


# =============================================================================
# Delete
# =============================================================================


class TestDeleteOrder:

    def test_draft_order_with_items_can_be_deleted(
        self, sales_service, draft_order, branch_a_actor, order_selector,
    ):
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("5"))],
            branch_a_actor,
        )
        sales_service.delete_order(draft_order.id, branch_a_actor)

        with pytest.raises(NotFoundError):
            order_selector.get_order(draft_order.id)

    def test_order_with_payments_cannot_be_deleted(
        self, sales_service, draft_order, branch_a_actor,
    ):
        sales_service.add_payment(
            draft_order.id, PaymentRequest(amount=Decimal("5")), branch_a_actor,
        )
        with pytest.raises(ConflictError):
            sales_service.delete_order(draft_order.id, branch_a_actor)

    def test_posted_order_cannot_be_deleted(
        self, sales_service, draft_order, branch_a_actor, receive_stock,
    ):
        receive_stock(PRODUCT_1_ID, BRANCH_A_ID, 1)
        sales_service.add_items(
            draft_order.id,
            [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal("5"))],
            branch_a_actor,
        )
        sales_service.post_order(draft_order.id, branch_a_actor)
        with pytest.raises(ConflictError):
            sales_service.delete_order(draft_order.id, branch_a_actor)


# =============================================================================
# Read side
# =============================================================================


class TestOrderSelector:

    def test_list_orders_filters_by_branch_and_status(
        self, sales_service, order_selector, branch_a_actor, branch_b_actor, draft_order,
    ):
        sales_service.create_order(CreateOrderRequest(branch_id=BRANCH_B_ID), branch_b_actor)

        assert [o.id for o in order_selector.list_orders(branch_id=BRANCH_A_ID)] == [draft_order.id]
        assert len(order_selector.list_orders(status=OrderStatus.DRAFT)) == 2
        assert order_selector.list_orders(status=OrderStatus.POSTED) == []

    def test_ledger_totals_sum_stored_figures(
        self, sales_service, order_selector, branch_a_actor, reference_data,
    ):
        for amount, paid in (("100", "30"), ("250", "250")):
            order = sales_service.create_order(
                CreateOrderRequest(branch_id=BRANCH_A_ID), branch_a_actor,
            )
            sales_service.add_items(
                order.id,
                [OrderItemRequest(PRODUCT_1_ID, Decimal("1"), Decimal(amount))],
                branch_a_actor,
            )
            sales_service.add_payment(order.id, PaymentRequest(amount=Decimal(paid)), branch_a_actor)

        totals = order_selector.ledger_totals(OrderFilter(branch_id=BRANCH_A_ID))
        assert totals.orders_count == 2
        assert totals.grand_total == Decimal("350")
        assert totals.paid_total == Decimal("280")
        assert totals.due_total == Decimal("70")

    def test_order_date_filter(self, sales_service, order_selector, branch_a_actor, reference_data):
        for day in (1, 15, 31):
            sales_service.create_order(
                CreateOrderRequest(branch_id=BRANCH_A_ID, order_date=date(2024, 1, day)),
                branch_a_actor,
            )
        totals = order_selector.ledger_totals(
            OrderFilter(date_from=date(2024, 1, 10), date_to=date(2024, 1, 31)),
        )
        assert totals.orders_count == 2
