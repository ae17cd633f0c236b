"""Order lifecycle tests.

Covers:
- Per-role transition table and the order graph.
- Courier auto-assignment and ownership.
- Manager assignment of couriers (missing / not a courier).
- Rejection releasing stock, the coupon use and the wallet, and
  rolling back the customer's spend counters.
- History rows and outbox events for every change.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.customers.exceptions import CustomerNotFound
from modules.customers.models import CustomerRole
from modules.orders.constants import ROLE_TRANSITIONS, VALID_TRANSITIONS, OrderStatus
from modules.orders.dtos import UpdateOrderStatusDTO
from modules.orders.exceptions import (
    ForbiddenTransition,
    InvalidOrderStatus,
    NotACourier,
    OrderAccessDenied,
    OrderNotFound,
)
from modules.orders.models import OrderStatusHistory

pytestmark = pytest.mark.unit


@pytest.fixture()
def product(make_product):
    return make_product(amount=10)


@pytest.fixture()
def buyer(make_customer):
    return make_customer(wallet="50.00")


@pytest.fixture()
def courier(make_customer):
    return make_customer(role=CustomerRole.DELIVERY)


@pytest.fixture()
def other_courier(make_customer):
    return make_customer(role=CustomerRole.DELIVERY)


@pytest.fixture()
def manager(make_customer):
    return make_customer(role=CustomerRole.MANAGER)


@pytest.fixture()
def order(order_service, cart_service, buyer, product):
    cart_service.add_product(buyer.id, product.id, 4)
    cart_service.set_wallet(buyer.id, True)
    return order_service.create_order(buyer.id)


def _move(order_service, order, actor, status, **kwargs):
    return order_service.update_status(
        order.id, actor, UpdateOrderStatusDTO(status=status, **kwargs)
    )


# ===========================================================================
# Transition tables
# ===========================================================================


class TestTransitionTables:
    def test_terminal_states_have_no_exits(self):
        assert VALID_TRANSITIONS[OrderStatus.DELIVERED] == set()
        assert VALID_TRANSITIONS[OrderStatus.REJECTED] == set()

    def test_role_tables_stay_inside_graph(self):
        for pairs in ROLE_TRANSITIONS.values():
            for old, new in pairs:
                assert new in VALID_TRANSITIONS[old]

    def test_courier_cannot_reject_pending(self):
        pairs = ROLE_TRANSITIONS[CustomerRole.DELIVERY]
        assert (OrderStatus.PENDING, OrderStatus.REJECTED) not in pairs

    def test_user_has_no_transitions(self):
        assert ROLE_TRANSITIONS[CustomerRole.USER] == frozenset()

    def test_model_helper(self, order):
        assert order.can_transition_to(OrderStatus.ACCEPTED)
        assert not order.can_transition_to(OrderStatus.DELIVERED)


# ===========================================================================
# Couriers
# ===========================================================================


class TestCourier:
    def test_accept_assigns_courier(self, order_service, order, courier):
        updated = _move(order_service, order, courier, "accepted")

        assert updated.status == OrderStatus.ACCEPTED
        assert updated.delivery_id == courier.id

    def test_deliver_own_order(self, order_service, order, courier):
        _move(order_service, order, courier, "accepted")
        updated = _move(order_service, order, courier, "delivered")
        assert updated.status == OrderStatus.DELIVERED

    def test_cannot_deliver_someone_elses_order(
        self, order_service, order, courier, other_courier
    ):
        _move(order_service, order, courier, "accepted")
        with pytest.raises(ForbiddenTransition):
            _move(order_service, order, other_courier, "delivered")

    def test_cannot_accept_order_assigned_to_other(
        self, order_service, order, manager, courier, other_courier
    ):
        _move(order_service, order, manager, "pending", delivery_id=courier.id)
        with pytest.raises(ForbiddenTransition):
            _move(order_service, order, other_courier, "accepted")

    def test_can_accept_order_assigned_to_self(self, order_service, order, manager, courier):
        _move(order_service, order, manager, "pending", delivery_id=courier.id)
        updated = _move(order_service, order, courier, "accepted")
        assert updated.delivery_id == courier.id

    def test_cannot_reject_pending(self, order_service, order, courier):
        with pytest.raises(ForbiddenTransition):
            _move(order_service, order, courier, "rejected")

    def test_cannot_assign_couriers(self, order_service, order, courier, other_courier):
        with pytest.raises(ForbiddenTransition):
            _move(order_service, order, courier, "accepted", delivery_id=other_courier.id)


# ===========================================================================
# Managers / users
# ===========================================================================


class TestStaffAndUsers:
    def test_user_is_forbidden(self, order_service, order, buyer):
        with pytest.raises(ForbiddenTransition):
            _move(order_service, order, buyer, "accepted")

    def test_manager_full_graph(self, order_service, order, manager):
        _move(order_service, order, manager, "accepted")
        updated = _move(order_service, order, manager, "delivered")
        assert updated.status == OrderStatus.DELIVERED

    def test_admin_can_reject_pending(self, order_service, order, make_customer):
        admin = make_customer(role=CustomerRole.ADMIN)
        assert _move(order_service, order, admin, "rejected").status == "rejected"

    def test_skip_state_is_invalid(self, order_service, order, manager):
        with pytest.raises(InvalidOrderStatus):
            _move(order_service, order, manager, "delivered")

    def test_terminal_order_is_frozen(self, order_service, order, manager, courier):
        _move(order_service, order, manager, "rejected")
        with pytest.raises(InvalidOrderStatus):
            _move(order_service, order, manager, "accepted")
        with pytest.raises(InvalidOrderStatus):
            _move(order_service, order, manager, "rejected", delivery_id=courier.id)

    def test_same_status_without_assignment_is_invalid(self, order_service, order, manager):
        with pytest.raises(InvalidOrderStatus):
            _move(order_service, order, manager, "pending")

    def test_assign_courier_keeps_status(self, order_service, order, manager, courier):
        updated = _move(order_service, order, manager, "pending", delivery_id=courier.id)

        assert updated.status == OrderStatus.PENDING
        assert updated.delivery_id == courier.id
        assert OutboxEvent.objects.filter(event_type="OrderDeliveryAssigned").count() == 1

    def test_assign_missing_customer(self, order_service, order, manager):
        with pytest.raises(CustomerNotFound):
            _move(order_service, order, manager, "accepted", delivery_id=uuid4())

    def test_assign_non_courier(self, order_service, order, manager, buyer):
        with pytest.raises(NotACourier):
            _move(order_service, order, manager, "accepted", delivery_id=buyer.id)

    def test_unknown_order(self, order_service, manager):
        with pytest.raises(OrderNotFound):
            order_service.update_status(
                uuid4(), manager, UpdateOrderStatusDTO(status="accepted")
            )


# ===========================================================================
# Side effects
# ===========================================================================


class TestSideEffects:
    def test_reject_releases_stock_and_refunds_wallet(
        self, order_service, order, manager, product, buyer
    ):
        product.refresh_from_db()
        buyer.refresh_from_db()
        assert product.amount == 6
        assert order.wallet_amount == Decimal("50.00")
        assert buyer.wallet == Decimal("0.00")
        assert buyer.orders_count == 1
        assert buyer.spent == Decimal("350.00")

        _move(order_service, order, manager, "rejected")

        product.refresh_from_db()
        buyer.refresh_from_db()
        assert product.amount == 10
        assert buyer.wallet == Decimal("50.00")
        assert buyer.orders_count == 0
        assert buyer.spent == Decimal("0.00")
        assert OutboxEvent.objects.filter(event_type="OrderRejected").count() == 1

    def test_reject_returns_coupon_use(
        self, order_service, cart_service, make_customer, make_coupon, product, manager
    ):
        shopper = make_customer()
        coupon = make_coupon(code="ONCE", value="10", limit=1)
        cart_service.add_product(shopper.id, product.id, 1)
        cart_service.apply_coupon(shopper.id, "ONCE")
        placed = order_service.create_order(shopper.id)
        coupon.refresh_from_db()
        assert coupon.used == 1

        _move(order_service, placed, manager, "rejected")

        coupon.refresh_from_db()
        shopper.refresh_from_db()
        assert coupon.used == 0
        assert shopper.spent == Decimal("0.00")
        assert shopper.orders_count == 0

    def test_delivered_order_keeps_counters(
        self, order_service, order, courier, buyer
    ):
        _move(order_service, order, courier, "accepted")
        _move(order_service, order, courier, "delivered")

        buyer.refresh_from_db()
        assert buyer.orders_count == 1
        assert buyer.spent == Decimal("350.00")

    def test_history_row_per_change(self, order_service, order, manager, courier):
        _move(order_service, order, courier, "accepted", notes="on my way")
        _move(order_service, order, courier, "delivered")

        rows = list(OrderStatusHistory.objects.filter(order=order).order_by("created_at"))
        assert [(r.old_status, r.new_status) for r in rows] == [
            (None, "pending"),
            ("pending", "accepted"),
            ("accepted", "delivered"),
        ]
        assert rows[1].changed_by_id == courier.id
        assert rows[1].notes == "on my way"

    def test_status_changed_event_payload(self, order_service, order, manager):
        _move(order_service, order, manager, "accepted")

        event = OutboxEvent.objects.get(event_type="OrderStatusChanged")
        assert event.payload["old_status"] == "pending"
        assert event.payload["new_status"] == "accepted"
        assert event.payload["changed_by"] == str(manager.id)

    def test_failed_transition_writes_nothing(self, order_service, order, buyer):
        before = OutboxEvent.objects.count()
        with pytest.raises(ForbiddenTransition):
            _move(order_service, order, buyer, "accepted")
        assert OutboxEvent.objects.count() == before
        assert OrderStatusHistory.objects.filter(order=order).count() == 1


# ===========================================================================
# Queries
# ===========================================================================


class TestQueries:
    def test_owner_can_read(self, order_service, order, buyer):
        assert order_service.get_order(str(order.id), buyer).id == order.id

    def test_other_user_cannot_read(self, order_service, order, make_customer):
        with pytest.raises(OrderAccessDenied):
            order_service.get_order(str(order.id), make_customer())

    def test_staff_can_read_any(self, order_service, order, manager, courier):
        assert order_service.get_order(str(order.id), manager).id == order.id
        assert order_service.get_order(str(order.id), courier).id == order.id

    def test_missing_order(self, order_service, manager):
        with pytest.raises(OrderNotFound):
            order_service.get_order(str(uuid4()), manager)

    def test_users_only_list_their_orders(self, order_service, order, make_customer, manager):
        assert list(order_service.visible_orders(make_customer())) == []
        assert [o.id for o in order_service.visible_orders(manager)] == [order.id]
