"""
Order status transition rules.
"""
import pytest

from core_backend.exceptions import ConcurrencyConflictError
from orders.models import Order
from orders.state_machine import Actor, OrderStateMachine

Status = Order.Status


class TestForwardTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (Status.PENDING, Status.CONFIRMED),
            (Status.CONFIRMED, Status.PREPARING),
            (Status.PREPARING, Status.READY),
            (Status.READY, Status.OUT_FOR_DELIVERY),
            (Status.OUT_FOR_DELIVERY, Status.COMPLETED),
        ],
    )
    def test_staff_moves_order_one_step_forward(self, current, target):
        assert OrderStateMachine.can_transition(current, target, Actor.STAFF)

    def test_only_system_moves_order_out_of_pending_payment(self):
        assert OrderStateMachine.can_transition(Status.PENDING_PAYMENT, Status.PENDING, Actor.SYSTEM)
        assert not OrderStateMachine.can_transition(Status.PENDING_PAYMENT, Status.PENDING, Actor.STAFF)
        assert not OrderStateMachine.can_transition(Status.PENDING_PAYMENT, Status.PENDING, Actor.CUSTOMER)

    def test_steps_cannot_be_skipped(self):
        assert not OrderStateMachine.can_transition(Status.PENDING, Status.PREPARING, Actor.STAFF)
        assert not OrderStateMachine.can_transition(Status.CONFIRMED, Status.COMPLETED, Actor.STAFF)

    def test_no_backward_transitions(self):
        assert not OrderStateMachine.can_transition(Status.READY, Status.PREPARING, Actor.STAFF)
        assert not OrderStateMachine.can_transition(Status.CONFIRMED, Status.PENDING, Actor.SYSTEM)

    def test_customers_cannot_advance_orders(self):
        assert not OrderStateMachine.can_transition(Status.PENDING, Status.CONFIRMED, Actor.CUSTOMER)


class TestCancellationRules:
    def test_customer_may_cancel_only_before_payment(self):
        assert OrderStateMachine.can_transition(Status.PENDING_PAYMENT, Status.CANCELLED, Actor.CUSTOMER)
        for status in (Status.PENDING, Status.CONFIRMED, Status.PREPARING, Status.READY):
            assert not OrderStateMachine.can_transition(status, Status.CANCELLED, Actor.CUSTOMER)

    @pytest.mark.parametrize(
        "current",
        [
            Status.PENDING_PAYMENT,
            Status.PENDING,
            Status.CONFIRMED,
            Status.PREPARING,
            Status.READY,
            Status.OUT_FOR_DELIVERY,
        ],
    )
    def test_staff_may_cancel_any_open_order(self, current):
        assert OrderStateMachine.can_transition(current, Status.CANCELLED, Actor.STAFF)

    @pytest.mark.parametrize("terminal", [Status.COMPLETED, Status.CANCELLED])
    def test_terminal_orders_accept_nothing(self, terminal):
        assert OrderStateMachine.allowed_targets(terminal, Actor.STAFF) == []
        assert OrderStateMachine.allowed_targets(terminal, Actor.SYSTEM) == []


class TestApply:
    def test_apply_sets_status_and_timestamp(self):
        order = Order(status=Status.PENDING)

        changed = OrderStateMachine.apply(order, Status.CONFIRMED, Actor.STAFF)

        assert order.status == Status.CONFIRMED
        assert order.confirmed_at is not None
        assert set(changed) == {"status", "updated_at", "confirmed_at"}

    def test_illegal_transition_raises_and_leaves_order_untouched(self):
        order = Order(status=Status.COMPLETED)

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            OrderStateMachine.apply(order, Status.CANCELLED, Actor.STAFF)

        assert order.status == Status.COMPLETED
        assert order.cancelled_at is None
        assert exc_info.value.details["current_status"] == Status.COMPLETED

    def test_allowed_targets_for_staff_on_pending(self):
        assert OrderStateMachine.allowed_targets(Status.PENDING, Actor.STAFF) == [
            Status.CONFIRMED,
            Status.CANCELLED,
        ]


class TestActorFor:
    def test_no_user_is_system(self):
        assert OrderStateMachine.actor_for(None) == Actor.SYSTEM

    def test_roles_map_to_actors(self, customer, staff_user):
        assert OrderStateMachine.actor_for(customer) == Actor.CUSTOMER
        assert OrderStateMachine.actor_for(staff_user) == Actor.STAFF
