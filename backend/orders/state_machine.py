"""
Order status transitions.

All status changes go through ``OrderStateMachine.check``; anything not
listed here is rejected without touching the order.
"""

import logging

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core_backend.exceptions import ConcurrencyConflictError
from .models import Order

logger = logging.getLogger(__name__)

Status = Order.Status


class Actor(models.TextChoices):
    CUSTOMER = "customer", _("Customer")
    STAFF = "staff", _("Staff")
    SYSTEM = "system", _("System")  # payment capture, scheduled jobs


class OrderStateMachine:
    # Forward transitions and who may perform them
    FORWARD_TRANSITIONS = {
        Status.PENDING_PAYMENT: (Status.PENDING, {Actor.SYSTEM}),
        Status.PENDING: (Status.CONFIRMED, {Actor.STAFF}),
        Status.CONFIRMED: (Status.PREPARING, {Actor.STAFF}),
        Status.PREPARING: (Status.READY, {Actor.STAFF}),
        Status.READY: (Status.OUT_FOR_DELIVERY, {Actor.STAFF}),
        Status.OUT_FOR_DELIVERY: (Status.COMPLETED, {Actor.STAFF}),
    }

    # Statuses each actor may cancel from
    CANCELLABLE_FROM = {
        Actor.CUSTOMER: {Status.PENDING_PAYMENT},
        Actor.STAFF: set(FORWARD_TRANSITIONS),
        Actor.SYSTEM: set(FORWARD_TRANSITIONS),
    }

    TIMESTAMP_FIELDS = {
        Status.CONFIRMED: "confirmed_at",
        Status.COMPLETED: "completed_at",
        Status.CANCELLED: "cancelled_at",
    }

    @classmethod
    def can_transition(cls, current, target, actor) -> bool:
        if current in Order.TERMINAL_STATUSES:
            return False

        if target == Status.CANCELLED:
            return current in cls.CANCELLABLE_FROM.get(actor, set())

        next_status, allowed_actors = cls.FORWARD_TRANSITIONS[current]
        return target == next_status and actor in allowed_actors

    @classmethod
    def allowed_targets(cls, current, actor):
        return [
            status for status in Status.values if cls.can_transition(current, status, actor)
        ]

    @classmethod
    def check(cls, order: Order, target, actor):
        if not cls.can_transition(order.status, target, actor):
            raise ConcurrencyConflictError(
                f"Cannot transition order from {order.status} to {target}.",
                current_status=order.status,
                requested_status=str(target),
            )

    @classmethod
    def apply(cls, order: Order, target, actor):
        """
        Validate and set the new status on ``order`` (not saved). Returns the
        list of changed field names for ``save(update_fields=...)``.
        """
        cls.check(order, target, actor)

        old_status = order.status
        order.status = target
        changed = ["status", "updated_at"]

        timestamp_field = cls.TIMESTAMP_FIELDS.get(target)
        if timestamp_field:
            setattr(order, timestamp_field, timezone.now())
            changed.append(timestamp_field)

        logger.info(f"Order {order.order_number}: Status transition {old_status} -> {target} ({actor})")
        return changed

    @staticmethod
    def actor_for(user):
        if user is None:
            return Actor.SYSTEM
        return Actor.STAFF if user.is_restaurant_staff else Actor.CUSTOMER
