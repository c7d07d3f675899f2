import logging

from django.db import transaction

from core_backend.exceptions import ConcurrencyConflictError
from payments.models import Transaction
from users.models import User
from ..models import Order
from ..signals import OrderEvent, emit_order_event
from ..state_machine import OrderStateMachine, Actor

logger = logging.getLogger(__name__)


class CancellationService:
    """
    Cancels orders and, for paid orders, hands the refund to the refund
    worker once the cancellation has committed.
    """

    @staticmethod
    def cancel_order(order_id, user: User, reason: str = "", expected_status=None) -> Order:
        """
        ``expected_status`` is the status the caller last saw; if the order has
        moved on since, the cancel is rejected as a conflict.
        """
        actor = OrderStateMachine.actor_for(user)

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order_id)

            if actor == Actor.CUSTOMER and order.customer_id != user.id:
                # Same response as a missing order; other customers' ids are not confirmed
                raise Order.DoesNotExist(f"Order {order_id} not found")

            if expected_status and order.status != expected_status:
                raise ConcurrencyConflictError(
                    f"Order is now {order.status}, not {expected_status}",
                    current_status=order.status,
                    requested_status=str(Order.Status.CANCELLED),
                )

            if not OrderStateMachine.can_transition(order.status, Order.Status.CANCELLED, actor):
                if order.is_terminal:
                    message = f"Order is already {order.status} and cannot be cancelled"
                else:
                    message = "This order can no longer be cancelled; please contact the restaurant"
                raise ConcurrencyConflictError(message, current_status=order.status)

            changed = OrderStateMachine.apply(order, Order.Status.CANCELLED, actor)
            order.cancelled_by_role = str(actor)
            order.cancellation_reason = reason[:255] if reason else ""
            changed += ["cancelled_by_role", "cancellation_reason"]

            # Partially refunded orders still owe the remainder
            needs_refund = Transaction.refundable_for_order(order.pk).exists()
            if needs_refund:
                order.refund_eligible = True
                changed.append("refund_eligible")

            order.save(update_fields=changed)

            emit_order_event(order, OrderEvent.ORDER_CANCELLED, reason=order.cancellation_reason)
            if actor == Actor.CUSTOMER:
                emit_order_event(order, OrderEvent.ORDER_CANCELLED_BY_CLIENT)

            if needs_refund:
                CancellationService.schedule_refund(order)

        logger.info(
            f"Order {order.order_number} cancelled by {actor} "
            f"(refund {'scheduled' if needs_refund else 'not required'})"
        )
        return order

    @staticmethod
    def schedule_refund(order: Order):
        """Queue the refund of whatever is still captured on a cancelled order, after commit."""
        from refunds.tasks import refund_cancelled_order

        order_id = str(order.pk)
        transaction.on_commit(lambda: refund_cancelled_order.delay(order_id))
