from django.db import models, transaction
from django.dispatch import Signal
import logging

logger = logging.getLogger(__name__)

# Sent after commit for every customer- or staff-visible order event.
# Receivers get: order, event (OrderEvent), data (dict)
order_event = Signal()


class OrderEvent(models.TextChoices):
    ORDER_CREATED = "ORDER_CREATED"
    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    ORDER_CONFIRMED = "ORDER_CONFIRMED"
    ORDER_PREPARING = "ORDER_PREPARING"
    ORDER_READY = "ORDER_READY"
    ORDER_OUT_FOR_DELIVERY = "ORDER_OUT_FOR_DELIVERY"
    ORDER_COMPLETED = "ORDER_COMPLETED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_CANCELLED_BY_CLIENT = "ORDER_CANCELLED_BY_CLIENT"
    REFUND_PROCESSED = "REFUND_PROCESSED"


def emit_order_event(order, event, **data):
    """
    Queue ``order_event`` to fire once the surrounding transaction commits.
    A failing receiver is logged and never reaches the caller.
    """

    def send():
        responses = order_event.send_robust(
            sender=order.__class__, order=order, event=event, data=data
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(f"Error in {event} receiver for order {order.pk}: {response}")

    transaction.on_commit(send)
