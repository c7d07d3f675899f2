from django.dispatch import receiver
import logging

from orders.signals import order_event
from .services import NotificationService

logger = logging.getLogger(__name__)


@receiver(order_event)
def handle_order_event(sender, order, event, data=None, **kwargs):
    """
    Store notifications for an order event. Runs after commit; failures are
    logged and never affect the order.
    """
    try:
        NotificationService.notify_order_event(order, event, data)
    except Exception as e:
        logger.error(f"Failed to store {event} notification for order {order.order_number}: {e}")
