import logging

from orders.signals import OrderEvent
from payments.money import format_money
from .models import Notification

logger = logging.getLogger(__name__)


# (title, message) per event; formatted with order_number, total and any event data
CUSTOMER_TEMPLATES = {
    OrderEvent.ORDER_CREATED: (
        "Order Placed",
        "Your order #{order_number} has been placed. Complete the payment to confirm it.",
    ),
    OrderEvent.PAYMENT_COMPLETED: (
        "Payment Successful",
        "Payment of {total} received for order #{order_number}.",
    ),
    OrderEvent.PAYMENT_FAILED: (
        "Payment Failed",
        "Payment for order #{order_number} failed. Please try again.",
    ),
    OrderEvent.ORDER_CONFIRMED: (
        "Order Confirmed",
        "Your order #{order_number} has been confirmed by the restaurant.",
    ),
    OrderEvent.ORDER_PREPARING: (
        "Order Being Prepared",
        "Your order #{order_number} is being prepared.",
    ),
    OrderEvent.ORDER_READY: (
        "Order Ready",
        "Your order #{order_number} is ready.",
    ),
    OrderEvent.ORDER_OUT_FOR_DELIVERY: (
        "Out for Delivery",
        "Your order #{order_number} is on its way.",
    ),
    OrderEvent.ORDER_COMPLETED: (
        "Order Delivered",
        "Your order #{order_number} has been delivered. Enjoy your meal!",
    ),
    OrderEvent.ORDER_CANCELLED: (
        "Order Cancelled",
        "Your order #{order_number} has been cancelled.",
    ),
    OrderEvent.REFUND_PROCESSED: (
        "Refund Processed",
        "A refund of {amount} for order #{order_number} has been initiated.",
    ),
}

STAFF_TEMPLATES = {
    OrderEvent.PAYMENT_COMPLETED: (
        "New Order",
        "New paid order #{order_number} for {total}.",
    ),
    OrderEvent.ORDER_CANCELLED_BY_CLIENT: (
        "Order Cancelled by Customer",
        "Order #{order_number} was cancelled by the customer.",
    ),
}


class NotificationService:
    """Turns order events into stored notifications."""

    @staticmethod
    def _context(order, data):
        context = {
            "order_number": order.order_number,
            "total": format_money(order.currency, order.total_price),
        }
        if "amount" in data:
            context["amount"] = format_money(data.get("currency", order.currency), data["amount"])
        return context

    @classmethod
    def notify_order_event(cls, order, event, data=None):
        data = data or {}
        context = cls._context(order, data)
        payload = {"order_id": str(order.id), "status": order.status, **data}
        created = []

        template = CUSTOMER_TEMPLATES.get(event)
        if template:
            title, message = template
            created.append(
                Notification.objects.create(
                    recipient=order.customer,
                    order=order,
                    event=event,
                    title=title,
                    message=message.format(**context),
                    data=payload,
                )
            )

        staff_template = STAFF_TEMPLATES.get(event)
        if staff_template:
            title, message = staff_template
            created.append(
                Notification.objects.create(
                    for_staff=True,
                    order=order,
                    event=event,
                    title=title,
                    message=message.format(**context),
                    data=payload,
                )
            )

        if created:
            logger.info(f"Order {order.order_number}: {len(created)} notification(s) for {event}")
        return created
