from celery import shared_task
import logging

from core_backend.exceptions import GatewayError, RefundError

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def refund_cancelled_order(self, order_id):
    """
    Refund whatever is still captured on a cancelled, paid order.

    Scheduled after the cancellation commits. Gateway failures are retried;
    an order with nothing left to refund is a no-op.
    """
    from orders.models import Order
    from payments.models import Transaction
    from .models import Refund
    from .services import RefundProcessor

    try:
        order = Order.objects.get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found for cancellation refund")
        return {"status": "failed", "error": "Order not found", "order_id": str(order_id)}

    if not order.refund_eligible or not Transaction.refundable_for_order(order.id).exists():
        logger.info(f"Order {order.order_number}: no refund required")
        return {"status": "skipped", "order_id": str(order_id)}

    try:
        refund = RefundProcessor().refund_order(
            order.id,
            reason=order.cancellation_reason or "Order cancelled",
            source=Refund.Source.CANCELLATION,
        )
    except RefundError as exc:
        logger.error(f"Order {order.order_number}: cancellation refund rejected: {exc.message}")
        return {"status": "failed", "error": exc.message, "order_id": str(order_id)}
    except GatewayError as exc:
        logger.error(f"Order {order.order_number}: cancellation refund failed at gateway: {exc.message}")
        raise self.retry(exc=exc)

    return {
        "status": "completed",
        "order_id": str(order_id),
        "refund_id": str(refund.id),
        "amount": str(refund.amount),
    }
