"""
Refunds against captured gateway transactions.

Amounts are compared in minor units so repeated partial refunds can never
drift past the captured amount.
"""
from decimal import Decimal
from typing import Optional
import logging

from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import RefundError
from orders.models import Order
from orders.signals import OrderEvent, emit_order_event
from payments.gateway import GatewayAPI, GatewayConfig
from payments.models import Transaction
from payments.money import to_minor, quantize
from .models import Refund

logger = logging.getLogger(__name__)


class RefundProcessor:
    """
    Issues refunds through the gateway and records them in the ledger.
    Nothing is recorded when validation or the gateway call fails.
    """

    def __init__(self, api: Optional[GatewayAPI] = None, config: Optional[GatewayConfig] = None):
        self.config = config or (api.config if api else GatewayConfig.from_settings())
        self.api = api or GatewayAPI(self.config)

    def refund(
        self,
        transaction_id,
        amount: Decimal,
        reason: str = "",
        initiated_by=None,
        source: str = Refund.Source.STAFF,
    ) -> Refund:
        with transaction.atomic():
            order_id = Transaction.objects.filter(pk=transaction_id).values_list("order_id", flat=True).first()
            if order_id is None:
                raise RefundError(f"Transaction {transaction_id} not found")

            # Lock order first, then transaction; same order as the capture path
            order = Order.objects.select_for_update().get(pk=order_id)
            txn = Transaction.objects.select_for_update().get(pk=transaction_id)

            amount = self._validate(txn, amount)

            # GatewayError propagates and rolls back; the ledger stays untouched
            response = self.api.refund_payment(
                txn.gateway_payment_id,
                to_minor(txn.currency, amount),
                notes={"order_id": str(order.id), "reason": reason[:250]},
            )

            refund = Refund.objects.create(
                transaction=txn,
                order=order,
                amount=amount,
                currency=txn.currency,
                reason=reason,
                source=source,
                status=Refund.Status.PROCESSED,
                gateway_refund_id=response.get("id", ""),
                provider_response=response,
                initiated_by=initiated_by,
                processed_at=timezone.now(),
            )

            txn.refunded_amount = txn.refunded_amount + amount
            if txn.refunded_amount >= txn.amount:
                txn.status = Transaction.Status.REFUNDED
            txn.save(update_fields=["refunded_amount", "status", "updated_at"])

            order.payment_status = Order.PaymentStatus.REFUNDED
            order.save(update_fields=["payment_status", "updated_at"])

            emit_order_event(
                order,
                OrderEvent.REFUND_PROCESSED,
                amount=str(amount),
                currency=txn.currency,
                refund_id=str(refund.id),
            )

        logger.info(
            f"Order {order.order_number}: refunded {amount} {txn.currency} "
            f"(gateway refund {refund.gateway_refund_id or 'n/a'})"
        )
        return refund

    @staticmethod
    def _validate(txn: Transaction, amount) -> Decimal:
        if txn.status not in Transaction.REFUNDABLE_STATUSES:
            raise RefundError(f"Transaction is {txn.status}; only captured payments can be refunded")

        if not txn.gateway_payment_id:
            raise RefundError("Transaction has no gateway payment to refund")

        try:
            amount = quantize(txn.currency, amount)
        except (ArithmeticError, TypeError, ValueError):
            raise RefundError("Refund amount is not a valid number")

        if amount <= 0:
            raise RefundError("Refund amount must be greater than zero")

        remaining_minor = to_minor(txn.currency, txn.amount) - to_minor(txn.currency, txn.refunded_amount)
        if to_minor(txn.currency, amount) > remaining_minor:
            raise RefundError(
                f"Refund amount {amount} exceeds refundable amount {txn.refundable_amount}",
                refundable_amount=str(txn.refundable_amount),
            )
        return amount

    def refund_order(self, order_id, amount=None, reason="", initiated_by=None, source=Refund.Source.STAFF):
        """
        Refund the order's captured transaction. ``amount=None`` refunds
        whatever is still refundable.
        """
        txn = Transaction.refundable_for_order(order_id).order_by("-created_at").first()
        if txn is None:
            raise RefundError("Order has no captured payment to refund")

        if amount is None:
            amount = txn.refundable_amount

        return self.refund(txn.id, amount, reason=reason, initiated_by=initiated_by, source=source)
