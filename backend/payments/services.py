import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import (
    ConcurrencyConflictError,
    GatewayError,
    SignatureMismatchError,
    ValidationError,
)
from orders.models import Order
from orders.signals import OrderEvent, emit_order_event
from orders.state_machine import OrderStateMachine, Actor
from .gateway import GatewayAPI, GatewayConfig
from .models import Transaction
from .money import to_minor
from .signatures import SignatureService

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntent:
    order: Order
    transaction: Transaction
    key_id: str
    reused: bool = False

    def to_response(self) -> Dict[str, Any]:
        return {
            "order_id": str(self.order.id),
            "transaction_id": str(self.transaction.id),
            "gateway_order_id": self.transaction.gateway_order_id,
            "amount": self.transaction.amount_minor,
            "currency": self.transaction.currency,
            "key_id": self.key_id,
            "reused": self.reused,
        }


class PaymentGatewayClient:
    """
    Opens payment intents at the gateway and records them as Transactions.

    Built with an explicit config and API client so tests and workers can
    inject their own:

        client = PaymentGatewayClient(api=GatewayAPI(config), config=config)
    """

    def __init__(self, api: Optional[GatewayAPI] = None, config: Optional[GatewayConfig] = None):
        self.config = config or (api.config if api else GatewayConfig.from_settings())
        self.api = api or GatewayAPI(self.config)

    def initiate_payment(self, order_id) -> PaymentIntent:
        """
        Return the open payment intent for an order, creating one at the
        gateway if none exists. Safe to call repeatedly: the order row lock
        serializes concurrent calls and later callers get the same intent.
        """
        failure = None

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order_id)

            if order.status != Order.Status.PENDING_PAYMENT or order.payment_status in (
                Order.PaymentStatus.COMPLETED,
                Order.PaymentStatus.REFUNDED,
            ):
                raise ConcurrencyConflictError(
                    f"Order is {order.status} ({order.payment_status}); payment cannot be started",
                    current_status=order.status,
                )

            if order.total_price <= 0:
                raise ValidationError("Order total must be greater than zero for online payment")

            existing = (
                order.transactions.filter(status__in=Transaction.OPEN_STATUSES)
                .order_by("-created_at")
                .first()
            )
            if existing:
                logger.info(
                    f"Order {order.order_number}: reusing open transaction {existing.gateway_order_id}"
                )
                return PaymentIntent(order, existing, self.config.key_id, reused=True)

            currency = order.currency
            try:
                gateway_order = self.api.create_order(
                    amount_minor=to_minor(currency, order.total_price),
                    currency=currency,
                    receipt=order.order_number,
                    notes={"order_id": str(order.id)},
                )
            except GatewayError as exc:
                Transaction.objects.create(
                    order=order,
                    gateway=self.config.name,
                    amount=order.total_price,
                    currency=currency,
                    status=Transaction.Status.FAILED,
                    error_code=exc.error_code,
                    error_description=exc.message,
                )
                logger.error(f"Order {order.order_number}: gateway order creation failed: {exc.message}")
                failure = exc
            else:
                txn = Transaction.objects.create(
                    order=order,
                    gateway=self.config.name,
                    gateway_order_id=gateway_order["id"],
                    amount=order.total_price,
                    currency=currency,
                    status=Transaction.Status.CREATED,
                    metadata={"receipt": order.order_number},
                )
                order.gateway_order_id = txn.gateway_order_id
                order.payment_status = Order.PaymentStatus.PROCESSING
                order.save(update_fields=["gateway_order_id", "payment_status", "updated_at"])
                logger.info(
                    f"Order {order.order_number}: gateway order {txn.gateway_order_id} created "
                    f"for {txn.amount_minor} {currency}"
                )

        # Raised outside the atomic block so the failed Transaction is kept
        if failure is not None:
            raise failure

        return PaymentIntent(order, txn, self.config.key_id)

    def check_status(self, order_id, verifier: Optional["PaymentVerifier"] = None, check_gateway=True):
        """
        Local payment state for an order. When an intent is still open the
        gateway is asked for its payments and any capture found is applied,
        for clients that never delivered the verify callback.
        """
        order = Order.objects.get(pk=order_id)
        open_txn = (
            order.transactions.filter(status__in=Transaction.OPEN_STATUSES)
            .exclude(gateway_order_id__isnull=True)
            .order_by("-created_at")
            .first()
        )

        if check_gateway and open_txn is not None:
            verifier = verifier or PaymentVerifier(config=self.config)
            try:
                payments = self.api.fetch_order_payments(open_txn.gateway_order_id)
            except GatewayError as exc:
                logger.warning(
                    f"Order {order.order_number}: status check against gateway failed: {exc.message}"
                )
            else:
                verifier.apply_gateway_payments(open_txn.gateway_order_id, payments)
            order.refresh_from_db()

        latest = order.transactions.order_by("-created_at").first()
        return {
            "order_id": str(order.id),
            "order_status": order.status,
            "payment_status": order.payment_status,
            "gateway_order_id": order.gateway_order_id or None,
            "gateway_payment_id": order.gateway_payment_id or None,
            "transaction_status": latest.status if latest else None,
            "paid_at": order.paid_at,
        }


class PaymentVerifier:
    """
    Verifies gateway payment callbacks and applies captures to the order.

    Every capture path (client callback, webhook, status poll) ends in
    ``apply_capture`` so the transaction, the order's payment status and
    its status move together in one database transaction.
    """

    def __init__(self, config: Optional[GatewayConfig] = None):
        self.config = config or GatewayConfig.from_settings()

    def verify_signature(self, gateway_order_id, gateway_payment_id, signature) -> bool:
        message = SignatureService.payment_message(gateway_order_id, gateway_payment_id)
        return SignatureService.validate_signature(message, signature, self.config.key_secret)

    def verify_payment(self, gateway_order_id, gateway_payment_id, signature) -> Transaction:
        if not gateway_order_id or not gateway_payment_id or not signature:
            logger.warning("Payment verification rejected: missing gateway order id, payment id or signature")
            raise SignatureMismatchError("Missing payment verification fields")

        if not self.verify_signature(gateway_order_id, gateway_payment_id, signature):
            logger.warning(
                f"Signature mismatch for gateway order {gateway_order_id} / payment {gateway_payment_id}: "
                f"possible tampering attempt"
            )
            raise SignatureMismatchError()

        return self.apply_capture(gateway_order_id, gateway_payment_id, signature=signature)

    def _lock_order_for(self, gateway_order_id) -> Order:
        order_id = (
            Transaction.objects.filter(gateway_order_id=gateway_order_id)
            .values_list("order_id", flat=True)
            .first()
        )
        if order_id is None:
            raise ValidationError(f"Unknown gateway order {gateway_order_id}", field="gateway_order_id")
        return Order.objects.select_for_update().get(pk=order_id)

    def apply_capture(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str = "",
        payment_data: Optional[Dict[str, Any]] = None,
    ) -> Transaction:
        with transaction.atomic():
            order = self._lock_order_for(gateway_order_id)

            txn = (
                Transaction.objects.select_for_update()
                .filter(gateway=self.config.name, gateway_payment_id=gateway_payment_id)
                .exclude(status=Transaction.Status.FAILED)
                .first()
            )
            if txn is not None and txn.status in (Transaction.Status.CAPTURED, Transaction.Status.REFUNDED):
                logger.info(f"Payment {gateway_payment_id} already captured; replay ignored")
                return txn

            if txn is None:
                txn = (
                    Transaction.objects.select_for_update()
                    .filter(gateway_order_id=gateway_order_id, status__in=Transaction.OPEN_STATUSES)
                    .first()
                )

            if txn is None:
                # Earlier attempt for this gateway order already failed; record the capture separately
                template = Transaction.objects.filter(gateway_order_id=gateway_order_id).first()
                txn = Transaction(
                    order=order,
                    gateway=self.config.name,
                    gateway_order_id=gateway_order_id,
                    amount=template.amount,
                    currency=template.currency,
                    metadata={"late_capture": True},
                )
                if order.is_paid:
                    logger.error(
                        f"Order {order.order_number}: second capture {gateway_payment_id} on a paid order; "
                        f"refund it from the gateway dashboard"
                    )

            txn.status = Transaction.Status.CAPTURED
            txn.gateway_payment_id = gateway_payment_id
            txn.signature = signature or txn.signature
            txn.captured_at = timezone.now()
            self._copy_payment_details(txn, payment_data)
            txn.save()

            first_capture = not order.is_paid
            changed = ["payment_status", "gateway_payment_id", "paid_at", "updated_at"]
            order.payment_status = Order.PaymentStatus.COMPLETED
            order.gateway_payment_id = gateway_payment_id
            order.paid_at = order.paid_at or txn.captured_at
            if txn.payment_method:
                order.payment_method = txn.payment_method
                changed.append("payment_method")

            needs_refund = False
            if order.status == Order.Status.PENDING_PAYMENT:
                changed += OrderStateMachine.apply(order, Order.Status.PENDING, Actor.SYSTEM)
            elif order.status == Order.Status.CANCELLED:
                logger.warning(
                    f"Order {order.order_number}: payment captured after cancellation; refunding"
                )
                order.refund_eligible = True
                changed.append("refund_eligible")
                needs_refund = True

            order.save(update_fields=list(dict.fromkeys(changed)))

            if first_capture:
                emit_order_event(
                    order, OrderEvent.PAYMENT_COMPLETED, amount=str(txn.amount), currency=txn.currency
                )
            if needs_refund:
                from orders.services import CancellationService

                CancellationService.schedule_refund(order)

        logger.info(f"Order {order.order_number}: payment {gateway_payment_id} captured")
        return txn

    def apply_authorization(self, gateway_order_id, gateway_payment_id, payment_data=None):
        with transaction.atomic():
            self._lock_order_for(gateway_order_id)
            txn = (
                Transaction.objects.select_for_update()
                .filter(gateway_order_id=gateway_order_id, status=Transaction.Status.CREATED)
                .first()
            )
            if txn is None:
                return None
            txn.status = Transaction.Status.AUTHORIZED
            txn.gateway_payment_id = gateway_payment_id
            self._copy_payment_details(txn, payment_data)
            txn.save()
        logger.info(f"Gateway order {gateway_order_id}: payment {gateway_payment_id} authorized")
        return txn

    def apply_failure(self, gateway_order_id, gateway_payment_id=None, error_code="", error_description=""):
        with transaction.atomic():
            order = self._lock_order_for(gateway_order_id)
            txn = (
                Transaction.objects.select_for_update()
                .filter(gateway_order_id=gateway_order_id, status__in=Transaction.OPEN_STATUSES)
                .first()
            )
            if txn is None:
                return None

            txn.status = Transaction.Status.FAILED
            txn.error_code = error_code or "PAYMENT_FAILED"
            txn.error_description = error_description or ""
            failed_payment_id = gateway_payment_id or txn.gateway_payment_id
            if failed_payment_id:
                txn.metadata = {**txn.metadata, "failed_payment_id": failed_payment_id}
            # Frees the payment id so a later capture of it is recorded on a new row
            txn.gateway_payment_id = None
            txn.save()

            if not order.is_paid:
                order.payment_status = Order.PaymentStatus.FAILED
                order.save(update_fields=["payment_status", "updated_at"])
                emit_order_event(order, OrderEvent.PAYMENT_FAILED, error=txn.error_description)

        logger.info(f"Gateway order {gateway_order_id}: payment failed ({error_code})")
        return txn

    def apply_gateway_payments(self, gateway_order_id, payments):
        """Apply payment entities fetched from the gateway API."""
        captured = [p for p in payments if p.get("status") == "captured"]
        if captured:
            payment = captured[0]
            return self.apply_capture(gateway_order_id, payment["id"], payment_data=payment)

        authorized = [p for p in payments if p.get("status") == "authorized"]
        if authorized:
            payment = authorized[0]
            return self.apply_authorization(gateway_order_id, payment["id"], payment_data=payment)

        return None

    def handle_webhook(self, body: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify and apply a gateway webhook. Raises SignatureMismatchError for
        an unsigned or tampered body; unknown events are acknowledged.
        """
        if not SignatureService.validate_signature(body, signature, self.config.webhook_secret):
            logger.warning("Webhook signature mismatch: possible tampering attempt")
            raise SignatureMismatchError("Invalid webhook signature")

        try:
            payload = json.loads(body)
        except ValueError:
            raise ValidationError("Webhook body is not valid JSON")
        if not isinstance(payload, dict):
            raise ValidationError("Webhook body must be a JSON object")

        event = payload.get("event", "")
        payment = payload.get("payload", {}).get("payment", {}).get("entity", {})
        gateway_order_id = payment.get("order_id")
        gateway_payment_id = payment.get("id")

        if not gateway_order_id or event not in self.WEBHOOK_HANDLERS:
            logger.info(f"Webhook event {event!r} acknowledged without action")
            return {"event": event, "handled": False}

        handler = getattr(self, self.WEBHOOK_HANDLERS[event])
        try:
            handler(gateway_order_id, gateway_payment_id, payment)
        except ValidationError as exc:
            logger.warning(f"Webhook event {event!r} for {gateway_order_id} ignored: {exc.message}")
            return {"event": event, "handled": False}
        return {"event": event, "handled": True}

    WEBHOOK_HANDLERS = {
        "payment.captured": "_on_payment_captured",
        "payment.authorized": "_on_payment_authorized",
        "payment.failed": "_on_payment_failed",
    }

    def _on_payment_captured(self, gateway_order_id, gateway_payment_id, payment):
        self.apply_capture(gateway_order_id, gateway_payment_id, payment_data=payment)

    def _on_payment_authorized(self, gateway_order_id, gateway_payment_id, payment):
        self.apply_authorization(gateway_order_id, gateway_payment_id, payment_data=payment)

    def _on_payment_failed(self, gateway_order_id, gateway_payment_id, payment):
        self.apply_failure(
            gateway_order_id,
            gateway_payment_id,
            error_code=payment.get("error_code") or "",
            error_description=payment.get("error_description") or "",
        )

    @staticmethod
    def _copy_payment_details(txn: Transaction, payment_data: Optional[Dict[str, Any]]):
        if not payment_data:
            return
        txn.payment_method = payment_data.get("method") or txn.payment_method
        txn.upi_vpa = payment_data.get("vpa") or txn.upi_vpa
        txn.bank_name = payment_data.get("bank") or txn.bank_name
        txn.wallet_name = payment_data.get("wallet") or txn.wallet_name
        card = payment_data.get("card") or {}
        txn.card_network = card.get("network") or txn.card_network
        txn.card_last4 = card.get("last4") or txn.card_last4
