"""
Payment verification, capture application and gateway webhooks.

CRITICAL: Every capture path must be idempotent. A replayed callback or
webhook may never create a second Transaction or move the order twice.
"""
import json

import pytest

from core_backend.exceptions import SignatureMismatchError, ValidationError
from core_backend.tests.fixtures import TEST_WEBHOOK_SECRET, sign_payment
from orders.models import Order
from orders.services import CancellationService
from payments.models import Transaction
from payments.signatures import SignatureService
from refunds.models import Refund


def tamper(signature):
    """Change exactly one character of a hex signature."""
    last = "0" if signature[-1] != "0" else "1"
    return signature[:-1] + last


def webhook(event, gateway_order_id, payment_id, **entity):
    body = json.dumps(
        {
            "event": event,
            "payload": {
                "payment": {
                    "entity": {"id": payment_id, "order_id": gateway_order_id, **entity}
                }
            },
        }
    ).encode()
    return body, SignatureService.compute_signature(body, TEST_WEBHOOK_SECRET)


@pytest.fixture
def intent(pending_order, payment_client):
    return payment_client.initiate_payment(pending_order.id)


@pytest.mark.django_db
class TestVerifyPayment:
    def test_valid_signature_captures_and_moves_order(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id

        txn = verifier.verify_payment(gid, "pay_OK1", sign_payment(gid, "pay_OK1"))

        assert txn.status == Transaction.Status.CAPTURED
        assert txn.gateway_payment_id == "pay_OK1"
        assert txn.captured_at is not None

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING
        assert pending_order.payment_status == Order.PaymentStatus.COMPLETED
        assert pending_order.gateway_payment_id == "pay_OK1"
        assert pending_order.paid_at is not None

    def test_altered_signature_is_rejected(self, intent, verifier, pending_order):
        """
        CRITICAL: A signature with one character changed leaves the order
        in pending_payment and the transaction open.
        """
        gid = intent.transaction.gateway_order_id
        signature = tamper(sign_payment(gid, "pay_OK1"))

        with pytest.raises(SignatureMismatchError):
            verifier.verify_payment(gid, "pay_OK1", signature)

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING_PAYMENT
        assert pending_order.payment_status == Order.PaymentStatus.PROCESSING
        intent.transaction.refresh_from_db()
        assert intent.transaction.status == Transaction.Status.CREATED

    def test_signature_from_another_key_is_rejected(self, intent, verifier):
        gid = intent.transaction.gateway_order_id

        with pytest.raises(SignatureMismatchError):
            verifier.verify_payment(gid, "pay_OK1", sign_payment(gid, "pay_OK1", secret="someone_else"))

    def test_signature_for_another_payment_is_rejected(self, intent, verifier):
        gid = intent.transaction.gateway_order_id

        with pytest.raises(SignatureMismatchError):
            verifier.verify_payment(gid, "pay_OTHER", sign_payment(gid, "pay_OK1"))

    @pytest.mark.parametrize("missing", ["gateway_order_id", "gateway_payment_id", "signature"])
    def test_missing_fields_are_rejected(self, intent, verifier, missing):
        gid = intent.transaction.gateway_order_id
        fields = {
            "gateway_order_id": gid,
            "gateway_payment_id": "pay_OK1",
            "signature": sign_payment(gid, "pay_OK1"),
        }
        fields[missing] = ""

        with pytest.raises(SignatureMismatchError):
            verifier.verify_payment(**fields)

    def test_replayed_callback_is_a_no_op(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        signature = sign_payment(gid, "pay_OK1")

        first = verifier.verify_payment(gid, "pay_OK1", signature)
        pending_order.refresh_from_db()
        paid_at = pending_order.paid_at

        second = verifier.verify_payment(gid, "pay_OK1", signature)

        assert second.pk == first.pk
        assert pending_order.transactions.count() == 1
        pending_order.refresh_from_db()
        assert pending_order.paid_at == paid_at
        assert pending_order.status == Order.Status.PENDING

    def test_replay_emits_payment_completed_once(
        self, intent, verifier, pending_order, django_capture_on_commit_callbacks
    ):
        from notifications.models import Notification

        gid = intent.transaction.gateway_order_id
        signature = sign_payment(gid, "pay_OK1")

        with django_capture_on_commit_callbacks(execute=True):
            verifier.verify_payment(gid, "pay_OK1", signature)
        with django_capture_on_commit_callbacks(execute=True):
            verifier.verify_payment(gid, "pay_OK1", signature)

        assert Notification.objects.filter(order=pending_order, event="PAYMENT_COMPLETED").count() == 2
        assert Notification.objects.filter(
            order=pending_order, event="PAYMENT_COMPLETED", for_staff=True
        ).count() == 1

    def test_unknown_gateway_order(self, verifier):
        with pytest.raises(ValidationError):
            verifier.verify_payment("order_UNKNOWN", "pay_1", sign_payment("order_UNKNOWN", "pay_1"))


@pytest.mark.django_db
class TestFailureAndLateCapture:
    def test_failure_marks_payment_failed_but_keeps_order_open(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id

        txn = verifier.apply_failure(gid, "pay_BAD1", error_code="BAD_REQUEST_ERROR", error_description="Card declined")

        assert txn.status == Transaction.Status.FAILED
        assert txn.error_description == "Card declined"
        assert txn.gateway_payment_id is None
        assert txn.metadata["failed_payment_id"] == "pay_BAD1"

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING_PAYMENT
        assert pending_order.payment_status == Order.PaymentStatus.FAILED

    def test_capture_after_failure_creates_new_transaction(self, intent, verifier, pending_order):
        """A failed row is never turned into a success."""
        gid = intent.transaction.gateway_order_id
        verifier.apply_failure(gid, "pay_BAD1", error_code="BAD_REQUEST_ERROR")

        txn = verifier.verify_payment(gid, "pay_OK2", sign_payment(gid, "pay_OK2"))

        assert txn.pk != intent.transaction.pk
        assert txn.metadata == {"late_capture": True}
        assert txn.amount == intent.transaction.amount
        assert Transaction.objects.filter(gateway_order_id=gid).count() == 2

        intent.transaction.refresh_from_db()
        assert intent.transaction.status == Transaction.Status.FAILED

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING
        assert pending_order.payment_status == Order.PaymentStatus.COMPLETED

    def test_failed_payment_id_captured_later(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        verifier.apply_failure(gid, "pay_RETRY", error_code="GATEWAY_ERROR")

        txn = verifier.verify_payment(gid, "pay_RETRY", sign_payment(gid, "pay_RETRY"))

        assert txn.status == Transaction.Status.CAPTURED
        assert pending_order.transactions.count() == 2

    def test_failure_after_capture_keeps_order_paid(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        verifier.verify_payment(gid, "pay_OK1", sign_payment(gid, "pay_OK1"))

        assert verifier.apply_failure(gid, "pay_OK1") is None

        pending_order.refresh_from_db()
        assert pending_order.payment_status == Order.PaymentStatus.COMPLETED

    def test_capture_after_cancellation_is_refunded(
        self, intent, verifier, pending_order, customer, patched_gateway, django_capture_on_commit_callbacks
    ):
        """
        CRITICAL: Money captured for an order the customer already cancelled
        goes straight back.
        """
        CancellationService.cancel_order(pending_order.id, customer, reason="Too slow")
        gid = intent.transaction.gateway_order_id

        with django_capture_on_commit_callbacks(execute=True):
            verifier.verify_payment(gid, "pay_LATE", sign_payment(gid, "pay_LATE"))

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.CANCELLED
        assert pending_order.refund_eligible is True
        assert pending_order.payment_status == Order.PaymentStatus.REFUNDED

        refund = Refund.objects.get(order=pending_order)
        assert refund.source == Refund.Source.CANCELLATION
        assert refund.amount == pending_order.total_price
        patched_gateway.refund_payment.assert_called_once()
        assert patched_gateway.refund_payment.call_args.args[:2] == ("pay_LATE", 55500)


@pytest.mark.django_db
class TestWebhooks:
    def test_captured_event(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        body, signature = webhook("payment.captured", gid, "pay_WH1", method="card", card={"network": "Visa", "last4": "4242"})

        result = verifier.handle_webhook(body, signature)

        assert result == {"event": "payment.captured", "handled": True}
        txn = pending_order.transactions.get()
        assert txn.status == Transaction.Status.CAPTURED
        assert txn.card_network == "Visa"
        assert txn.card_last4 == "4242"
        pending_order.refresh_from_db()
        assert pending_order.payment_method == "card"

    def test_webhook_after_client_verify_is_idempotent(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        verifier.verify_payment(gid, "pay_OK1", sign_payment(gid, "pay_OK1"))
        body, signature = webhook("payment.captured", gid, "pay_OK1")

        verifier.handle_webhook(body, signature)
        verifier.handle_webhook(body, signature)

        assert pending_order.transactions.count() == 1

    def test_failed_event(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        body, signature = webhook(
            "payment.failed", gid, "pay_F1", error_code="BAD_REQUEST_ERROR", error_description="Insufficient funds"
        )

        verifier.handle_webhook(body, signature)

        txn = pending_order.transactions.get()
        assert txn.status == Transaction.Status.FAILED
        assert txn.error_code == "BAD_REQUEST_ERROR"

    def test_authorized_event(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        body, signature = webhook("payment.authorized", gid, "pay_A1")

        verifier.handle_webhook(body, signature)

        assert pending_order.transactions.get().status == Transaction.Status.AUTHORIZED

    def test_bad_signature_is_rejected(self, intent, verifier, pending_order):
        gid = intent.transaction.gateway_order_id
        body, signature = webhook("payment.captured", gid, "pay_WH1")

        with pytest.raises(SignatureMismatchError):
            verifier.handle_webhook(body, tamper(signature))

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING_PAYMENT

    def test_body_signed_with_key_secret_is_rejected(self, intent, verifier):
        gid = intent.transaction.gateway_order_id
        body, _ = webhook("payment.captured", gid, "pay_WH1")
        signature = SignatureService.compute_signature(body, verifier.config.key_secret)

        with pytest.raises(SignatureMismatchError):
            verifier.handle_webhook(body, signature)

    def test_unknown_event_is_acknowledged(self, intent, verifier):
        body, signature = webhook("refund.created", intent.transaction.gateway_order_id, "pay_X")

        assert verifier.handle_webhook(body, signature) == {"event": "refund.created", "handled": False}

    def test_unknown_gateway_order_is_acknowledged(self, verifier, db):
        body, signature = webhook("payment.captured", "order_NOT_OURS", "pay_X")

        assert verifier.handle_webhook(body, signature)["handled"] is False
        assert not Transaction.objects.exists()

    def test_invalid_json(self, verifier):
        body = b"not json"
        signature = SignatureService.compute_signature(body, TEST_WEBHOOK_SECRET)

        with pytest.raises(ValidationError):
            verifier.handle_webhook(body, signature)

    def test_signed_body_that_is_not_an_object(self, verifier):
        body = b'[{"event": "payment.captured"}]'
        signature = SignatureService.compute_signature(body, TEST_WEBHOOK_SECRET)

        with pytest.raises(ValidationError, match="JSON object"):
            verifier.handle_webhook(body, signature)
