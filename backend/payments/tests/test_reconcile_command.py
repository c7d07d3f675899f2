"""
Tests for the reconcile_pending_payments management command.
"""
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from orders.models import Order
from payments.models import Transaction


def age_transactions(order, minutes):
    Transaction.objects.filter(order=order).update(created_at=timezone.now() - timedelta(minutes=minutes))


def run(*args):
    out = StringIO()
    call_command("reconcile_pending_payments", *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestReconcilePendingPayments:
    def test_nothing_to_do(self, patched_gateway):
        assert "No pending payments" in run()
        patched_gateway.fetch_order_payments.assert_not_called()

    def test_recent_intents_are_left_alone(self, pending_order, payment_client, patched_gateway):
        payment_client.initiate_payment(pending_order.id)

        assert "No pending payments" in run("--minutes", "15")

    def test_stale_capture_is_applied(self, pending_order, payment_client, patched_gateway):
        intent = payment_client.initiate_payment(pending_order.id)
        age_transactions(pending_order, 30)
        patched_gateway.fetch_order_payments.return_value = [{"id": "pay_LOST", "status": "captured"}]

        output = run("--minutes", "15")

        patched_gateway.fetch_order_payments.assert_called_once_with(intent.transaction.gateway_order_id)
        assert "1 newly paid" in output
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING
        assert pending_order.payment_status == Order.PaymentStatus.COMPLETED

    def test_unpaid_intent_stays_pending(self, pending_order, payment_client, patched_gateway):
        payment_client.initiate_payment(pending_order.id)
        age_transactions(pending_order, 30)

        output = run()

        assert "0 newly paid" in output
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING_PAYMENT

    def test_dry_run_does_not_call_gateway(self, pending_order, payment_client, patched_gateway):
        payment_client.initiate_payment(pending_order.id)
        age_transactions(pending_order, 30)

        output = run("--dry-run")

        assert str(pending_order.id) in output
        patched_gateway.fetch_order_payments.assert_not_called()

    def test_negative_minutes_rejected(self, db):
        with pytest.raises(CommandError):
            run("--minutes", "-1")
