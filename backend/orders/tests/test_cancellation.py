"""
Cancellation rules and the refund hand-off for paid orders.
"""
from decimal import Decimal

import pytest

from core_backend.exceptions import ConcurrencyConflictError
from orders.models import Order
from orders.services import CancellationService, OrderService
from payments.models import Transaction
from refunds.models import Refund


def snapshot(order):
    """Every concrete field value of the order, read fresh from the database."""
    fresh = Order.objects.get(pk=order.pk)
    return {f.attname: getattr(fresh, f.attname) for f in Order._meta.concrete_fields}


@pytest.mark.django_db
class TestCustomerCancellation:
    def test_customer_cancels_unpaid_order(self, pending_order, customer):
        order = CancellationService.cancel_order(pending_order.id, customer, reason="Changed my mind")

        assert order.status == Order.Status.CANCELLED
        assert order.payment_status == Order.PaymentStatus.PENDING
        assert order.cancelled_by_role == "customer"
        assert order.cancelled_at is not None
        assert order.refund_eligible is False

    def test_customer_cannot_cancel_after_payment(self, paid_order, customer):
        with pytest.raises(ConcurrencyConflictError, match="contact the restaurant"):
            CancellationService.cancel_order(paid_order.id, customer)

        paid_order.refresh_from_db()
        assert paid_order.status == Order.Status.PENDING

    def test_customer_cannot_cancel_someone_elses_order(self, pending_order, other_customer):
        with pytest.raises(Order.DoesNotExist):
            CancellationService.cancel_order(pending_order.id, other_customer)

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING_PAYMENT

    def test_customer_cancellation_notifies_staff(
        self, pending_order, customer, django_capture_on_commit_callbacks
    ):
        from notifications.models import Notification

        with django_capture_on_commit_callbacks(execute=True):
            CancellationService.cancel_order(pending_order.id, customer)

        staff_notice = Notification.objects.get(for_staff=True, order=pending_order)
        assert staff_notice.title == "Order Cancelled by Customer"


@pytest.mark.django_db
class TestStaffCancellation:
    def test_cancelling_completed_order_changes_nothing(self, paid_order, staff_user):
        """
        CRITICAL: A rejected cancel leaves every column exactly as it was.
        """
        for status in (
            Order.Status.CONFIRMED,
            Order.Status.PREPARING,
            Order.Status.READY,
            Order.Status.OUT_FOR_DELIVERY,
            Order.Status.COMPLETED,
        ):
            OrderService.update_status(paid_order.id, status, staff_user)
        before = snapshot(paid_order)

        with pytest.raises(ConcurrencyConflictError):
            CancellationService.cancel_order(paid_order.id, staff_user)

        assert snapshot(paid_order) == before

    def test_cancelling_twice_is_rejected(self, pending_order, staff_user):
        CancellationService.cancel_order(pending_order.id, staff_user)

        with pytest.raises(ConcurrencyConflictError, match="already cancelled"):
            CancellationService.cancel_order(pending_order.id, staff_user)

    def test_paid_order_is_refunded_after_commit(
        self, paid_order, staff_user, patched_gateway, django_capture_on_commit_callbacks
    ):
        """
        The order is cancelled at once; the payment status only becomes
        refunded once the refund worker has gone through the gateway.
        """
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            order = CancellationService.cancel_order(paid_order.id, staff_user, reason="Kitchen closed")

        assert order.status == Order.Status.CANCELLED
        assert order.refund_eligible is True
        assert Order.objects.get(pk=order.pk).payment_status == Order.PaymentStatus.COMPLETED

        with django_capture_on_commit_callbacks(execute=True):
            for callback in callbacks:
                callback()

        order.refresh_from_db()
        assert order.payment_status == Order.PaymentStatus.REFUNDED

        refund = Refund.objects.get(order=order)
        assert refund.amount == Decimal("555.00")
        assert refund.source == Refund.Source.CANCELLATION
        assert refund.status == Refund.Status.PROCESSED
        patched_gateway.refund_payment.assert_called_once()

        txn = Transaction.objects.get(order=order, status=Transaction.Status.REFUNDED)
        assert txn.refunded_amount == Decimal("555.00")

    def test_partially_refunded_order_refunds_the_rest_on_cancel(
        self, paid_order, staff_user, patched_gateway, django_capture_on_commit_callbacks
    ):
        from refunds.services import RefundProcessor

        txn = Transaction.objects.get(order=paid_order, status=Transaction.Status.CAPTURED)
        RefundProcessor().refund(txn.id, Decimal("10.00"), reason="Missing raita")
        assert Order.objects.get(pk=paid_order.pk).payment_status == Order.PaymentStatus.REFUNDED

        with django_capture_on_commit_callbacks(execute=True):
            order = CancellationService.cancel_order(paid_order.id, staff_user, reason="Kitchen closed")

        assert order.refund_eligible is True
        txn.refresh_from_db()
        assert txn.status == Transaction.Status.REFUNDED
        assert txn.refunded_amount == Decimal("555.00")
        assert sorted(Refund.objects.values_list("amount", flat=True)) == [
            Decimal("10.00"),
            Decimal("545.00"),
        ]
        assert patched_gateway.refund_payment.call_count == 2

    def test_fully_refunded_order_schedules_no_refund(
        self, paid_order, staff_user, patched_gateway, django_capture_on_commit_callbacks
    ):
        from refunds.services import RefundProcessor

        RefundProcessor().refund_order(paid_order.id)

        with django_capture_on_commit_callbacks(execute=True):
            order = CancellationService.cancel_order(paid_order.id, staff_user)

        assert order.refund_eligible is False
        assert Refund.objects.count() == 1

    def test_unpaid_order_schedules_no_refund(
        self, pending_order, staff_user, patched_gateway, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            CancellationService.cancel_order(pending_order.id, staff_user)

        assert Refund.objects.count() == 0
        patched_gateway.refund_payment.assert_not_called()
