"""
Notification tests: templates per order event, staff notices, receiver
isolation and the notification API.
"""
import pytest

from notifications.models import Notification
from notifications.services import NotificationService
from orders.models import Order
from orders.services import CancellationService, OrderService
from orders.signals import OrderEvent, order_event


@pytest.mark.django_db
class TestNotificationService:
    def test_order_created(self, pending_order):
        created = NotificationService.notify_order_event(pending_order, OrderEvent.ORDER_CREATED)

        assert len(created) == 1
        notice = created[0]
        assert notice.recipient == pending_order.customer
        assert notice.for_staff is False
        assert notice.title == "Order Placed"
        assert pending_order.order_number in notice.message
        assert notice.data["order_id"] == str(pending_order.id)
        assert notice.data["status"] == "pending_payment"

    def test_payment_completed_also_tells_staff(self, paid_order):
        created = NotificationService.notify_order_event(paid_order, OrderEvent.PAYMENT_COMPLETED)

        titles = {(n.for_staff, n.title) for n in created}
        assert titles == {(False, "Payment Successful"), (True, "New Order")}
        assert all("₹555.00" in n.message for n in created)

    def test_refund_message_uses_refunded_amount(self, paid_order):
        (notice,) = NotificationService.notify_order_event(
            paid_order, OrderEvent.REFUND_PROCESSED, {"amount": "120.5", "currency": "INR"}
        )

        assert "₹120.50" in notice.message

    def test_cancelled_by_client_is_staff_only(self, pending_order):
        (notice,) = NotificationService.notify_order_event(pending_order, OrderEvent.ORDER_CANCELLED_BY_CLIENT)

        assert notice.for_staff is True
        assert notice.recipient is None

    @pytest.mark.parametrize(
        "event, title",
        [
            (OrderEvent.ORDER_CONFIRMED, "Order Confirmed"),
            (OrderEvent.ORDER_PREPARING, "Order Being Prepared"),
            (OrderEvent.ORDER_READY, "Order Ready"),
            (OrderEvent.ORDER_OUT_FOR_DELIVERY, "Out for Delivery"),
            (OrderEvent.ORDER_COMPLETED, "Order Delivered"),
            (OrderEvent.PAYMENT_FAILED, "Payment Failed"),
        ],
    )
    def test_customer_titles(self, pending_order, event, title):
        (notice,) = NotificationService.notify_order_event(pending_order, event)

        assert notice.title == title


@pytest.mark.django_db
class TestOrderEventDelivery:
    def test_events_wait_for_commit(self, customer, address, thali, restaurant_settings, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            order = OrderService.create_order(
                customer, address.id, [{"item_size_id": thali.id, "quantity": 1, "add_ons": []}]
            )

        assert not Notification.objects.filter(order=order).exists()

        for callback in callbacks:
            callback()
        assert Notification.objects.filter(order=order, event=OrderEvent.ORDER_CREATED).exists()

    def test_status_change_notifies_customer(self, paid_order, staff_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            OrderService.update_status(paid_order.id, Order.Status.CONFIRMED, staff_user)

        notice = Notification.objects.get(order=paid_order, event=OrderEvent.ORDER_CONFIRMED)
        assert notice.recipient == paid_order.customer

    def test_failing_receiver_does_not_break_the_order(
        self, pending_order, customer, django_capture_on_commit_callbacks
    ):
        def broken_receiver(sender, **kwargs):
            raise RuntimeError("push service down")

        order_event.connect(broken_receiver, dispatch_uid="broken-test-receiver")
        try:
            with django_capture_on_commit_callbacks(execute=True):
                order = CancellationService.cancel_order(pending_order.id, customer)
        finally:
            order_event.disconnect(dispatch_uid="broken-test-receiver")

        assert order.status == Order.Status.CANCELLED
        # The notification receiver still ran
        assert Notification.objects.filter(order=pending_order, event=OrderEvent.ORDER_CANCELLED).exists()

    def test_notification_storage_failure_is_swallowed(
        self, pending_order, customer, monkeypatch, django_capture_on_commit_callbacks
    ):
        def fail(*args, **kwargs):
            raise RuntimeError("database full")

        monkeypatch.setattr(NotificationService, "notify_order_event", fail)

        with django_capture_on_commit_callbacks(execute=True):
            order = CancellationService.cancel_order(pending_order.id, customer)

        order.refresh_from_db()
        assert order.status == Order.Status.CANCELLED


@pytest.mark.django_db
class TestNotificationAPI:
    URL = "/api/notifications/"

    @pytest.fixture
    def notices(self, paid_order, other_customer):
        NotificationService.notify_order_event(paid_order, OrderEvent.PAYMENT_COMPLETED)
        Notification.objects.create(
            recipient=other_customer, event=OrderEvent.ORDER_CREATED, title="Other", message="Not yours"
        )

    def test_customer_sees_only_own(self, customer_client, notices):
        response = customer_client.get(self.URL)

        assert response.status_code == 200
        assert [n["title"] for n in response.data["results"]] == ["Payment Successful"]

    def test_staff_see_staff_notices(self, staff_client, notices):
        response = staff_client.get(self.URL)

        assert [n["title"] for n in response.data["results"]] == ["New Order"]

    def test_mark_read(self, customer_client, customer, notices):
        response = customer_client.post(f"{self.URL}mark-read/", {}, format="json")

        assert response.data == {"updated": 1}
        assert not Notification.objects.filter(recipient=customer, is_read=False).exists()
        assert customer_client.get(self.URL, {"unread": "true"}).data["count"] == 0

    def test_mark_read_ignores_other_users_ids(self, customer_client, other_customer, notices):
        foreign = Notification.objects.get(recipient=other_customer)

        response = customer_client.post(f"{self.URL}mark-read/", {"ids": [foreign.id]}, format="json")

        assert response.data == {"updated": 0}
        foreign.refresh_from_db()
        assert foreign.is_read is False

    def test_requires_authentication(self, api_client, db):
        assert api_client.get(self.URL).status_code == 401
