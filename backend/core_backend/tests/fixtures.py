"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users, menu entries, addresses, orders and a fake payment gateway.
"""
import itertools
from decimal import Decimal
from unittest.mock import Mock

import pytest

from customers.models import CustomerAddress
from menu.models import AddOn, Category, Item, ItemSize
from payments.gateway import GatewayAPI, GatewayConfig
from payments.signatures import SignatureService
from settings.models import RestaurantSettings
from users.models import User


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def restaurant_settings(db):
    """Restaurant open for orders with a flat ₹30 delivery charge."""
    return RestaurantSettings.objects.create(
        name="Test Kitchen",
        delivery_fee=Decimal("30.00"),
        minimum_order_value=Decimal("0.00"),
    )


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email="customer@example.com",
        password="testpass123",
        first_name="Asha",
        role=User.Role.CUSTOMER,
    )


@pytest.fixture
def other_customer(db):
    return User.objects.create_user(
        email="other@example.com",
        password="testpass123",
        role=User.Role.CUSTOMER,
    )


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email="kitchen@example.com",
        password="testpass123",
        role=User.Role.STAFF,
    )


@pytest.fixture
def address(customer):
    return CustomerAddress.objects.create(
        customer=customer,
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
        landmark="Metro station",
        is_default=True,
    )


# ============================================================================
# MENU FIXTURES
# ============================================================================

@pytest.fixture
def food_category(db):
    """Category taxed at 5% GST."""
    return Category.objects.create(name="Mains", gst_rate=Decimal("5.00"))


@pytest.fixture
def beverage_category(db):
    """Category taxed at 18% GST."""
    return Category.objects.create(name="Beverages", gst_rate=Decimal("18.00"))


@pytest.fixture
def thali(food_category):
    """A ₹500 item size in the 5% category."""
    item = Item.objects.create(category=food_category, name="Veg Thali")
    return ItemSize.objects.create(item=item, size="Regular", price=Decimal("500.00"))


@pytest.fixture
def biryani(food_category):
    item = Item.objects.create(category=food_category, name="Chicken Biryani", is_veg=False)
    return ItemSize.objects.create(item=item, size="Half", price=Decimal("250.00"))


@pytest.fixture
def cold_coffee(beverage_category):
    """A ₹100 item size in the 18% category."""
    item = Item.objects.create(category=beverage_category, name="Cold Coffee")
    return ItemSize.objects.create(item=item, size="Regular", price=Decimal("100.00"))


@pytest.fixture
def extra_cheese(db):
    return AddOn.objects.create(name="Extra Cheese", price=Decimal("30.00"))


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def pending_order(customer, address, thali, restaurant_settings):
    """
    Order for one ₹500 thali awaiting payment.
    Totals: subtotal 500, GST 25, delivery 30, total 555.
    """
    from orders.services import OrderService

    return OrderService.create_order(
        customer=customer,
        address_id=address.id,
        items=[{"item_size_id": thali.id, "quantity": 1, "add_ons": []}],
    )


@pytest.fixture
def payment_client(fake_gateway_api, gateway_config):
    from payments.services import PaymentGatewayClient

    return PaymentGatewayClient(api=fake_gateway_api, config=gateway_config)


@pytest.fixture
def verifier(gateway_config):
    from payments.services import PaymentVerifier

    return PaymentVerifier(config=gateway_config)


@pytest.fixture
def paid_order(pending_order, payment_client, verifier):
    """The pending order after a verified capture; status is ``pending``."""
    intent = payment_client.initiate_payment(pending_order.id)
    gateway_order_id = intent.transaction.gateway_order_id
    payment_id = "pay_TEST0001"
    verifier.verify_payment(
        gateway_order_id,
        payment_id,
        sign_payment(gateway_order_id, payment_id),
    )
    pending_order.refresh_from_db()
    return pending_order


# ============================================================================
# PAYMENT GATEWAY FIXTURES
# ============================================================================

TEST_KEY_SECRET = "test_key_secret"
TEST_WEBHOOK_SECRET = "test_webhook_secret"


def sign_payment(gateway_order_id, gateway_payment_id, secret=TEST_KEY_SECRET):
    """Signature the gateway would send for a successful payment."""
    message = SignatureService.payment_message(gateway_order_id, gateway_payment_id)
    return SignatureService.compute_signature(message, secret)


@pytest.fixture
def gateway_config():
    return GatewayConfig(
        key_id="rzp_test_key",
        key_secret=TEST_KEY_SECRET,
        webhook_secret=TEST_WEBHOOK_SECRET,
        base_url="https://gateway.test/v1",
        timeout=5,
    )


@pytest.fixture
def fake_gateway_api(gateway_config):
    """
    Mock of GatewayAPI. ``create_order`` hands out a fresh gateway order id
    per call; refunds succeed; no payments are reported by default.
    """
    counter = itertools.count(1)
    api = Mock(spec=GatewayAPI)
    api.config = gateway_config

    def create_order(amount_minor, currency, receipt, notes=None):
        return {
            "id": f"order_TEST{next(counter):04d}",
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }

    def refund_payment(gateway_payment_id, amount_minor, notes=None):
        return {
            "id": f"rfnd_TEST{next(counter):04d}",
            "payment_id": gateway_payment_id,
            "amount": amount_minor,
            "status": "processed",
        }

    api.create_order.side_effect = create_order
    api.refund_payment.side_effect = refund_payment
    api.fetch_order_payments.return_value = []
    return api


@pytest.fixture
def patched_gateway(fake_gateway_api, monkeypatch):
    """
    Make every code path that builds its own GatewayAPI from settings
    (views, refund worker, management command) use the fake instead.
    """
    factory = Mock(return_value=fake_gateway_api)
    monkeypatch.setattr("payments.views.base.GatewayAPI", factory)
    monkeypatch.setattr("payments.services.GatewayAPI", factory)
    monkeypatch.setattr("refunds.services.GatewayAPI", factory)
    monkeypatch.setattr(
        "payments.management.commands.reconcile_pending_payments.GatewayAPI", factory
    )
    return fake_gateway_api
