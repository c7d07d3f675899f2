"""
Request throttling on the ordering and payment endpoints.
"""
import pytest

from orders.models import Order


@pytest.fixture
def tight_limit(settings):
    settings.API_RATE_LIMIT = "2/h"


def offer_preview(client, size):
    return client.post(
        "/api/offers/validate/",
        {"code": "NOPE", "items": [{"item_size_id": size.id, "quantity": 1, "add_ons": []}]},
        format="json",
    )


@pytest.mark.django_db
class TestRateLimits:
    def test_offer_preview_is_limited(self, customer_client, thali, restaurant_settings, tight_limit):
        assert offer_preview(customer_client, thali).status_code == 200
        assert offer_preview(customer_client, thali).status_code == 200

        response = offer_preview(customer_client, thali)

        assert response.status_code == 429
        assert response.data == {"error": "Too many requests", "code": "rate_limited"}

    def test_limit_is_per_user(
        self, customer_client, other_customer_client, thali, restaurant_settings, tight_limit
    ):
        offer_preview(customer_client, thali)
        offer_preview(customer_client, thali)
        assert offer_preview(customer_client, thali).status_code == 429

        assert offer_preview(other_customer_client, thali).status_code == 200

    def test_order_creation_is_limited(self, customer_client, address, thali, restaurant_settings, tight_limit):
        payload = {
            "address_id": str(address.id),
            "items": [{"item_size_id": thali.id, "quantity": 1, "add_ons": []}],
        }
        for _ in range(2):
            assert customer_client.post("/api/orders/", payload, format="json").status_code == 201

        response = customer_client.post("/api/orders/", payload, format="json")

        assert response.status_code == 429
        assert Order.objects.count() == 2

    def test_order_listing_is_not_limited(self, customer_client, pending_order, tight_limit):
        for _ in range(4):
            assert customer_client.get("/api/orders/").status_code == 200

    def test_payment_initiate_is_limited(self, customer_client, pending_order, patched_gateway, tight_limit):
        payload = {"order_id": str(pending_order.id)}
        assert customer_client.post("/api/payments/initiate/", payload, format="json").status_code == 201
        assert customer_client.post("/api/payments/initiate/", payload, format="json").status_code == 200

        response = customer_client.post("/api/payments/initiate/", payload, format="json")

        assert response.status_code == 429
        assert patched_gateway.create_order.call_count == 1

    def test_disabled_limits(self, customer_client, thali, restaurant_settings, tight_limit, settings):
        settings.RATELIMIT_ENABLE = False

        for _ in range(4):
            assert offer_preview(customer_client, thali).status_code == 200
