"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest


TEST_GATEWAY = {
    "NAME": "razorpay",
    "KEY_ID": "rzp_test_key",
    "KEY_SECRET": "test_key_secret",
    "WEBHOOK_SECRET": "test_webhook_secret",
    "BASE_URL": "https://gateway.test/v1",
    "TIMEOUT": 5,
    "CURRENCY": "INR",
}


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def gateway_settings(settings):
    """
    Point every test at fake gateway credentials. Nothing talks to a real
    gateway; tests that need HTTP use the fake_gateway_api fixture.
    """
    settings.PAYMENT_GATEWAY = dict(TEST_GATEWAY)
    yield


@pytest.fixture(autouse=True)
def celery_eager():
    """
    Run Celery tasks in-process so refunds scheduled on commit execute
    inside the test.
    """
    from core_backend.celery import app

    # The app loads Django settings with the CELERY_ namespace, so the
    # prefixed keys take precedence over the bare ones.
    app.conf.CELERY_TASK_ALWAYS_EAGER = True
    app.conf.CELERY_TASK_EAGER_PROPAGATES = True
    yield


@pytest.fixture(autouse=True)
def reset_app_settings():
    """
    Drop the cached restaurant settings after each test.

    CRITICAL: Without this a delivery fee or closure flag set by one test
    would leak into the next.
    """
    from settings.config import app_settings

    app_settings.reset()
    yield
    app_settings.reset()


@pytest.fixture(autouse=True)
def clear_rate_limits():
    """
    Rate limit counters live in the default cache; start every test at zero.
    """
    from django.core.cache import cache

    cache.clear()
    yield


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/health/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def customer_client(customer):
    """
    Authenticated API client for the default customer, using a real JWT
    bearer token.
    """
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import RefreshToken

    client = APIClient()
    refresh = RefreshToken.for_user(customer)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def other_customer_client(other_customer):
    from rest_framework.test import APIClient

    client = APIClient()
    client.force_authenticate(user=other_customer)
    return client


@pytest.fixture
def staff_client(staff_user):
    from rest_framework.test import APIClient

    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *
