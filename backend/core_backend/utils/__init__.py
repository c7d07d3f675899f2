"""
Utility functions for core_backend.
"""
from django.conf import settings


def get_client_ip(request):
    """
    Extract the real client IP from the request.

    Priority order:
    1. CF-Connecting-IP (behind a Cloudflare proxy)
    2. X-Forwarded-For LAST IP (the load balancer appends the address it saw)
    3. REMOTE_ADDR (fallback)
    """
    cf_connecting_ip = request.META.get("HTTP_CF_CONNECTING_IP")
    if cf_connecting_ip:
        return cf_connecting_ip

    # Earlier entries are client supplied
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[-1].strip()

    return request.META.get("REMOTE_ADDR")


def user_or_client_ip(group, request):
    """
    django-ratelimit key: the authenticated user, otherwise the client IP.

    Args:
        group: The rate limit group (required by django-ratelimit but unused)
        request: The request being limited
    """
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return f"user:{user.pk}"
    return f"ip:{get_client_ip(request)}"


def api_rate(group, request):
    """django-ratelimit rate for the ordering and payment endpoints."""
    return settings.API_RATE_LIMIT
