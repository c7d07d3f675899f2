"""
Domain exceptions shared by the ordering and payment apps, and the DRF
exception handler that turns them into HTTP responses.

Services raise these; views let them propagate and the handler below maps
each one to a status code and a ``{"error": ..., "code": ...}`` body.
"""
import logging

from django.core.exceptions import ObjectDoesNotExist
from django_ratelimit.exceptions import Ratelimited
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class OrderingError(Exception):
    """Base exception for ordering and payment errors."""

    code = "ordering_error"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, **details):
        self.message = message or self.default_message()
        self.details = details
        super().__init__(self.message)

    def default_message(self):
        return "Request could not be processed"

    def to_response_data(self):
        data = {"error": self.message, "code": self.code}
        data.update(self.details)
        return data


class ValidationError(OrderingError):
    """Malformed input: bad quantity, unknown address, missing field."""

    code = "validation_error"

    def default_message(self):
        return "Invalid request"


class PriceMismatchError(ValidationError):
    """Raised when a client-supplied total disagrees with the server total."""

    code = "price_mismatch"

    def __init__(self, client_total, server_total, message=None):
        self.client_total = client_total
        self.server_total = server_total
        if message is None:
            message = (
                f"Submitted total {client_total} does not match calculated total {server_total}"
            )
        super().__init__(message, server_total=str(server_total))


class AvailabilityError(OrderingError):
    """A referenced menu item, size or add-on is missing or unavailable."""

    code = "unavailable"
    http_status = status.HTTP_409_CONFLICT

    def default_message(self):
        return "One or more items are currently unavailable"


class OfferInvalidError(OrderingError):
    """An offer code failed validation. ``reason`` carries the machine code."""

    code = "offer_invalid"

    def __init__(self, reason, message=None):
        self.reason = reason
        super().__init__(message or "Offer cannot be applied", reason=reason)


class GatewayError(OrderingError):
    """The payment gateway timed out, refused the call or returned an error."""

    code = "gateway_error"
    http_status = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message=None, error_code=None, status_code=None):
        self.error_code = error_code or "GATEWAY_ERROR"
        self.status_code = status_code
        super().__init__(message or "Payment gateway request failed")

    def to_response_data(self):
        return {"error": self.message, "code": self.code, "gateway_error_code": self.error_code}


class SignatureMismatchError(OrderingError):
    """Gateway callback signature missing or not matching the expected HMAC."""

    code = "signature_mismatch"

    def default_message(self):
        return "Payment signature verification failed"


class ConcurrencyConflictError(OrderingError):
    """The requested transition is not valid from the order's current state."""

    code = "conflict"
    http_status = status.HTTP_409_CONFLICT

    def default_message(self):
        return "Order state changed, request cannot be applied"


class RefundError(OrderingError):
    """Refund rejected: wrong transaction state or amount out of range."""

    code = "refund_error"

    def default_message(self):
        return "Refund cannot be processed"


def domain_exception_handler(exc, context):
    """
    DRF exception handler. Domain errors are mapped to their HTTP status,
    everything else falls through to the DRF default handler.
    """
    if isinstance(exc, OrderingError):
        view = context.get("view")
        view_name = view.__class__.__name__ if view else "unknown"
        if exc.http_status >= 500:
            logger.error(f"{view_name}: {exc.__class__.__name__}: {exc.message}")
        else:
            logger.info(f"{view_name}: {exc.__class__.__name__}: {exc.message}")
        return Response(exc.to_response_data(), status=exc.http_status)

    if isinstance(exc, Ratelimited):
        logger.warning(f"Rate limit hit on {context.get('view').__class__.__name__}")
        return Response(
            {"error": "Too many requests", "code": "rate_limited"},
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    if isinstance(exc, ObjectDoesNotExist):
        return Response(
            {"error": "Not found", "code": "not_found"},
            status=status.HTTP_404_NOT_FOUND,
        )

    return exception_handler(exc, context)
