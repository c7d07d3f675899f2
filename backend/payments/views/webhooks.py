"""
Webhook views for payment providers.

The gateway posts payment events here. The body is authenticated by its
HMAC signature, not by a user session.
"""

from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator
import logging

from ..services import PaymentVerifier
from .base import BasePaymentView

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class GatewayWebhookView(BasePaymentView):
    """
    Gateway webhook view. A bad signature is rejected with 400; every
    verified event is acknowledged with 200 so the gateway stops retrying.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    SIGNATURE_HEADER = "HTTP_X_RAZORPAY_SIGNATURE"

    def post(self, request, *args, **kwargs):
        payload = request.body
        signature = request.META.get(self.SIGNATURE_HEADER, "")

        result = PaymentVerifier().handle_webhook(payload, signature)
        logger.info(f"Gateway webhook processed: {result}")
        return Response({"status": "ok", **result})
