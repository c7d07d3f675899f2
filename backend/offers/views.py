from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit

from core_backend.exceptions import OfferInvalidError
from core_backend.utils import api_rate, user_or_client_ip
from orders.services import OrderService
from .serializers import OfferPreviewSerializer


class ValidateOfferView(APIView):
    """
    Preview an offer code against a cart without creating an order.

    An unusable code is a normal answer here (``valid: false`` with the
    reason), not an error. Unavailable items still fail with 409.
    """

    permission_classes = [IsAuthenticated]

    @method_decorator(ratelimit(key=user_or_client_ip, rate=api_rate, method="POST", block=True))
    def post(self, request, *args, **kwargs):
        serializer = OfferPreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        code = serializer.validated_data["code"]

        try:
            _, breakdown, offer_result = OrderService.price_cart(
                request.user, serializer.validated_data["items"], offer_code=code
            )
        except OfferInvalidError as e:
            return Response(
                {"valid": False, "code": code, "reason": e.reason, "message": e.message},
                status=status.HTTP_200_OK,
            )

        return Response(
            {
                "valid": True,
                "code": code,
                "title": offer_result.offer.title,
                "discount_amount": str(breakdown.discount_amount),
                "free_delivery": offer_result.free_delivery,
                "subtotal": str(breakdown.subtotal),
                "gst_amount": str(breakdown.gst_amount),
                "delivery_charge": str(breakdown.delivery_charge),
                "total_price": str(breakdown.total_price),
            }
        )
