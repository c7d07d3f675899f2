from rest_framework import status
from rest_framework.response import Response
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit

from core_backend.utils import api_rate, user_or_client_ip

from ..serializers import (
    InitiatePaymentSerializer,
    VerifyPaymentSerializer,
    CheckPaymentStatusSerializer,
)
from ..services import PaymentGatewayClient, PaymentVerifier
from .base import BasePaymentView


class InitiatePaymentView(BasePaymentView):
    """
    Opens (or returns the already open) gateway payment for an order.
    The response carries everything the client checkout needs.
    """

    @method_decorator(ratelimit(key=user_or_client_ip, rate=api_rate, method="POST", block=True))
    def post(self, request, *args, **kwargs):
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self.get_order_for_user(serializer.validated_data["order_id"])

        api, config = self.get_gateway()
        intent = PaymentGatewayClient(api=api, config=config).initiate_payment(order.pk)
        response_status = status.HTTP_200_OK if intent.reused else status.HTTP_201_CREATED
        return Response(intent.to_response(), status=response_status)


class VerifyPaymentView(BasePaymentView):
    @method_decorator(ratelimit(key=user_or_client_ip, rate=api_rate, method="POST", block=True))
    def post(self, request, *args, **kwargs):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if data["gateway_order_id"]:
            self.check_gateway_order_access(data["gateway_order_id"])

        txn = PaymentVerifier().verify_payment(
            data["gateway_order_id"], data["gateway_payment_id"], data["signature"]
        )
        order = txn.order
        return Response(
            {
                "verified": True,
                "order_id": str(order.id),
                "order_number": order.order_number,
                "order_status": order.status,
                "payment_status": order.payment_status,
                "transaction_id": str(txn.id),
            }
        )


class CheckPaymentStatusView(BasePaymentView):
    """
    Payment state for an order, refreshed from the gateway while an intent
    is still open.
    """

    def post(self, request, *args, **kwargs):
        serializer = CheckPaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self.get_order_for_user(serializer.validated_data["order_id"])

        api, config = self.get_gateway()
        result = PaymentGatewayClient(api=api, config=config).check_status(order.pk)
        return Response(result)
