from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.request import Request
import logging

from orders.serializers import (
    UpdateOrderStatusSerializer,
    CancelOrderSerializer,
    OrderSerializer,
)
from orders.services import OrderService, CancellationService
from users.permissions import IsStaffMember

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order status transition actions

    This mixin provides action methods for OrderViewSet.
    """

    @action(
        detail=True,
        methods=["patch"],
        url_path="status",
        permission_classes=[IsStaffMember],
    )
    def update_status(self, request: Request, pk=None) -> Response:
        """
        Moves the order to the requested status. Conflicting or disallowed
        transitions are answered with 409 by the exception handler.
        """
        order = self.get_object()
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.update_status(
            order.pk,
            serializer.validated_data["status"],
            request.user,
            reason=serializer.validated_data.get("reason", ""),
        )
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request: Request, pk=None) -> Response:
        """
        Cancels the order. Customers may only cancel their own orders before
        payment; staff may cancel any non-terminal order.
        """
        order = self.get_object()
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = CancellationService.cancel_order(
            order.pk,
            request.user,
            reason=serializer.validated_data.get("reason", ""),
            expected_status=serializer.validated_data.get("expected_status"),
        )
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data)
