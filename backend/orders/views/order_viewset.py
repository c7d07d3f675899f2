from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
import logging

from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit

from core_backend.base import ReadCreateBaseViewSet
from core_backend.utils import api_rate, user_or_client_ip
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import OrderCreateSerializer, OrderSerializer
from orders.services import OrderService
from users.permissions import IsOrderOwnerOrStaff

from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)


class OrderViewSet(StatusActionsMixin, ReadCreateBaseViewSet):
    """
    Customers create and read their own orders; staff see every order and
    drive the kitchen flow through the status action.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, IsOrderOwnerOrStaff]
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_price", "status"]

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if getattr(user, "is_restaurant_staff", False):
            return queryset
        return queryset.filter(customer=user)

    def get_serializer_class(self):
        if self.action == "create":
            return OrderCreateSerializer
        return super().get_serializer_class()

    @method_decorator(ratelimit(key=user_or_client_ip, rate=api_rate, method="POST", block=True))
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService.create_order(
            customer=request.user,
            address_id=data["address_id"],
            items=data["items"],
            offer_code=data.get("offer_code") or None,
            special_instructions=data.get("special_instructions", ""),
            client_total=data.get("client_total"),
        )
        output = OrderSerializer(order, context=self.get_serializer_context())
        return Response(output.data, status=status.HTTP_201_CREATED)
