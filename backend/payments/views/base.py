"""
Base classes and utilities for payment views.

Contains shared functionality used across different payment view types.
"""

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
import logging

from orders.models import Order
from ..gateway import GatewayAPI, GatewayConfig
from ..models import Transaction

logger = logging.getLogger(__name__)


class BasePaymentView(APIView):
    """
    Base class for the customer-facing payment views.
    """

    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        """
        Centralized exception handling for payment views.
        """
        logger.error(f"Payment view error in {self.__class__.__name__}: {exc}")
        return super().handle_exception(exc)

    def get_gateway(self):
        config = GatewayConfig.from_settings()
        return GatewayAPI(config), config

    def get_order_for_user(self, order_id):
        """
        Gets an order the requesting user may pay for. Other customers' orders
        raise Order.DoesNotExist (404).
        """
        queryset = Order.objects.all()
        if not self.request.user.is_restaurant_staff:
            queryset = queryset.filter(customer=self.request.user)
        return queryset.get(pk=order_id)

    def check_gateway_order_access(self, gateway_order_id):
        """Unknown gateway orders and other customers' orders both answer 404."""
        queryset = Transaction.objects.filter(gateway_order_id=gateway_order_id)
        if not self.request.user.is_restaurant_staff:
            queryset = queryset.filter(order__customer=self.request.user)
        if not queryset.exists():
            raise Order.DoesNotExist(f"No order for gateway order {gateway_order_id}")
