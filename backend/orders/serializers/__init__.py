"""
Orders serializers package.
"""

from .order_serializers import (
    OrderLineInputSerializer,
    OrderCreateSerializer,
    OrderItemAddOnSerializer,
    OrderItemSerializer,
    OrderSerializer,
)
from .status_serializers import UpdateOrderStatusSerializer, CancelOrderSerializer

__all__ = [
    'OrderLineInputSerializer',
    'OrderCreateSerializer',
    'OrderItemAddOnSerializer',
    'OrderItemSerializer',
    'OrderSerializer',
    'UpdateOrderStatusSerializer',
    'CancelOrderSerializer',
]
