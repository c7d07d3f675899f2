"""
Orders services package.

- OrderService: order creation (server-side pricing) and staff status changes
- CancellationService: cancellation and refund hand-off for paid orders
"""

from .order_service import OrderService
from .cancellation_service import CancellationService

__all__ = [
    'OrderService',
    'CancellationService',
]
