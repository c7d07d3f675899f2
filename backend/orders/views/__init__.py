from .order_viewset import OrderViewSet

__all__ = ['OrderViewSet']
