"""
Core backend base components shared by the app view and serializer layers.
"""

from .viewsets import ReadCreateBaseViewSet
from .serializers import BaseModelSerializer, TimestampedSerializer
from .mixins import OptimizedQuerysetMixin

__all__ = [
    'ReadCreateBaseViewSet',
    'BaseModelSerializer',
    'TimestampedSerializer',
    'OptimizedQuerysetMixin',
]
