from rest_framework import viewsets, filters, mixins
from django_filters.rest_framework import DjangoFilterBackend
from .mixins import OptimizedQuerysetMixin
from ..pagination import StandardPagination


class ReadCreateBaseViewSet(
    OptimizedQuerysetMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Base ViewSet for resources that are created and read over the API but
    only changed through explicit actions (never PUT/PATCH/DELETE).

    Features:
    - Query optimization from serializer Meta
    - Standard pagination, filtering and ordering
    """

    pagination_class = StandardPagination

    filter_backends = [
        DjangoFilterBackend,
        filters.OrderingFilter,
    ]

    ordering = ['-created_at']
