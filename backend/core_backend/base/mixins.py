from rest_framework.viewsets import ViewSetMixin


class OptimizedQuerysetMixin(ViewSetMixin):
    """
    A ViewSet mixin that optimizes the queryset using the
    `select_related_fields` and `prefetch_related_fields` attributes declared
    on the serializer's Meta class.
    """

    def get_queryset(self):
        queryset = super().get_queryset()
        meta = getattr(self.get_serializer_class(), "Meta", None)
        if meta is None:
            return queryset

        select_related = getattr(meta, "select_related_fields", [])
        prefetch_related = getattr(meta, "prefetch_related_fields", [])
        if select_related:
            queryset = queryset.select_related(*select_related)
        if prefetch_related:
            queryset = queryset.prefetch_related(*prefetch_related)
        return queryset
