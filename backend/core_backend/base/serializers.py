from rest_framework import serializers


class BaseModelSerializer(serializers.ModelSerializer):
    """
    Base serializer for project models.

    Meta may declare `select_related_fields` / `prefetch_related_fields`;
    OptimizedQuerysetMixin applies them to the view's queryset.
    """

    class Meta:
        select_related_fields = []
        prefetch_related_fields = []


class TimestampedSerializer(BaseModelSerializer):
    """
    Base serializer for models with created_at/updated_at fields.
    """

    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)

    class Meta:
        abstract = True
