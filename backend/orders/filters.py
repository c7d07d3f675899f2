import django_filters
from .models import Order


class OrderFilter(django_filters.FilterSet):
    created_at__gte = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_at__lte = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='lte')
    status__in = django_filters.BaseInFilter(field_name='status')

    class Meta:
        model = Order
        fields = ['status', 'payment_status']
