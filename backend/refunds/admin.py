from django.contrib import admin
from .models import Refund


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'order',
        'transaction',
        'amount',
        'currency',
        'source',
        'status',
        'gateway_refund_id',
        'created_at',
    ]
    list_filter = ['status', 'source', 'created_at']
    search_fields = [
        'order__order_number',
        'transaction__gateway_payment_id',
        'gateway_refund_id',
    ]
    readonly_fields = [
        'id',
        'transaction',
        'order',
        'amount',
        'currency',
        'reason',
        'source',
        'status',
        'gateway_refund_id',
        'provider_response',
        'initiated_by',
        'created_at',
        'processed_at',
    ]

    def has_add_permission(self, request):
        return False
