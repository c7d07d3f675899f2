from django.contrib import admin
from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """
    Admin view for gateway transactions. Everything the gateway reported is
    read-only; amounts never change after creation.
    """

    list_display = (
        "id",
        "order",
        "gateway_order_id",
        "gateway_payment_id",
        "amount",
        "refunded_amount",
        "status",
        "payment_method",
        "created_at",
    )
    list_filter = ("status", "gateway", "payment_method", "created_at")
    search_fields = ("id", "order__order_number", "gateway_order_id", "gateway_payment_id")
    readonly_fields = (
        "id",
        "order",
        "gateway",
        "gateway_order_id",
        "gateway_payment_id",
        "signature",
        "amount",
        "currency",
        "refunded_amount",
        "payment_method",
        "upi_vpa",
        "card_network",
        "card_last4",
        "bank_name",
        "wallet_name",
        "error_code",
        "error_description",
        "metadata",
        "created_at",
        "updated_at",
        "captured_at",
    )

    def has_add_permission(self, request):
        return False
