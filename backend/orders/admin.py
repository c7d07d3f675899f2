from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("item_name", "size_name", "unit_price", "gst_rate", "quantity", "line_total", "gst_amount")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "customer",
        "status",
        "payment_status",
        "get_total_formatted",
        "refund_eligible",
        "created_at",
    )
    list_display_links = ("order_number",)
    search_fields = ("order_number", "customer__email", "gateway_order_id", "gateway_payment_id")
    list_filter = ("status", "payment_status", "refund_eligible", "created_at")
    inlines = [OrderItemInline]
    date_hierarchy = "created_at"

    fieldsets = (
        (
            "Order Overview",
            {
                "fields": (
                    "id",
                    "order_number",
                    "customer",
                    "status",
                    "payment_status",
                    "delivery_address",
                    "special_instructions",
                )
            },
        ),
        (
            "Financial Summary",
            {
                "fields": (
                    "currency",
                    "subtotal",
                    "gst_amount",
                    "discount_amount",
                    "delivery_charge",
                    "total_price",
                    "offer",
                ),
            },
        ),
        (
            "Payment",
            {
                "fields": ("payment_method", "gateway_order_id", "gateway_payment_id", "refund_eligible"),
            },
        ),
        (
            "Cancellation",
            {
                "classes": ("collapse",),
                "fields": ("cancelled_by_role", "cancellation_reason", "cancelled_at"),
            },
        ),
        (
            "Timestamps",
            {
                "classes": ("collapse",),
                "fields": ("created_at", "updated_at", "paid_at", "confirmed_at", "completed_at"),
            },
        ),
    )

    def get_readonly_fields(self, request, obj=None):
        """Totals and gateway references are never edited by hand."""
        readonly = [
            "id",
            "order_number",
            "created_at",
            "updated_at",
            "subtotal",
            "gst_amount",
            "discount_amount",
            "delivery_charge",
            "total_price",
            "gateway_order_id",
            "gateway_payment_id",
        ]
        if obj:
            readonly.extend(["customer", "offer", "currency"])
        return tuple(readonly)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("customer", "offer")

    @admin.display(ordering="total_price", description="Total")
    def get_total_formatted(self, obj):
        return f"{obj.currency} {obj.total_price:,.2f}"
