from django.contrib import admin
from .models import Offer


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    """
    Admin interface for managing offer codes.
    """

    list_display = (
        "code",
        "title",
        "discount_type",
        "discount_value",
        "min_order_value",
        "is_active",
        "valid_from",
        "valid_to",
    )
    list_filter = ("discount_type", "is_active", "first_order_only")
    search_fields = ("code", "title")
    ordering = ("code",)

    fieldsets = (
        (None, {"fields": ("code", "title", "description", "is_active")}),
        ("Rule", {"fields": ("discount_type", "discount_value", "max_discount_amount", "min_order_value")}),
        ("Applicability", {"fields": ("applicable_category", "applicable_item")}),
        ("Limits", {"fields": ("first_order_only", "max_uses_per_user")}),
        ("Timeframe", {"fields": ("valid_from", "valid_to")}),
    )
