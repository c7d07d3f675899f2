from django.contrib import admin
from .models import CustomerAddress


@admin.register(CustomerAddress)
class CustomerAddressAdmin(admin.ModelAdmin):
    list_display = ("customer", "label", "city", "postal_code", "is_default")
    list_filter = ("label", "city")
    search_fields = ("customer__email", "address_line1", "city", "postal_code")
