from django.contrib import admin
from .models import Category, Item, ItemSize, AddOn


class ItemSizeInline(admin.TabularInline):
    model = ItemSize
    extra = 1


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "gst_rate", "display_order", "is_active")
    list_editable = ("display_order", "is_active")
    search_fields = ("name",)


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "is_veg", "is_available")
    list_filter = ("category", "is_available", "is_veg")
    search_fields = ("name",)
    inlines = [ItemSizeInline]


@admin.register(AddOn)
class AddOnAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "is_available")
    list_filter = ("is_available",)
    search_fields = ("name",)
