from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("event", "title", "recipient", "for_staff", "is_read", "created_at")
    list_filter = ("event", "for_staff", "is_read")
    search_fields = ("title", "message", "recipient__email")
