"""
URL configuration for refunds app.
"""

from django.urls import path

from .views import process_refund

app_name = "refunds"

urlpatterns = [
    path('refund/', process_refund, name='process-refund'),
]
