"""
Keeps the AppSettings cache in step with the RestaurantSettings row.
"""

from django.db.models.signals import post_save
from django.dispatch import receiver
from .models import RestaurantSettings
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=RestaurantSettings)
def reload_app_settings(sender, instance, **kwargs):
    from .config import app_settings

    app_settings.reload()
    logger.info(f"Restaurant settings updated (delivery fee {instance.delivery_fee})")
