from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """Log gateway configuration problems once at startup."""
        from django.conf import settings

        gateway = getattr(settings, "PAYMENT_GATEWAY", {})
        if not gateway.get("KEY_ID") or not gateway.get("KEY_SECRET"):
            logger.warning(
                "Payment gateway credentials are not configured; payment initiation will fail"
            )
