from django.apps import AppConfig


class SettingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "settings"
    verbose_name = "Restaurant settings"

    def ready(self):
        # Keeps app_settings in step with the settings row
        import settings.signals  # noqa: F401
