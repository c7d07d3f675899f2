"""
Centralized access to restaurant-wide settings.

Business logic reads values through ``app_settings`` instead of querying
RestaurantSettings directly. Loading is deferred until first access so that
management commands like 'migrate' run before the table exists.
"""

from decimal import Decimal
from typing import Optional, Any
import logging

logger = logging.getLogger(__name__)


class AppSettings:
    """
    A LAZY singleton holding the restaurant settings row as plain attributes.
    """

    _instance: Optional["AppSettings"] = None

    def __new__(cls) -> "AppSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not yet in __dict__
        if not self.__dict__.get("_initialized", False):
            self.load_settings()
            self._initialized = True
        try:
            return self.__dict__[name]
        except KeyError:
            raise AttributeError(f"'AppSettings' object has no attribute '{name}'")

    def load_settings(self) -> None:
        from .models import RestaurantSettings

        settings_obj = RestaurantSettings.load()

        self.restaurant_name: str = settings_obj.name
        self.currency: str = settings_obj.currency
        self.delivery_fee: Decimal = settings_obj.delivery_fee
        self.minimum_order_value: Decimal = settings_obj.minimum_order_value
        self.is_manually_closed: bool = settings_obj.is_manually_closed
        self.manual_closure_reason: str = settings_obj.manual_closure_reason

    def reload(self) -> None:
        """Reload settings from the database after they change."""
        self.load_settings()
        self._initialized = True
        logger.info("AppSettings cache reloaded")

    def reset(self) -> None:
        """Drop loaded values; the next attribute access reads the database again."""
        for key in list(self.__dict__):
            del self.__dict__[key]
        self._initialized = False


app_settings = AppSettings()
