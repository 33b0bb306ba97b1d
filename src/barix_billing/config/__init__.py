"""Configuration module for Barix Billing."""

from barix_billing.config.logging import configure_logging
from barix_billing.config.settings import FlatSettings, get_settings

__all__ = ["FlatSettings", "get_settings", "configure_logging"]
