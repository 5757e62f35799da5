"""Configuration module for vendor-remit."""

from vendor_remit.config.logging import configure_logging
from vendor_remit.config.settings import FlatSettings, get_settings

__all__ = ["FlatSettings", "get_settings", "configure_logging"]
