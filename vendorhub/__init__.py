"""Public API surface for the VendorHub access-control package."""

from .settings import Settings, get_app_settings, get_settings, reload_settings

__all__ = ["Settings", "get_app_settings", "get_settings", "reload_settings"]
