"""Infrastructure helpers."""

from .settings import AppSettings, get_settings, load_settings

__all__ = ["get_settings", "load_settings", "AppSettings"]
