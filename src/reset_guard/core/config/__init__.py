from .app import AppSettings
from .rate_limiting import RateLimitingSettings
from .settings import Settings, create_settings, settings

__all__ = [
    "AppSettings",
    "RateLimitingSettings",
    "Settings",
    "create_settings",
    "settings",
]
