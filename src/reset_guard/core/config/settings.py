"""Main settings and configuration management.

This module composes the application and rate limiting settings into a single
``Settings`` class, loaded from environment variables and an optional ``.env``
file, and exposes a ``settings`` instance for convenience.

The limiters, event log and detector are never created here: callers build
them explicitly (see ``reset_guard.core.dependencies``) so that tests and
shards stay isolated.
"""

import logging

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .rate_limiting import RateLimitingSettings

logger = logging.getLogger(__name__)


class Settings(AppSettings, RateLimitingSettings):
    """The main settings class that aggregates all configurations.

    Usage:
        - Access settings via the instance ``settings``, or construct a
          ``Settings(...)`` with overrides in tests.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() not in {"development", "dev", "test", "testing"}


def create_settings() -> Settings:
    """Create the settings instance from the current environment.

    Returns:
        Settings: Configured settings instance
    """
    settings_instance = Settings()
    logger.debug("Settings loaded for %s environment", settings_instance.APP_ENV)
    return settings_instance


settings = create_settings()
