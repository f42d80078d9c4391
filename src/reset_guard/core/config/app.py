"""
Application-specific settings.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, environment and logging.

    Security Note:
        - Keep LOG_JSON enabled in production so security events reach the
          log pipeline as structured records that a SIEM can parse.
    """
    PROJECT_NAME: str = "reset-guard"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """
        Upper-cases the configured level so "info" and "INFO" are equivalent.

        Args:
            v: Raw level name.

        Returns:
            The level name in upper case.
        """
        if isinstance(v, str):
            return v.strip().upper()
        return v
