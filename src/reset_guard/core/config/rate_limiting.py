"""Rate Limiting Configuration

Centralized configuration for the password-reset limiters and the anomaly
detector, allowing limits to be adjusted per environment without code changes.
"""

from datetime import timedelta
from typing import Optional, Set, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class RateLimitingSettings(BaseSettings):
    """Configuration for password-reset rate limiting and abuse detection."""

    # Global switch
    RESET_GUARD_ENABLED: bool = True

    # Per-identity limits: 3 attempts per 15 minutes, 15 minute cooldown
    IDENTITY_MAX_ATTEMPTS: int = Field(3, ge=1)
    IDENTITY_WINDOW_SECONDS: int = Field(15 * 60, ge=1)
    IDENTITY_COOLDOWN_SECONDS: int = Field(15 * 60, ge=1)

    # Per-origin limits: 10 attempts per hour
    ORIGIN_MAX_ATTEMPTS: int = Field(10, ge=1)
    ORIGIN_WINDOW_SECONDS: int = Field(60 * 60, ge=1)

    # Event log and anomaly detection
    EVENT_LOG_CAPACITY: int = Field(1000, ge=1)
    ANOMALY_LOOKBACK_SECONDS: int = Field(60 * 60, ge=1)
    ANOMALY_SAMPLE_SIZE: int = Field(100, ge=1)
    ANOMALY_FAILURE_THRESHOLD: int = Field(5, ge=1)
    ANOMALY_DISTINCT_IDENTITY_THRESHOLD: int = Field(5, ge=1)

    # Origins that are never rate limited (health checks, internal tooling)
    BYPASS_ORIGINS: Union[str, Set[str]] = Field(default_factory=set)

    @field_validator("BYPASS_ORIGINS", mode="before")
    @classmethod
    def parse_comma_separated_set(cls, v):
        """Parse comma-separated strings into sets."""
        if isinstance(v, str):
            return {item.strip() for item in v.split(",") if item.strip()}
        elif isinstance(v, (list, set, tuple, frozenset)):
            return set(v)
        return set()

    @property
    def identity_window(self) -> timedelta:
        return timedelta(seconds=self.IDENTITY_WINDOW_SECONDS)

    @property
    def identity_cooldown(self) -> timedelta:
        return timedelta(seconds=self.IDENTITY_COOLDOWN_SECONDS)

    @property
    def origin_window(self) -> timedelta:
        return timedelta(seconds=self.ORIGIN_WINDOW_SECONDS)

    @property
    def anomaly_lookback(self) -> timedelta:
        return timedelta(seconds=self.ANOMALY_LOOKBACK_SECONDS)

    def should_bypass(self, origin: Optional[str] = None) -> bool:
        """Determine if rate limiting should be skipped for a request.

        Args:
            origin: Client origin (IP address)

        Returns:
            True if rate limiting should be bypassed, False otherwise

        """
        return self.get_bypass_reason(origin) is not None

    def get_bypass_reason(self, origin: Optional[str] = None) -> Optional[str]:
        """Get the reason why rate limiting is being bypassed.

        Returns:
            String describing the bypass reason, or None if no bypass

        """
        if not self.RESET_GUARD_ENABLED:
            return "Rate limiting globally disabled via RESET_GUARD_ENABLED=false"

        if origin and origin in self.BYPASS_ORIGINS:
            return f"Rate limiting disabled for origin: {origin}"

        return None
