"""Wiring helpers for building a password reset guard from settings.

Each call returns a new, fully independent set of components. Nothing here is
cached, so separate guards (per test, per shard) never share state.
"""

from typing import Optional

from reset_guard.core.config.rate_limiting import RateLimitingSettings
from reset_guard.core.config.settings import settings as default_settings
from reset_guard.core.rate_limiting.identity_limiter import IdentityLimiter
from reset_guard.core.rate_limiting.origin_limiter import OriginLimiter
from reset_guard.domain.security.anomaly_detector import AnomalyDetector
from reset_guard.domain.security.event_log import SecurityEventLog
from reset_guard.domain.services.password_reset.reset_guard_service import PasswordResetGuard


def build_identity_limiter(config: RateLimitingSettings) -> IdentityLimiter:
    return IdentityLimiter(
        max_attempts=config.IDENTITY_MAX_ATTEMPTS,
        window=config.identity_window,
        cooldown=config.identity_cooldown,
    )


def build_origin_limiter(config: RateLimitingSettings) -> OriginLimiter:
    return OriginLimiter(max_attempts=config.ORIGIN_MAX_ATTEMPTS, window=config.origin_window)


def build_reset_guard(config: Optional[RateLimitingSettings] = None) -> PasswordResetGuard:
    """Create a guard and its components from ``config``.

    Args:
        config: Rate limiting settings (default: the environment settings)

    Returns:
        PasswordResetGuard: A guard owning fresh limiters, log and detector
    """
    config = config or default_settings
    event_log = SecurityEventLog(capacity=config.EVENT_LOG_CAPACITY)
    detector = AnomalyDetector(
        event_log,
        lookback=config.anomaly_lookback,
        sample_size=config.ANOMALY_SAMPLE_SIZE,
        failure_threshold=config.ANOMALY_FAILURE_THRESHOLD,
        distinct_identity_threshold=config.ANOMALY_DISTINCT_IDENTITY_THRESHOLD,
    )
    return PasswordResetGuard(
        identity_limiter=build_identity_limiter(config),
        origin_limiter=build_origin_limiter(config),
        event_log=event_log,
        anomaly_detector=detector,
        config=config,
    )
