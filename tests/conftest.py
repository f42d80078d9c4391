from datetime import datetime, timedelta, timezone

import pytest

from reset_guard.core.config.settings import Settings
from reset_guard.core.dependencies import build_reset_guard
from reset_guard.core.rate_limiting import IdentityLimiter, OriginLimiter
from reset_guard.domain.security import AnomalyDetector, SecurityEventLog


BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def at_ms(milliseconds: float) -> datetime:
    """Absolute time ``milliseconds`` after the fixed test epoch."""
    return BASE_TIME + timedelta(milliseconds=milliseconds)


@pytest.fixture
def at():
    """Callable mapping milliseconds since the test epoch to a datetime."""
    return at_ms


@pytest.fixture
def identity_limiter() -> IdentityLimiter:
    return IdentityLimiter(
        max_attempts=3,
        window=timedelta(milliseconds=900_000),
        cooldown=timedelta(milliseconds=900_000),
    )


@pytest.fixture
def origin_limiter() -> OriginLimiter:
    return OriginLimiter(max_attempts=10, window=timedelta(hours=1))


@pytest.fixture
def event_log() -> SecurityEventLog:
    return SecurityEventLog(capacity=1000)


@pytest.fixture
def anomaly_detector(event_log) -> AnomalyDetector:
    return AnomalyDetector(event_log)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults, isolated from any local .env file."""
    return Settings(_env_file=None, APP_ENV="test", LOG_JSON=False)


@pytest.fixture
def guard(test_settings):
    return build_reset_guard(test_settings)
