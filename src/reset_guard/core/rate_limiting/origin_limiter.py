"""Per-origin (IP address) rate limiter for password reset requests."""

from datetime import datetime, timedelta
from typing import Any, Optional

import structlog

from reset_guard.core.rate_limiting.base import KeyedAttemptLimiter
from reset_guard.domain.security.logging_service import secure_logging_service
from reset_guard.domain.value_objects.rate_limit import (
    OriginRecord,
    RateLimitResult,
    normalize_origin,
)
from reset_guard.utils.clock import resolve_current_time

logger = structlog.get_logger(__name__)


class OriginLimiter(KeyedAttemptLimiter[OriginRecord]):
    """Fixed-window limiter keyed by origin.

    There is no cooldown: an exhausted origin stays denied until its window,
    anchored at the first attempt, runs out. The record is then evicted and
    counting restarts from zero.
    """

    DEFAULT_MAX_ATTEMPTS = 10
    DEFAULT_WINDOW = timedelta(hours=1)

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS, window: timedelta = DEFAULT_WINDOW):
        if max_attempts <= 0:
            raise ValueError("Max attempts must be positive")
        if window.total_seconds() <= 0:
            raise ValueError("Rate limit window duration must be positive")

        super().__init__(normalize_origin)
        self.max_attempts = max_attempts
        self.window = window

    def _check(self, key: str, now: datetime) -> RateLimitResult:
        record = self._records.get(key)
        if record is None:
            return RateLimitResult.allow()

        if record.is_window_expired(self.window, now):
            del self._records[key]
            return RateLimitResult.allow()

        if record.count >= self.max_attempts:
            return RateLimitResult.deny(
                remaining_time=record.window_remaining(self.window, now),
                reset_time=record.first_attempt + self.window,
            )

        return RateLimitResult.allow()

    def _record(self, key: str, now: datetime) -> OriginRecord:
        record = self._records.get(key)
        updated = OriginRecord.start(now) if record is None else record.record_attempt()
        self._records[key] = updated
        return updated

    def check_limit(self, origin: Any, current_time: Optional[datetime] = None) -> RateLimitResult:
        """Check whether ``origin`` may make another attempt.

        Args:
            origin: Client origin identifier
            current_time: Time to check against (default: now)

        Returns:
            RateLimitResult: Allowed, or denied with the time left in the
            window. Invalid origins are denied.

        The window only expires once strictly more than ``window`` has passed
        since the first attempt. Exactly at ``first_attempt + window`` an
        exhausted origin is still denied with ``remaining_time`` of zero, so a
        derived retry hint of 0 seconds is expected there; the next check
        after that instant is allowed.
        """
        now = resolve_current_time(current_time)
        key = self._key(origin, "check_limit")
        if key is None:
            return RateLimitResult.deny()

        with self._lock:
            result = self._check(key, now)

        if not result.allowed:
            logger.warning(
                "Origin rate limit exceeded",
                origin_masked=secure_logging_service.mask_ip_address(key),
                remaining_seconds=result.remaining_time.total_seconds(),
            )
        return result

    def record_attempt(self, origin: Any, current_time: Optional[datetime] = None) -> None:
        """Record an attempt for ``origin``; the window start is never moved."""
        now = resolve_current_time(current_time)
        key = self._key(origin, "record_attempt")
        if key is None:
            return

        with self._lock:
            record = self._record(key, now)

        logger.debug("Origin attempt recorded", count=record.count, max_attempts=self.max_attempts)

    def check_and_record(self, origin: Any, current_time: Optional[datetime] = None) -> RateLimitResult:
        """Atomically check and, when allowed, record an attempt."""
        now = resolve_current_time(current_time)
        key = self._key(origin, "check_and_record")
        if key is None:
            return RateLimitResult.deny()

        with self._lock:
            result = self._check(key, now)
            if result.allowed:
                self._record(key, now)

        if not result.allowed:
            logger.warning(
                "Origin rate limit exceeded",
                origin_masked=secure_logging_service.mask_ip_address(key),
                remaining_seconds=result.remaining_time.total_seconds(),
            )
        return result
