"""Per-identity rate limiter for password reset requests.

Each identity (email, compared case-insensitively) may make ``max_attempts``
attempts inside a window anchored at its first attempt. Once the limit is
reached the identity is denied until ``cooldown`` has passed since its last
attempt.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

import structlog

from reset_guard.core.rate_limiting.base import KeyedAttemptLimiter
from reset_guard.domain.security.logging_service import secure_logging_service
from reset_guard.domain.value_objects.rate_limit import (
    AttemptRecord,
    RateLimitResult,
    normalize_identity,
)
from reset_guard.utils.clock import resolve_current_time

logger = structlog.get_logger(__name__)


class IdentityLimiter(KeyedAttemptLimiter[AttemptRecord]):
    """Window + cooldown limiter keyed by normalized identity.

    ``check_limit`` is read-only apart from lazy eviction, and
    ``record_attempt`` never checks. Callers run them in that order; the pair
    is not atomic, so concurrent requests for one identity can both pass the
    check. ``check_and_record`` performs both under the instance lock for
    callers that need atomicity.
    """

    DEFAULT_MAX_ATTEMPTS = 3
    DEFAULT_WINDOW = timedelta(minutes=15)
    DEFAULT_COOLDOWN = timedelta(minutes=15)

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window: timedelta = DEFAULT_WINDOW,
        cooldown: timedelta = DEFAULT_COOLDOWN,
    ):
        """Initialize the limiter.

        Args:
            max_attempts: Attempts allowed per window
            window: Window duration, anchored at the first attempt
            cooldown: Denial period after the last attempt once exhausted

        Raises:
            ValueError: If any setting is not positive
        """
        if max_attempts <= 0:
            raise ValueError("Max attempts must be positive")
        if window.total_seconds() <= 0:
            raise ValueError("Rate limit window duration must be positive")
        if cooldown.total_seconds() <= 0:
            raise ValueError("Cooldown duration must be positive")

        super().__init__(normalize_identity)
        self.max_attempts = max_attempts
        self.window = window
        self.cooldown = cooldown

    def _fresh_result(self) -> RateLimitResult:
        return RateLimitResult.allow(remaining_attempts=self.max_attempts - 1)

    def _check(self, key: str, now: datetime) -> RateLimitResult:
        record = self._records.get(key)
        if record is None:
            return self._fresh_result()

        if record.is_window_expired(self.window, now):
            del self._records[key]
            return self._fresh_result()

        if record.is_exhausted(self.max_attempts):
            remaining = record.cooldown_remaining(self.cooldown, now)
            if remaining > timedelta(0):
                return RateLimitResult.deny(
                    remaining_time=remaining,
                    reset_time=record.last_attempt + self.cooldown,
                )
            # Cooldown elapsed: start over with a fresh count
            del self._records[key]
            return self._fresh_result()

        return RateLimitResult.allow(remaining_attempts=self.max_attempts - record.count - 1)

    def _record(self, key: str, now: datetime) -> AttemptRecord:
        record = self._records.get(key)
        updated = AttemptRecord.start(now) if record is None else record.record_attempt(now)
        self._records[key] = updated
        return updated

    def check_limit(self, identity: Any, current_time: Optional[datetime] = None) -> RateLimitResult:
        """Check whether ``identity`` may make another attempt.

        Args:
            identity: Email or other account identifier
            current_time: Time to check against (default: now)

        Returns:
            RateLimitResult: Allowed with remaining attempts, or denied with the
            remaining cooldown and the instant it ends. Invalid identities are
            denied.
        """
        now = resolve_current_time(current_time)
        key = self._key(identity, "check_limit")
        if key is None:
            return RateLimitResult.deny()

        with self._lock:
            result = self._check(key, now)

        if not result.allowed:
            logger.warning(
                "Identity rate limit exceeded",
                identity_masked=secure_logging_service.mask_email(key),
                remaining_seconds=result.remaining_time.total_seconds(),
            )
        return result

    def record_attempt(self, identity: Any, current_time: Optional[datetime] = None) -> None:
        """Record an attempt for ``identity``.

        The first attempt opens the window; later attempts only bump the count
        and the last-attempt time.
        """
        now = resolve_current_time(current_time)
        key = self._key(identity, "record_attempt")
        if key is None:
            return

        with self._lock:
            record = self._record(key, now)

        logger.debug(
            "Identity attempt recorded",
            identity_masked=secure_logging_service.mask_email(key),
            count=record.count,
            max_attempts=self.max_attempts,
        )

    def check_and_record(
        self, identity: Any, current_time: Optional[datetime] = None
    ) -> RateLimitResult:
        """Atomically check and, when allowed, record an attempt.

        Returns:
            RateLimitResult: The check result as seen before recording
        """
        now = resolve_current_time(current_time)
        key = self._key(identity, "check_and_record")
        if key is None:
            return RateLimitResult.deny()

        with self._lock:
            result = self._check(key, now)
            if result.allowed:
                self._record(key, now)

        if not result.allowed:
            logger.warning(
                "Identity rate limit exceeded",
                identity_masked=secure_logging_service.mask_email(key),
                remaining_seconds=result.remaining_time.total_seconds(),
            )
        return result

    def get_remaining_time(self, identity: Any, current_time: Optional[datetime] = None) -> timedelta:
        """Get the cooldown left for ``identity``.

        Returns:
            timedelta: Zero when there is no record or the identity has not yet
            used all its attempts; otherwise the cooldown remaining after its
            last attempt, floored at zero
        """
        now = resolve_current_time(current_time)
        key = self._normalize(identity)
        if key is None:
            return timedelta(0)

        with self._lock:
            record = self._records.get(key)

        if record is None or not record.is_exhausted(self.max_attempts):
            return timedelta(0)
        return max(timedelta(0), record.cooldown_remaining(self.cooldown, now))
