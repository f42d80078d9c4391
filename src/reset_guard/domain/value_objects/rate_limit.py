"""Rate Limiting Value Objects for domain modeling.

These value objects encapsulate the attempt-tracking rules for password reset
requests and provide a clean abstraction for the limiters that own them.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional


def normalize_identity(identity: Any) -> Optional[str]:
    """Normalize an identity (email) into its case-insensitive key.

    Args:
        identity: Raw identity supplied by the caller

    Returns:
        Optional[str]: The stripped, lower-cased key, or None when the input
        is not a non-empty string
    """
    if not isinstance(identity, str):
        return None
    key = identity.strip().lower()
    return key or None


def normalize_origin(origin: Any) -> Optional[str]:
    """Normalize an origin (IP address) into its key.

    Origins are compared exactly; only surrounding whitespace is removed.
    """
    if not isinstance(origin, str):
        return None
    key = origin.strip()
    return key or None


def _require_aware(value: datetime, name: str) -> None:
    if not isinstance(value, datetime):
        raise ValueError(f"{name} must be a datetime")
    if value.tzinfo is None:
        raise ValueError(f"{name} must be timezone-aware")


@dataclass(frozen=True)
class AttemptRecord:
    """Attempt history for one identity inside its current window.

    Attributes:
        count: Attempts seen in the current window
        first_attempt: Timestamp that anchors the window
        last_attempt: Timestamp of the most recent attempt
    """

    count: int
    first_attempt: datetime
    last_attempt: datetime

    def __post_init__(self) -> None:
        """Validate record invariants."""
        if not isinstance(self.count, int) or self.count < 1:
            raise ValueError("Attempt count must be a positive integer")
        _require_aware(self.first_attempt, "First attempt timestamp")
        _require_aware(self.last_attempt, "Last attempt timestamp")
        if self.last_attempt < self.first_attempt:
            raise ValueError("Last attempt cannot precede first attempt")

    @classmethod
    def start(cls, attempt_time: datetime) -> "AttemptRecord":
        """Create the record for a first attempt."""
        return cls(count=1, first_attempt=attempt_time, last_attempt=attempt_time)

    def record_attempt(self, attempt_time: datetime) -> "AttemptRecord":
        """Record a new attempt and return the updated record.

        The window stays anchored to ``first_attempt``.
        """
        return AttemptRecord(
            count=self.count + 1,
            first_attempt=self.first_attempt,
            last_attempt=max(attempt_time, self.last_attempt),
        )

    def is_window_expired(self, window: timedelta, current_time: datetime) -> bool:
        return current_time - self.first_attempt > window

    def is_exhausted(self, max_attempts: int) -> bool:
        return self.count >= max_attempts

    def cooldown_remaining(self, cooldown: timedelta, current_time: datetime) -> timedelta:
        """Time left before the cooldown after ``last_attempt`` elapses."""
        return cooldown - (current_time - self.last_attempt)


@dataclass(frozen=True)
class OriginRecord:
    """Attempt history for one origin inside its current window."""

    count: int
    first_attempt: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.count, int) or self.count < 1:
            raise ValueError("Attempt count must be a positive integer")
        _require_aware(self.first_attempt, "First attempt timestamp")

    @classmethod
    def start(cls, attempt_time: datetime) -> "OriginRecord":
        return cls(count=1, first_attempt=attempt_time)

    def record_attempt(self) -> "OriginRecord":
        return OriginRecord(count=self.count + 1, first_attempt=self.first_attempt)

    def is_window_expired(self, window: timedelta, current_time: datetime) -> bool:
        return current_time - self.first_attempt > window

    def window_remaining(self, window: timedelta, current_time: datetime) -> timedelta:
        return window - (current_time - self.first_attempt)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the attempt may proceed
        remaining_attempts: Attempts left after this one, when allowed
        remaining_time: Time until the limit lifts, when denied
        reset_time: Instant the limit lifts, when denied
    """

    allowed: bool
    remaining_attempts: Optional[int] = None
    remaining_time: Optional[timedelta] = None
    reset_time: Optional[datetime] = None

    @classmethod
    def allow(cls, remaining_attempts: Optional[int] = None) -> "RateLimitResult":
        return cls(allowed=True, remaining_attempts=remaining_attempts)

    @classmethod
    def deny(
        cls,
        remaining_time: Optional[timedelta] = None,
        reset_time: Optional[datetime] = None,
    ) -> "RateLimitResult":
        return cls(allowed=False, remaining_time=remaining_time, reset_time=reset_time)

    def to_dict(self) -> dict:
        """Serialize the result for API responses and logs."""
        return {
            "allowed": self.allowed,
            "remaining_attempts": self.remaining_attempts,
            "remaining_seconds": (
                self.remaining_time.total_seconds() if self.remaining_time is not None else None
            ),
            "reset_time": self.reset_time.isoformat() if self.reset_time else None,
        }
