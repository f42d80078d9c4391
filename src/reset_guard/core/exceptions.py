from __future__ import annotations

"""Structured exception hierarchy for reset-guard.

Normal rate-limit checks never raise: a denial is returned as a result value.
These exceptions exist for callers that prefer to branch on a typed error,
chiefly through ``PasswordResetGuard.enforce``. Each error carries a
machine-readable ``code`` alongside its human-readable ``message``.
"""

from datetime import timedelta
from typing import Final, Optional

__all__: Final = [
    "ResetGuardError",
    "RateLimitError",
    "RateLimitExceededError",
]


class ResetGuardError(Exception):
    """Base exception class for all custom errors in reset-guard.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Operational errors (typically map to 429 Too Many Requests)
# ---------------------------------------------------------------------------


class RateLimitError(ResetGuardError):
    """Base class for rate limiting related errors."""

    def __init__(self, message: str | None = None, code: str = "rate_limit_exceeded"):
        if message is None:
            message = "Too many password reset attempts. Please try again later."
        super().__init__(message, code)


class RateLimitExceededError(RateLimitError):
    """Raised when an identity or origin has exhausted its attempts.

    Attributes:
        retry_after: How long the caller should wait before retrying, when known.
        reason: Which limiter denied the request (``identity_limited`` or
            ``origin_limited``).
    """

    def __init__(
        self,
        message: str | None = None,
        code: str = "rate_limit_exceeded",
        retry_after: Optional[timedelta] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.retry_after = retry_after
        self.reason = reason

    @property
    def retry_after_seconds(self) -> Optional[int]:
        """Whole seconds to wait, rounded up, for a ``Retry-After`` header."""
        if self.retry_after is None:
            return None
        seconds = self.retry_after.total_seconds()
        whole = int(seconds)
        return whole if whole == seconds else whole + 1
