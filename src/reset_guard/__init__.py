"""reset-guard: abuse protection for password reset flows.

Per-identity and per-origin rate limiting, a bounded security event log, and
origin-level anomaly detection, composed by ``PasswordResetGuard``.
"""

from reset_guard.core.dependencies import build_reset_guard
from reset_guard.core.exceptions import RateLimitError, RateLimitExceededError, ResetGuardError
from reset_guard.core.rate_limiting import IdentityLimiter, OriginLimiter
from reset_guard.domain.security import (
    AnomalyAssessment,
    AnomalyDetector,
    SecurityEvent,
    SecurityEventLog,
    SecurityEventType,
)
from reset_guard.domain.services import GuardDecision, PasswordResetGuard
from reset_guard.domain.value_objects import (
    AttemptRecord,
    OriginRecord,
    RateLimitResult,
    SecureToken,
)

__version__ = "0.1.0"

__all__ = [
    "AnomalyAssessment",
    "AnomalyDetector",
    "AttemptRecord",
    "GuardDecision",
    "IdentityLimiter",
    "OriginLimiter",
    "OriginRecord",
    "PasswordResetGuard",
    "RateLimitError",
    "RateLimitExceededError",
    "RateLimitResult",
    "ResetGuardError",
    "SecureToken",
    "SecurityEvent",
    "SecurityEventLog",
    "SecurityEventType",
    "build_reset_guard",
]
