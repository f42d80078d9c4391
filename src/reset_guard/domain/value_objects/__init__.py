"""Domain value objects for attempt tracking and secure tokens."""

from .rate_limit import (
    AttemptRecord,
    OriginRecord,
    RateLimitResult,
    normalize_identity,
    normalize_origin,
)
from .secure_token import SecureToken

__all__ = [
    "AttemptRecord",
    "OriginRecord",
    "RateLimitResult",
    "SecureToken",
    "normalize_identity",
    "normalize_origin",
]
