"""Rate Limiting Core Module

In-memory limiters that decide whether a password reset attempt may proceed:

- IdentityLimiter: per-email window with a cooldown once exhausted
- OriginLimiter: per-origin window without a cooldown

Both own their key -> record mapping, expire records lazily on access and
share no state with any other instance.
"""

from .identity_limiter import IdentityLimiter
from .origin_limiter import OriginLimiter

__all__ = [
    "IdentityLimiter",
    "OriginLimiter",
]
