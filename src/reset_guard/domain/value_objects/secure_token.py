"""Secure Token Value Object for reset and form tokens.

This value object covers the stateless token collaborator of the reset flow:
generating tokens from a cryptographically secure random source and checking
their shape and age. There is no signature or HMAC: unguessability rests
entirely on the randomness source.
"""

import re
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, ClassVar, Optional

from reset_guard.utils.clock import resolve_current_time, utc_now


@dataclass(frozen=True)
class SecureToken:
    """Randomly generated token value object.

    Attributes:
        value: The encoded token string
        issued_at: Token creation timestamp
    """

    value: str
    issued_at: datetime = field(default_factory=utc_now)

    MIN_TOKEN_LENGTH: ClassVar[int] = 32
    DEFAULT_NUM_BYTES: ClassVar[int] = 32
    DEFAULT_EXPIRATION: ClassVar[timedelta] = timedelta(hours=24)
    TOKEN_PATTERN: ClassVar["re.Pattern[str]"] = re.compile(r"^[A-Za-z0-9_-]+$")
    ENCODINGS: ClassVar[tuple] = ("hex", "base64url")

    def __post_init__(self) -> None:
        """Validate token format on construction."""
        if not self.validate_format(self.value):
            raise ValueError(
                f"Token must be at least {self.MIN_TOKEN_LENGTH} URL-safe characters"
            )
        if self.issued_at.tzinfo is None:
            raise ValueError("Token issue timestamp must be timezone-aware")

    @classmethod
    def generate(
        cls,
        num_bytes: int = DEFAULT_NUM_BYTES,
        encoding: str = "hex",
        current_time: Optional[datetime] = None,
    ) -> "SecureToken":
        """Generate a new token from ``num_bytes`` of secure randomness.

        Args:
            num_bytes: Number of random bytes (default: 32)
            encoding: ``hex`` or ``base64url`` (unpadded)
            current_time: Issue time (default: now)

        Returns:
            SecureToken: New token

        Raises:
            ValueError: If the encoding is unknown or the token would be shorter
                than ``MIN_TOKEN_LENGTH``
        """
        if encoding == "hex":
            value = secrets.token_hex(num_bytes)
        elif encoding == "base64url":
            value = secrets.token_urlsafe(num_bytes)
        else:
            raise ValueError(f"Unsupported token encoding: {encoding}")

        return cls(value=value, issued_at=resolve_current_time(current_time))

    @classmethod
    def validate_format(cls, token: Any) -> bool:
        """Check token length and character class.

        Returns False for anything that is not a string of at least
        ``MIN_TOKEN_LENGTH`` characters drawn from ``[A-Za-z0-9_-]``.
        """
        if not token or not isinstance(token, str):
            return False
        if len(token) < cls.MIN_TOKEN_LENGTH:
            return False
        return bool(cls.TOKEN_PATTERN.match(token))

    @staticmethod
    def is_expired_at(
        issued_at: datetime,
        expiration: timedelta = DEFAULT_EXPIRATION,
        current_time: Optional[datetime] = None,
    ) -> bool:
        """Check whether a token issued at ``issued_at`` has expired."""
        check_time = resolve_current_time(current_time)
        return check_time - issued_at > expiration

    def is_expired(
        self,
        expiration: timedelta = DEFAULT_EXPIRATION,
        current_time: Optional[datetime] = None,
    ) -> bool:
        return self.is_expired_at(self.issued_at, expiration, current_time)

    def matches(self, candidate: Any) -> bool:
        """Constant-time comparison against a caller-supplied token."""
        if not isinstance(candidate, str):
            return False
        return secrets.compare_digest(self.value.encode(), candidate.encode())

    def mask_for_logging(self) -> str:
        """Get masked token for safe logging.

        Returns:
            str: Token with only first 8 characters visible
        """
        return f"{self.value[:8]}..."
