"""Secure Logging Service for password reset security events.

Every event appended to the security event log is also written to the
``security.audit`` structured logger. Identities, origins and user agents are
masked first so the audit stream never carries raw PII.

Key Security Features:
- Consistent masking of emails and IP addresses
- User agent reduced to its browser family
- Log level chosen from the event's severity
"""

import hashlib
import secrets
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from reset_guard.domain.security.events import SecurityEvent, SecurityEventType


class SecurityEventLevel(Enum):
    """Security event severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


EVENT_LEVELS = {
    SecurityEventType.RESET_REQUESTED: SecurityEventLevel.LOW,
    SecurityEventType.RESET_SUCCEEDED: SecurityEventLevel.LOW,
    SecurityEventType.RESET_FAILED: SecurityEventLevel.MEDIUM,
    SecurityEventType.SUSPICIOUS_ACTIVITY: SecurityEventLevel.HIGH,
}


class SecureLoggingService:
    """Privacy-preserving emitter for security events.

    Masking is deterministic within one service instance, so the same email
    always masks to the same string and audit entries stay correlatable.
    """

    VISIBLE_PREFIX = 2
    FINGERPRINT_LENGTH = 8

    def __init__(self, logger_name: str = "security.audit"):
        self._logger = structlog.get_logger(logger_name)
        # Per-instance salt: fingerprints correlate within one process only
        self._salt = secrets.token_hex(16)

    def _fingerprint(self, value: str) -> str:
        digest = hashlib.sha256(f"{self._salt}|{value.lower()}".encode()).hexdigest()
        return digest[: self.FINGERPRINT_LENGTH]

    def mask_username(self, username: Optional[str]) -> str:
        """Reduce a local part to a short prefix plus a salted fingerprint.

        Values no longer than the visible prefix are fully starred.
        """
        if not username:
            return "[empty]"
        if len(username) <= self.VISIBLE_PREFIX:
            return "*" * len(username)
        return f"{username[:self.VISIBLE_PREFIX]}***{self._fingerprint(username)}"

    def mask_email(self, email: Optional[str]) -> str:
        """Mask both halves of an identity, e.g. ``al***1f3c9a2b@ex***.com``."""
        if not email:
            return "[empty]"

        local, at, domain = email.partition("@")
        if not at:
            return self.mask_username(local)

        host, dot, tld = domain.rpartition(".")
        if dot:
            masked_domain = f"{host.split('.')[0][:self.VISIBLE_PREFIX]}***.{tld}"
        else:
            masked_domain = f"{domain[:self.VISIBLE_PREFIX]}***"
        return f"{self.mask_username(local)}@{masked_domain}"

    def mask_ip_address(self, ip_address: Optional[str]) -> str:
        """Hide the host part of an origin.

        IPv4 keeps its first three octets, IPv6 everything before the last
        group. Anything else keeps an 8-character prefix.
        """
        if not ip_address:
            return "[unknown]"

        octets = ip_address.split(".")
        if len(octets) == 4:
            return ".".join(octets[:3] + ["***"])
        if ":" in ip_address:
            return f"{ip_address.rsplit(':', 1)[0]}:***"
        return f"{ip_address[:8]}***"

    def sanitize_user_agent(self, user_agent: Optional[str]) -> str:
        """Reduce a user agent to its browser family.

        Args:
            user_agent: Raw user agent string

        Returns:
            str: Sanitized user agent
        """
        if not user_agent:
            return "[unknown]"

        # Most specific browser family first
        if "Edg" in user_agent:
            return "Edge/***"
        elif "Chrome" in user_agent:
            return "Chrome/***"
        elif "Firefox" in user_agent:
            return "Firefox/***"
        elif "Safari" in user_agent:
            return "Safari/***"
        else:
            return "Unknown/***"

    def audit_fields(self, event: SecurityEvent) -> Dict[str, Any]:
        """Build the masked key/value payload written for ``event``."""
        return {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "severity": EVENT_LEVELS[event.event_type].value,
            "identity_masked": self.mask_email(event.identity) if event.identity else None,
            "origin_masked": self.mask_ip_address(event.origin) if event.origin else None,
            "agent_sanitized": self.sanitize_user_agent(event.agent) if event.agent else None,
            "event_timestamp": event.timestamp.isoformat(),
            "metadata_keys": sorted(event.metadata.keys()),
        }

    def log_security_event(self, event: SecurityEvent) -> Dict[str, Any]:
        """Write ``event`` to the audit logger at a level matching its severity.

        Returns:
            Dict: The masked fields that were logged
        """
        fields = self.audit_fields(event)
        level = EVENT_LEVELS[event.event_type]

        if level == SecurityEventLevel.HIGH:
            self._logger.error("Security event", **fields)
        elif level == SecurityEventLevel.MEDIUM:
            self._logger.warning("Security event", **fields)
        else:
            self._logger.info("Security event", **fields)

        return fields


# Global secure logging service instance
secure_logging_service = SecureLoggingService()
