"""Password reset security events.

Immutable records of the outcomes a caller reports while processing password
reset requests. They are appended to the ``SecurityEventLog`` and correlated
by the ``AnomalyDetector``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from reset_guard.domain.value_objects.rate_limit import normalize_identity, normalize_origin
from reset_guard.utils.clock import utc_now


class SecurityEventType(Enum):
    """Kinds of password reset security events."""

    RESET_REQUESTED = "reset_requested"
    RESET_SUCCEEDED = "reset_succeeded"
    RESET_FAILED = "reset_failed"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"


_EMPTY_METADATA: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class SecurityEvent:
    """Immutable security event for audit trails and correlation.

    Attributes:
        event_type: What happened
        identity: Normalized identity (email), if known
        origin: Network origin identifier, if known
        agent: Client descriptor (user agent), if known
        timestamp: Creation time
        metadata: Read-only annotations, copied at creation
        event_id: Unique identifier for cross-system correlation
    """

    event_type: SecurityEventType
    identity: Optional[str] = None
    origin: Optional[str] = None
    agent: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_METADATA)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        """Coerce and normalize fields, rejecting malformed timestamps."""
        if not isinstance(self.event_type, SecurityEventType):
            object.__setattr__(self, "event_type", SecurityEventType(self.event_type))
        if not isinstance(self.timestamp, datetime) or self.timestamp.tzinfo is None:
            raise ValueError("Event timestamp must be a timezone-aware datetime")

        object.__setattr__(self, "identity", normalize_identity(self.identity))
        object.__setattr__(self, "origin", normalize_origin(self.origin))
        if not isinstance(self.agent, str) or not self.agent.strip():
            object.__setattr__(self, "agent", None)

        # Snapshot the caller's mapping so later mutation cannot leak in
        metadata = dict(self.metadata) if self.metadata else {}
        object.__setattr__(self, "metadata", MappingProxyType(metadata))

    def to_dict(self) -> dict:
        """Serialize the event for export."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "identity": self.identity,
            "origin": self.origin,
            "agent": self.agent,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }
