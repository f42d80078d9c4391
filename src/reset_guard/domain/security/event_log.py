"""Bounded in-memory log of password reset security events."""

import threading
from collections import deque
from datetime import datetime
from typing import Any, Deque, List, Mapping, Optional, Union

import structlog

from reset_guard.domain.security.events import SecurityEvent, SecurityEventType
from reset_guard.domain.security.logging_service import SecureLoggingService, secure_logging_service
from reset_guard.utils.clock import resolve_current_time

logger = structlog.get_logger(__name__)


class SecurityEventLog:
    """Time-ordered, fixed-capacity FIFO of security events.

    Once full, each append drops the oldest event so the log always holds the
    most recent ``capacity`` events. Events are value objects and are never
    mutated after they are appended.
    """

    DEFAULT_CAPACITY = 1000
    DEFAULT_RECENT_LIMIT = 50

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        logging_service: Optional[SecureLoggingService] = None,
    ):
        if capacity <= 0:
            raise ValueError("Event log capacity must be positive")
        self._capacity = capacity
        self._events: Deque[SecurityEvent] = deque(maxlen=capacity)
        self._lock = threading.RLock()
        self._logging_service = logging_service or secure_logging_service

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, event: SecurityEvent) -> SecurityEvent:
        """Append an already-built event and emit it to the audit log."""
        if not isinstance(event, SecurityEvent):
            raise TypeError("Only SecurityEvent instances can be appended")
        with self._lock:
            self._events.append(event)
        self._logging_service.log_security_event(event)
        return event

    def log_event(
        self,
        event_type: Union[SecurityEventType, str],
        identity: Optional[str] = None,
        origin: Optional[str] = None,
        agent: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        current_time: Optional[datetime] = None,
    ) -> SecurityEvent:
        """Create a timestamped event and append it.

        Args:
            event_type: Kind of event (enum member or its string value)
            identity: Email the event concerns, if any
            origin: Client origin, if any
            agent: Client descriptor, if any
            metadata: Extra annotations; copied, never referenced
            current_time: Creation time (default: now)

        Returns:
            SecurityEvent: The appended event
        """
        event = SecurityEvent(
            event_type=event_type,
            identity=identity,
            origin=origin,
            agent=agent,
            timestamp=resolve_current_time(current_time),
            metadata=metadata or {},
        )
        return self.append(event)

    def recent(
        self,
        event_type: Optional[Union[SecurityEventType, str]] = None,
        limit: int = DEFAULT_RECENT_LIMIT,
    ) -> List[SecurityEvent]:
        """Return the last ``limit`` events, optionally of one type.

        Args:
            event_type: Only include events of this type
            limit: Maximum number of events to return

        Returns:
            List[SecurityEvent]: Matching events, oldest to newest

        Raises:
            ValueError: If ``limit`` is less than 1 or the type is unknown
        """
        if limit < 1:
            raise ValueError("Recent event limit must be at least 1")
        wanted = SecurityEventType(event_type) if event_type is not None else None

        with self._lock:
            if wanted is None:
                events = list(self._events)
            else:
                events = [event for event in self._events if event.event_type is wanted]

        return events[-limit:]

    def clear(self) -> None:
        """Drop every stored event."""
        with self._lock:
            self._events.clear()
        logger.info("Security event log cleared")
