"""Tests for SecurityEvent and the bounded SecurityEventLog."""

from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from unittest.mock import Mock

import pytest

from reset_guard.domain.security import SecurityEvent, SecurityEventLog, SecurityEventType

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestSecurityEvent:
    def test_string_event_type_is_coerced(self):
        event = SecurityEvent(event_type="reset_failed", timestamp=T0)

        assert event.event_type is SecurityEventType.RESET_FAILED

    def test_unknown_event_type_is_rejected(self):
        with pytest.raises(ValueError):
            SecurityEvent(event_type="password_changed", timestamp=T0)

    def test_identity_and_origin_are_normalized(self):
        event = SecurityEvent(
            event_type=SecurityEventType.RESET_REQUESTED,
            identity=" Alice@Example.com ",
            origin=" 10.0.0.1",
            agent="   ",
            timestamp=T0,
        )

        assert event.identity == "alice@example.com"
        assert event.origin == "10.0.0.1"
        assert event.agent is None

    def test_metadata_is_a_read_only_snapshot(self):
        source = {"reason": "invalid_token"}
        event = SecurityEvent(event_type=SecurityEventType.RESET_FAILED, metadata=source, timestamp=T0)

        source["reason"] = "changed"

        assert isinstance(event.metadata, MappingProxyType)
        assert event.metadata["reason"] == "invalid_token"
        with pytest.raises(TypeError):
            event.metadata["reason"] = "x"

    def test_naive_timestamp_is_rejected(self):
        with pytest.raises(ValueError):
            SecurityEvent(event_type=SecurityEventType.RESET_FAILED, timestamp=datetime(2026, 1, 1))

    def test_to_dict(self):
        event = SecurityEvent(
            event_type=SecurityEventType.RESET_SUCCEEDED,
            identity="a@x.com",
            timestamp=T0,
            metadata={"k": 1},
        )

        data = event.to_dict()
        assert data["event_type"] == "reset_succeeded"
        assert data["timestamp"] == "2026-01-01T12:00:00+00:00"
        assert data["metadata"] == {"k": 1}
        assert data["event_id"] == event.event_id


@pytest.mark.unit
class TestSecurityEventLog:
    """Test suite for the bounded FIFO event log."""

    def test_oldest_events_are_dropped_past_capacity(self, event_log):
        """After 1005 appends the 50 most recent are #956 through #1005."""
        # Arrange
        for n in range(1, 1006):
            event_log.log_event(
                SecurityEventType.RESET_REQUESTED,
                identity=f"user{n}@x.com",
                origin="10.0.0.1",
                current_time=T0 + timedelta(seconds=n),
            )

        # Act
        recent = event_log.recent(limit=50)

        # Assert
        assert len(event_log) == 1000
        assert [e.identity for e in recent] == [f"user{n}@x.com" for n in range(956, 1006)]

    def test_recent_defaults_to_fifty(self, event_log):
        for n in range(60):
            event_log.log_event(SecurityEventType.RESET_REQUESTED, current_time=T0)

        assert len(event_log.recent()) == 50

    def test_recent_returns_everything_when_limit_exceeds_size(self, event_log):
        for n in range(3):
            event_log.log_event(SecurityEventType.RESET_REQUESTED, current_time=T0)

        assert len(event_log.recent(limit=10)) == 3

    def test_recent_filters_by_type(self, event_log):
        event_log.log_event(SecurityEventType.RESET_REQUESTED, identity="a@x.com", current_time=T0)
        event_log.log_event(SecurityEventType.RESET_FAILED, identity="b@x.com", current_time=T0)
        event_log.log_event(SecurityEventType.RESET_REQUESTED, identity="c@x.com", current_time=T0)
        event_log.log_event("reset_failed", identity="d@x.com", current_time=T0)

        failed = event_log.recent(event_type=SecurityEventType.RESET_FAILED)
        requested = event_log.recent(event_type="reset_requested", limit=1)

        assert [e.identity for e in failed] == ["b@x.com", "d@x.com"]
        assert [e.identity for e in requested] == ["c@x.com"]

    @pytest.mark.parametrize("limit", [0, -5])
    def test_recent_rejects_limit_below_one(self, event_log, limit):
        with pytest.raises(ValueError):
            event_log.recent(limit=limit)

    def test_empty_log(self, event_log):
        assert len(event_log) == 0
        assert event_log.recent() == []

    def test_append_rejects_non_events(self, event_log):
        with pytest.raises(TypeError):
            event_log.append({"event_type": "reset_failed"})

    def test_append_emits_through_logging_service(self):
        logging_service = Mock()
        log = SecurityEventLog(capacity=5, logging_service=logging_service)
        event = SecurityEvent(event_type=SecurityEventType.RESET_FAILED, timestamp=T0)

        returned = log.append(event)

        assert returned is event
        logging_service.log_security_event.assert_called_once_with(event)

    def test_clear(self, event_log):
        event_log.log_event(SecurityEventType.RESET_REQUESTED, current_time=T0)

        event_log.clear()

        assert len(event_log) == 0
        assert event_log.capacity == 1000

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            SecurityEventLog(capacity=0)
