"""Tests for the SecureLoggingService masking and audit emission."""

from datetime import datetime, timezone

import pytest
from structlog.testing import capture_logs

from reset_guard.domain.security import SecureLoggingService, SecurityEvent, SecurityEventType

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def service():
    return SecureLoggingService()


@pytest.mark.unit
class TestMasking:
    def test_mask_email_hides_local_part_and_domain(self, service):
        masked = service.mask_email("alice@example.com")

        assert masked.startswith("al***")
        assert masked.endswith("@ex***.com")
        assert "alice" not in masked
        assert "example" not in masked

    def test_mask_email_is_consistent_within_a_service(self, service):
        assert service.mask_email("alice@example.com") == service.mask_email("alice@example.com")

    def test_mask_short_username(self, service):
        assert service.mask_username("ab") == "**"
        assert service.mask_username(None) == "[empty]"

    def test_mask_email_without_dotted_domain_or_at_sign(self, service):
        assert service.mask_email("root@localhost").endswith("@lo***")
        assert "@" not in service.mask_email("operator")
        assert service.mask_email("operator").startswith("op***")

    def test_fingerprints_are_salted_per_instance(self, service):
        other = SecureLoggingService()

        assert service.mask_username("alice") == service.mask_username("ALICE")
        assert service.mask_username("alice") != other.mask_username("alice")

    def test_mask_non_ip_origin_keeps_short_prefix(self, service):
        assert service.mask_ip_address("internal-gateway") == "internal***"

    @pytest.mark.parametrize(
        "ip, expected",
        [
            ("192.168.1.100", "192.168.1.***"),
            ("2001:db8::1", "2001:db8::***"),
            ("", "[unknown]"),
            (None, "[unknown]"),
        ],
    )
    def test_mask_ip_address(self, service, ip, expected):
        assert service.mask_ip_address(ip) == expected

    @pytest.mark.parametrize(
        "agent, expected",
        [
            ("Mozilla/5.0 (Windows NT 10.0) Chrome/120.0 Safari/537.36 Edg/120.0", "Edge/***"),
            ("Mozilla/5.0 (X11; Linux) Chrome/120.0 Safari/537.36", "Chrome/***"),
            ("Mozilla/5.0 (X11; rv:121.0) Gecko/20100101 Firefox/121.0", "Firefox/***"),
            ("Mozilla/5.0 (Macintosh) AppleWebKit/605.1.15 Safari/605.1.15", "Safari/***"),
            ("curl/8.4.0", "Unknown/***"),
            (None, "[unknown]"),
        ],
    )
    def test_sanitize_user_agent(self, service, agent, expected):
        assert service.sanitize_user_agent(agent) == expected


@pytest.mark.unit
class TestSecurityEventEmission:
    """Events are written to the audit logger at a level matching severity."""

    @pytest.mark.parametrize(
        "event_type, level, severity",
        [
            (SecurityEventType.RESET_REQUESTED, "info", "low"),
            (SecurityEventType.RESET_SUCCEEDED, "info", "low"),
            (SecurityEventType.RESET_FAILED, "warning", "medium"),
            (SecurityEventType.SUSPICIOUS_ACTIVITY, "error", "high"),
        ],
    )
    def test_log_level_follows_severity(self, service, event_type, level, severity):
        event = SecurityEvent(event_type=event_type, timestamp=T0)

        with capture_logs() as cap_logs:
            service.log_security_event(event)

        assert len(cap_logs) == 1
        assert cap_logs[0]["log_level"] == level
        assert cap_logs[0]["severity"] == severity
        assert cap_logs[0]["event_type"] == event_type.value

    def test_audit_payload_carries_no_raw_pii(self, service):
        event = SecurityEvent(
            event_type=SecurityEventType.RESET_FAILED,
            identity="victim@example.com",
            origin="198.51.100.23",
            agent="Mozilla/5.0 Firefox/121.0",
            timestamp=T0,
            metadata={"reason": "invalid_token", "attempt": 2},
        )

        with capture_logs() as cap_logs:
            fields = service.log_security_event(event)

        assert fields["origin_masked"] == "198.51.100.***"
        assert fields["agent_sanitized"] == "Firefox/***"
        assert fields["metadata_keys"] == ["attempt", "reason"]
        assert fields["event_timestamp"] == "2026-01-01T12:00:00+00:00"
        assert "victim" not in str(cap_logs)
        assert "198.51.100.23" not in str(cap_logs)

    def test_missing_fields_are_none(self, service):
        fields = service.audit_fields(
            SecurityEvent(event_type=SecurityEventType.RESET_REQUESTED, timestamp=T0)
        )

        assert fields["identity_masked"] is None
        assert fields["origin_masked"] is None
        assert fields["agent_sanitized"] is None
