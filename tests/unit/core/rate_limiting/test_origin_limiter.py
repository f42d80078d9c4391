"""Unit tests for the per-origin password reset limiter."""

import threading
from datetime import timedelta

import pytest
from structlog.testing import capture_logs

from reset_guard.core.exceptions import RateLimitExceededError
from reset_guard.core.rate_limiting import OriginLimiter

HOUR_MS = 3_600_000


def _exhaust(limiter, origin, at, times=10):
    for t in range(times):
        limiter.record_attempt(origin, current_time=at(t))


@pytest.mark.unit
class TestOriginLimiter:
    """Test suite for OriginLimiter window behaviour."""

    def test_allows_below_limit(self, origin_limiter, at):
        _exhaust(origin_limiter, "10.0.0.1", at, times=9)

        result = origin_limiter.check_limit("10.0.0.1", current_time=at(10))

        assert result.allowed is True
        assert result.remaining_attempts is None

    def test_denies_at_limit_until_window_ends(self, origin_limiter, at):
        # Arrange
        _exhaust(origin_limiter, "10.0.0.1", at)

        # Act
        result = origin_limiter.check_limit("10.0.0.1", current_time=at(60_000))

        # Assert
        assert result.allowed is False
        assert result.remaining_time == timedelta(milliseconds=HOUR_MS - 60_000)
        assert result.reset_time == at(0) + timedelta(hours=1)

    def test_remaining_time_strictly_decreases(self, origin_limiter, at):
        _exhaust(origin_limiter, "10.0.0.1", at)

        samples = [
            origin_limiter.check_limit("10.0.0.1", current_time=at(t)).remaining_time
            for t in (100, 5_000, 600_000, HOUR_MS - 1)
        ]

        assert all(earlier > later for earlier, later in zip(samples, samples[1:]))
        assert samples[-1] == timedelta(milliseconds=1)

    def test_window_boundary_is_inclusive(self, origin_limiter, at):
        """At exactly one window after the first attempt the origin is still limited."""
        _exhaust(origin_limiter, "10.0.0.1", at)

        at_boundary = origin_limiter.check_limit("10.0.0.1", current_time=at(HOUR_MS))
        after = origin_limiter.check_limit("10.0.0.1", current_time=at(HOUR_MS + 1))

        assert at_boundary.allowed is False
        assert at_boundary.remaining_time == timedelta(0)
        assert after.allowed is True
        assert origin_limiter.get_record("10.0.0.1") is None

    def test_counting_restarts_after_eviction(self, origin_limiter, at):
        _exhaust(origin_limiter, "10.0.0.1", at)
        origin_limiter.check_limit("10.0.0.1", current_time=at(HOUR_MS + 1))

        origin_limiter.record_attempt("10.0.0.1", current_time=at(HOUR_MS + 2))

        record = origin_limiter.get_record("10.0.0.1")
        assert record.count == 1
        assert record.first_attempt == at(HOUR_MS + 2)

    def test_origins_are_compared_exactly(self, origin_limiter, at):
        _exhaust(origin_limiter, "10.0.0.1", at)

        assert origin_limiter.check_limit(" 10.0.0.1 ", current_time=at(11)).allowed is False
        assert origin_limiter.check_limit("10.0.0.10", current_time=at(11)).allowed is True

    def test_clear_attempts_restores_access(self, origin_limiter, at):
        _exhaust(origin_limiter, "10.0.0.1", at)

        origin_limiter.clear_attempts("10.0.0.1")

        assert origin_limiter.check_limit("10.0.0.1", current_time=at(11)).allowed is True

    @pytest.mark.parametrize("origin", [None, "", "  ", 1234])
    def test_invalid_origin_is_denied(self, origin_limiter, origin, at):
        assert origin_limiter.check_limit(origin, current_time=at(0)).allowed is False

    def test_invalid_origin_is_logged(self, origin_limiter, at):
        with capture_logs() as cap_logs:
            origin_limiter.record_attempt(None, current_time=at(0))

        assert cap_logs[0]["event"] == "Rejected invalid rate limit key"
        assert cap_logs[0]["limiter"] == "OriginLimiter"
        assert cap_logs[0]["log_level"] == "warning"
        assert origin_limiter.active_records() == 0

    def test_denial_log_masks_origin(self, origin_limiter, at):
        _exhaust(origin_limiter, "192.168.1.77", at)

        with capture_logs() as cap_logs:
            origin_limiter.check_limit("192.168.1.77", current_time=at(11))

        denial = next(entry for entry in cap_logs if entry["event"] == "Origin rate limit exceeded")
        assert denial["origin_masked"] == "192.168.1.***"
        assert "192.168.1.77" not in str(cap_logs)

    def test_check_and_record_stops_at_limit(self, origin_limiter, at):
        results = [origin_limiter.check_and_record("10.0.0.1", current_time=at(t)) for t in range(12)]

        assert [r.allowed for r in results] == [True] * 10 + [False] * 2
        assert origin_limiter.get_record("10.0.0.1").count == 10

    def test_boundary_denial_yields_zero_second_retry_hint(self, origin_limiter, at):
        _exhaust(origin_limiter, "10.0.0.1", at)

        at_boundary = origin_limiter.check_limit("10.0.0.1", current_time=at(HOUR_MS))
        error = RateLimitExceededError(retry_after=at_boundary.remaining_time)

        assert at_boundary.allowed is False
        assert at_boundary.reset_time == at(HOUR_MS)
        assert error.retry_after_seconds == 0

    def test_concurrent_check_and_record_admits_exactly_max_attempts(self, origin_limiter, at):
        workers = 40
        barrier = threading.Barrier(workers)
        allowed = []
        allowed_lock = threading.Lock()

        def attempt():
            barrier.wait()
            result = origin_limiter.check_and_record("10.0.0.1", current_time=at(0))
            with allowed_lock:
                allowed.append(result.allowed)

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(allowed) == workers
        assert sum(allowed) == 10
        assert origin_limiter.get_record("10.0.0.1").count == 10

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"window": timedelta(0)}],
    )
    def test_rejects_non_positive_settings(self, kwargs):
        with pytest.raises(ValueError):
            OriginLimiter(**kwargs)
