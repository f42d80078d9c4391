"""Password Reset Guard Service.

This domain service composes the identity limiter, the origin limiter, the
security event log and the anomaly detector into the sequence an
authentication endpoint runs for every password reset request.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

import structlog

from reset_guard.core.config.rate_limiting import RateLimitingSettings
from reset_guard.core.exceptions import RateLimitExceededError
from reset_guard.core.rate_limiting.identity_limiter import IdentityLimiter
from reset_guard.core.rate_limiting.origin_limiter import OriginLimiter
from reset_guard.domain.security.anomaly_detector import AnomalyAssessment, AnomalyDetector
from reset_guard.domain.security.event_log import SecurityEventLog
from reset_guard.domain.security.events import SecurityEventType
from reset_guard.domain.value_objects.rate_limit import RateLimitResult, normalize_origin
from reset_guard.utils.clock import resolve_current_time

logger = structlog.get_logger(__name__)

REASON_IDENTITY_LIMITED = "identity_limited"
REASON_ORIGIN_LIMITED = "origin_limited"
REASON_BYPASSED = "bypassed"


@dataclass(frozen=True)
class GuardDecision:
    """Combined verdict of both limiters for one request.

    Attributes:
        allowed: Whether the request may proceed
        identity_result: Identity limiter result (None when bypassed)
        origin_result: Origin limiter result (None when bypassed)
        reason: Why the request was denied or bypassed, if it was
        suspicious: Whether the detector flagged the origin afterwards
    """

    allowed: bool
    identity_result: Optional[RateLimitResult] = None
    origin_result: Optional[RateLimitResult] = None
    reason: Optional[str] = None
    suspicious: bool = False

    @property
    def retry_after(self) -> Optional[timedelta]:
        """The longer of the two remaining times, when denied."""
        waits = [
            result.remaining_time
            for result in (self.identity_result, self.origin_result)
            if result is not None and not result.allowed and result.remaining_time is not None
        ]
        return max(waits) if waits else None

    @property
    def remaining_attempts(self) -> Optional[int]:
        if self.identity_result is None:
            return None
        return self.identity_result.remaining_attempts


class PasswordResetGuard:
    """Service that guards password reset requests against abuse.

    This service is responsible for:
    - Checking the identity and origin limiters
    - Recording attempts on both
    - Logging every outcome to the security event log
    - Flagging suspicious origins through the anomaly detector

    ``check`` and ``record_attempt`` are separate steps, as with the limiters
    themselves. ``check_and_record`` and ``request_reset`` run both under the
    guard lock.
    """

    def __init__(
        self,
        identity_limiter: IdentityLimiter,
        origin_limiter: OriginLimiter,
        event_log: SecurityEventLog,
        anomaly_detector: AnomalyDetector,
        config: Optional[RateLimitingSettings] = None,
    ):
        """Initialize with required dependencies.

        Args:
            identity_limiter: Per-identity window + cooldown limiter
            origin_limiter: Per-origin window limiter
            event_log: Log that receives every outcome
            anomaly_detector: Detector reading from ``event_log``
            config: Bypass configuration (default: no bypass)
        """
        self._identity_limiter = identity_limiter
        self._origin_limiter = origin_limiter
        self._event_log = event_log
        self._anomaly_detector = anomaly_detector
        self._config = config
        self._lock = threading.RLock()

        logger.info("PasswordResetGuard initialized")

    @property
    def event_log(self) -> SecurityEventLog:
        return self._event_log

    def _bypass_reason(self, origin: Any) -> Optional[str]:
        if self._config is None:
            return None
        return self._config.get_bypass_reason(normalize_origin(origin))

    def _decide(
        self, identity_result: RateLimitResult, origin_result: RateLimitResult
    ) -> GuardDecision:
        if not identity_result.allowed:
            reason = REASON_IDENTITY_LIMITED
        elif not origin_result.allowed:
            reason = REASON_ORIGIN_LIMITED
        else:
            reason = None
        return GuardDecision(
            allowed=reason is None,
            identity_result=identity_result,
            origin_result=origin_result,
            reason=reason,
        )

    def check(self, identity: Any, origin: Any, current_time: Optional[datetime] = None) -> GuardDecision:
        """Check both limiters without recording anything.

        Args:
            identity: Email the reset is requested for
            origin: Client origin (IP address)
            current_time: Time to check against (default: now)

        Returns:
            GuardDecision: Combined verdict
        """
        now = resolve_current_time(current_time)
        bypass_reason = self._bypass_reason(origin)
        if bypass_reason:
            logger.debug("Rate limiting bypassed", reason=bypass_reason)
            return GuardDecision(allowed=True, reason=REASON_BYPASSED)

        identity_result = self._identity_limiter.check_limit(identity, now)
        origin_result = self._origin_limiter.check_limit(origin, now)
        return self._decide(identity_result, origin_result)

    def record_attempt(self, identity: Any, origin: Any, current_time: Optional[datetime] = None) -> None:
        """Record an attempt on both limiters, whatever its outcome."""
        now = resolve_current_time(current_time)
        if self._bypass_reason(origin):
            return
        self._identity_limiter.record_attempt(identity, now)
        self._origin_limiter.record_attempt(origin, now)

    def check_and_record(
        self, identity: Any, origin: Any, current_time: Optional[datetime] = None
    ) -> GuardDecision:
        """Atomically check both limiters and record on both when allowed.

        A denied request leaves both limiters untouched.
        """
        now = resolve_current_time(current_time)
        with self._lock:
            decision = self.check(identity, origin, now)
            if decision.allowed and decision.reason != REASON_BYPASSED:
                self._identity_limiter.record_attempt(identity, now)
                self._origin_limiter.record_attempt(origin, now)
        return decision

    def request_reset(
        self,
        identity: Any,
        origin: Any,
        agent: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        current_time: Optional[datetime] = None,
    ) -> GuardDecision:
        """Run the full guard sequence for an incoming reset request.

        1. Check and record on both limiters
        2. Log ``reset_requested`` (or ``reset_failed`` when rate limited)
        3. Assess the origin and log ``suspicious_activity`` when flagged

        Returns:
            GuardDecision: Verdict, including the suspicion flag
        """
        now = resolve_current_time(current_time)
        decision = self.check_and_record(identity, origin, now)

        if decision.allowed:
            self._event_log.log_event(
                SecurityEventType.RESET_REQUESTED,
                identity=identity,
                origin=origin,
                agent=agent,
                metadata=metadata,
                current_time=now,
            )
        else:
            annotations = dict(metadata or {})
            annotations["reason"] = "rate_limited"
            annotations["limited_by"] = decision.reason
            self._event_log.log_event(
                SecurityEventType.RESET_FAILED,
                identity=identity,
                origin=origin,
                agent=agent,
                metadata=annotations,
                current_time=now,
            )

        assessment = self._flag_if_suspicious(identity, origin, agent, now)
        return GuardDecision(
            allowed=decision.allowed,
            identity_result=decision.identity_result,
            origin_result=decision.origin_result,
            reason=decision.reason,
            suspicious=assessment.suspicious,
        )

    def report_success(
        self,
        identity: Any,
        origin: Any,
        agent: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        current_time: Optional[datetime] = None,
    ) -> None:
        """Log a confirmed successful reset and clear the identity's attempts."""
        now = resolve_current_time(current_time)
        self._event_log.log_event(
            SecurityEventType.RESET_SUCCEEDED,
            identity=identity,
            origin=origin,
            agent=agent,
            metadata=metadata,
            current_time=now,
        )
        self._identity_limiter.clear_attempts(identity)

    def report_failure(
        self,
        identity: Any,
        origin: Any,
        reason: str,
        agent: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        current_time: Optional[datetime] = None,
    ) -> bool:
        """Log a failed reset and check the origin for abuse.

        Args:
            identity: Email the failure concerns
            origin: Client origin
            reason: Short machine-readable failure reason (e.g. ``invalid_token``)

        Returns:
            bool: True when the origin is now considered suspicious
        """
        now = resolve_current_time(current_time)
        annotations = dict(metadata or {})
        annotations["reason"] = reason
        self._event_log.log_event(
            SecurityEventType.RESET_FAILED,
            identity=identity,
            origin=origin,
            agent=agent,
            metadata=annotations,
            current_time=now,
        )
        return self._flag_if_suspicious(identity, origin, agent, now).suspicious

    def is_suspicious(self, identity: Any, origin: Any, current_time: Optional[datetime] = None) -> bool:
        """Read-only suspicion check; nothing is logged."""
        return self._anomaly_detector.is_suspicious(identity, origin, current_time)

    def _flag_if_suspicious(
        self, identity: Any, origin: Any, agent: Optional[str], now: datetime
    ) -> AnomalyAssessment:
        assessment = self._anomaly_detector.assess(identity, origin, now)
        if assessment.suspicious:
            self._event_log.log_event(
                SecurityEventType.SUSPICIOUS_ACTIVITY,
                identity=identity,
                origin=origin,
                agent=agent,
                metadata={
                    "triggered_rules": list(assessment.triggered_rules),
                    "failure_count": assessment.failure_count,
                    "distinct_identities": assessment.distinct_identities,
                },
                current_time=now,
            )
        return assessment

    @staticmethod
    def enforce(decision: GuardDecision) -> GuardDecision:
        """Raise ``RateLimitExceededError`` for a denied decision.

        Returns:
            GuardDecision: The same decision, when allowed

        Raises:
            RateLimitExceededError: If the decision denies the request
        """
        if decision.allowed:
            return decision
        raise RateLimitExceededError(retry_after=decision.retry_after, reason=decision.reason)
