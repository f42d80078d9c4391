"""Anomaly detection over recent password reset events.

Correlates activity per origin to spot two attack shapes:

- Repeated failures from one origin (credential stuffing / token guessing)
- Many distinct identities probed from one origin (account enumeration)

Suspicion is derived on demand from the event log and never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple

import structlog

from reset_guard.domain.security.event_log import SecurityEventLog
from reset_guard.domain.security.events import SecurityEventType
from reset_guard.domain.value_objects.rate_limit import normalize_origin
from reset_guard.utils.clock import resolve_current_time

logger = structlog.get_logger(__name__)

RULE_REPEATED_FAILURES = "repeated_failures"
RULE_IDENTITY_ENUMERATION = "identity_enumeration"


@dataclass(frozen=True)
class AnomalyAssessment:
    """Result of correlating recent activity for an origin.

    Attributes:
        suspicious: Whether any rule fired
        failure_count: Recent ``reset_failed`` events from the origin
        distinct_identities: Distinct identities seen from the origin
        triggered_rules: Names of the rules that fired
    """

    suspicious: bool
    failure_count: int = 0
    distinct_identities: int = 0
    triggered_rules: Tuple[str, ...] = field(default_factory=tuple)


class AnomalyDetector:
    """Read-only view over a ``SecurityEventLog`` that flags abusive origins.

    Only the most recent ``sample_size`` events (of any type) are examined, and
    of those only the ones younger than ``lookback``. The detector never writes
    to the log; callers decide whether to record ``suspicious_activity``.
    """

    DEFAULT_SAMPLE_SIZE = 100
    DEFAULT_LOOKBACK = timedelta(hours=1)
    DEFAULT_FAILURE_THRESHOLD = 5
    DEFAULT_DISTINCT_IDENTITY_THRESHOLD = 5

    def __init__(
        self,
        event_log: SecurityEventLog,
        lookback: timedelta = DEFAULT_LOOKBACK,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        distinct_identity_threshold: int = DEFAULT_DISTINCT_IDENTITY_THRESHOLD,
    ):
        if lookback.total_seconds() <= 0:
            raise ValueError("Lookback window must be positive")
        if sample_size <= 0:
            raise ValueError("Sample size must be positive")
        if failure_threshold <= 0 or distinct_identity_threshold <= 0:
            raise ValueError("Anomaly thresholds must be positive")

        self._event_log = event_log
        self.lookback = lookback
        self.sample_size = sample_size
        self.failure_threshold = failure_threshold
        self.distinct_identity_threshold = distinct_identity_threshold

    def assess(
        self,
        identity: Any,
        origin: Any,
        current_time: Optional[datetime] = None,
    ) -> AnomalyAssessment:
        """Correlate recent activity for ``origin``.

        Args:
            identity: Identity of the current request (context only; the rules
                are keyed by origin)
            origin: Origin to assess
            current_time: Reference time for the lookback (default: now)

        Returns:
            AnomalyAssessment: Counts and the rules that fired. An invalid
            origin never matches anything.
        """
        now = resolve_current_time(current_time)
        origin_key = normalize_origin(origin)
        if origin_key is None:
            logger.warning("Anomaly check skipped for invalid origin", origin_type=type(origin).__name__)
            return AnomalyAssessment(suspicious=False)

        failures = 0
        identities = set()
        for event in self._event_log.recent(limit=self.sample_size):
            if event.origin != origin_key or now - event.timestamp >= self.lookback:
                continue
            if event.event_type is SecurityEventType.RESET_FAILED:
                failures += 1
            if event.identity:
                identities.add(event.identity)

        triggered = []
        if failures >= self.failure_threshold:
            triggered.append(RULE_REPEATED_FAILURES)
        if len(identities) >= self.distinct_identity_threshold:
            triggered.append(RULE_IDENTITY_ENUMERATION)

        assessment = AnomalyAssessment(
            suspicious=bool(triggered),
            failure_count=failures,
            distinct_identities=len(identities),
            triggered_rules=tuple(triggered),
        )

        if assessment.suspicious:
            logger.warning(
                "Suspicious password reset activity detected",
                triggered_rules=list(assessment.triggered_rules),
                failure_count=failures,
                distinct_identities=len(identities),
                has_identity=isinstance(identity, str) and bool(identity.strip()),
            )
        return assessment

    def is_suspicious(
        self,
        identity: Any,
        origin: Any,
        current_time: Optional[datetime] = None,
    ) -> bool:
        """Return True when recent activity from ``origin`` looks abusive."""
        return self.assess(identity, origin, current_time).suspicious
