"""Security event recording and correlation for the password reset flow.

- SecurityEvent / SecurityEventType: immutable outcome records
- SecurityEventLog: bounded FIFO of recent events
- AnomalyDetector: origin-level correlation over the log
- SecureLoggingService: masked emission of events to the audit logger
"""

from .anomaly_detector import AnomalyAssessment, AnomalyDetector
from .event_log import SecurityEventLog
from .events import SecurityEvent, SecurityEventType
from .logging_service import SecureLoggingService, SecurityEventLevel, secure_logging_service

__all__ = [
    "AnomalyAssessment",
    "AnomalyDetector",
    "SecureLoggingService",
    "SecurityEvent",
    "SecurityEventLevel",
    "SecurityEventLog",
    "SecurityEventType",
    "secure_logging_service",
]
