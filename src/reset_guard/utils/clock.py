"""Time helpers shared by the limiters, the event log and token checks.

Every operation accepts an optional ``current_time`` so that callers and tests
can pin "now"; when omitted it is sampled once from the UTC wall clock.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def resolve_current_time(current_time: Optional[datetime] = None) -> datetime:
    """Return ``current_time`` or now, rejecting naive datetimes.

    Args:
        current_time: Explicit time to use (default: now)

    Returns:
        datetime: A timezone-aware timestamp

    Raises:
        ValueError: If ``current_time`` is timezone-naive
    """
    if current_time is None:
        return utc_now()
    if current_time.tzinfo is None:
        raise ValueError("Current time must be timezone-aware")
    return current_time
