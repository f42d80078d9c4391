"""Shared in-memory storage for keyed attempt limiters."""

import threading
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT")


class KeyedAttemptLimiter(Generic[RecordT]):
    """Owns a key -> record mapping guarded by a single lock.

    Records expire lazily: they are only evicted when a later call for the same
    key finds them stale. There is no background sweep.
    """

    key_name: str = "key"

    def __init__(self, normalize: Callable[[Any], Optional[str]]):
        self._normalize = normalize
        self._records: Dict[str, RecordT] = {}
        self._lock = threading.RLock()

    def _key(self, raw: Any, operation: str) -> Optional[str]:
        key = self._normalize(raw)
        if key is None:
            logger.warning(
                "Rejected invalid rate limit key",
                limiter=type(self).__name__,
                operation=operation,
                key_type=type(raw).__name__,
            )
        return key

    def get_record(self, raw: Any) -> Optional[RecordT]:
        """Return the stored record for ``raw`` without evicting anything."""
        key = self._normalize(raw)
        if key is None:
            return None
        with self._lock:
            return self._records.get(key)

    def clear_attempts(self, raw: Any) -> None:
        """Unconditionally forget ``raw``, whatever its current state."""
        key = self._key(raw, "clear_attempts")
        if key is None:
            return
        with self._lock:
            removed = self._records.pop(key, None)
        if removed is not None:
            logger.debug("Rate limit attempts cleared", limiter=type(self).__name__)

    def active_records(self) -> int:
        """Number of keys currently tracked, for monitoring."""
        with self._lock:
            return len(self._records)
