"""
In-memory diagnostic log.

Every adapter appends one record per state transition or outbound vendor
call. Operators read the log through ``AnalyticsRouter.get_logs`` (or the
``/analytics/logs`` endpoint) to see what was sent where and what failed.
The log is unbounded; display layers are expected to show the tail.
"""

import copy
import threading
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LogRecord:
    """One diagnostic entry."""
    timestamp: str
    message: str
    session_id: str
    data: dict = field(default_factory=dict)


def _detached(record: LogRecord) -> LogRecord:
    # Callers get their own copy of the data so the stored record cannot change.
    return replace(record, data=copy.deepcopy(record.data))


class DiagnosticLog:
    """Append-only, ordered record of analytics activity for one session.

    Usage:
        log = DiagnosticLog(session_id)
        log.append("Amplitude event tracked", {"event": "purchase"})
        latest = log.tail(50)
        log.clear()
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self._records: list[LogRecord] = []
        self._lock = threading.Lock()

    def append(self, message: str, data: dict[str, Any] | None = None) -> LogRecord:
        """Append a record stamped with the current UTC time and the session id."""
        record = LogRecord(
            timestamp=datetime.now(UTC).isoformat(),
            message=message,
            session_id=self.session_id,
            data=copy.deepcopy(dict(data or {})),
        )
        with self._lock:
            self._records.append(record)
        logger.debug(f"[Analytics] {message}", session_id=self.session_id, data=record.data)
        return _detached(record)

    def snapshot(self) -> tuple[LogRecord, ...]:
        """Return an immutable copy of all records, oldest first."""
        with self._lock:
            records = list(self._records)
        return tuple(_detached(record) for record in records)

    def tail(self, limit: int) -> tuple[LogRecord, ...]:
        """Return the newest ``limit`` records, oldest first."""
        if limit <= 0:
            return ()
        with self._lock:
            records = self._records[-limit:]
        return tuple(_detached(record) for record in records)

    def clear(self) -> None:
        """Drop every record."""
        with self._lock:
            self._records = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
