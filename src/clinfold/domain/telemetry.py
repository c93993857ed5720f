"""Bounded in-memory audit and request telemetry."""

from __future__ import annotations

from collections import Counter, deque
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from clinfold.domain.clock import utcnow
from clinfold.domain.model.records import AuditStats, RequestStats

if TYPE_CHECKING:
    from datetime import datetime

    from clinfold.domain.clock import Clock
    from clinfold.domain.model.enums import AuditAction
    from clinfold.domain.model.records import AuditEntry, RequestLogEntry

audit_log = getLogger("clinfold.audit")

DEFAULT_MAX_ENTRIES = 10_000
HOUR = timedelta(hours=1)
DAY = timedelta(hours=24)


def _within(timestamp: datetime, now: datetime, window: timedelta) -> bool:
    return now - timestamp < window


class AuditLog:
    """Ring buffer of authentication audit entries; overflow drops the oldest."""

    def __init__(self, *, max_entries: int = DEFAULT_MAX_ENTRIES, clock: Clock = utcnow) -> None:
        self._entries: deque[AuditEntry] = deque(maxlen=max_entries)
        self._clock = clock

    def log(self, entry: AuditEntry) -> None:
        self._entries.append(entry)
        audit_log.info(
            "%s key=%s ip=%s %s %s%s",
            entry.action,
            entry.api_key_prefix,
            entry.ip,
            entry.method,
            entry.path,
            f" reason={entry.reason}" if entry.reason else "",
        )

    def get_entries(
        self, *, limit: int | None = None, action: AuditAction | None = None
    ) -> list[AuditEntry]:
        """Matching entries in chronological order, keeping the newest ``limit``."""

        entries = [e for e in self._entries if action is None or e.action == action]
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    def count(self) -> int:
        return len(self._entries)

    def get_stats(self) -> AuditStats:
        now = self._clock()
        return AuditStats(
            total=len(self._entries),
            last_hour=sum(1 for e in self._entries if _within(e.timestamp, now, HOUR)),
            last_24h=sum(1 for e in self._entries if _within(e.timestamp, now, DAY)),
            by_action=dict(Counter(str(e.action) for e in self._entries)),
        )


class RequestLog:
    def __init__(self, *, max_entries: int = DEFAULT_MAX_ENTRIES, clock: Clock = utcnow) -> None:
        self._entries: deque[RequestLogEntry] = deque(maxlen=max_entries)
        self._clock = clock

    def log(self, entry: RequestLogEntry) -> None:
        self._entries.append(entry)

    def get_entries(
        self,
        *,
        limit: int | None = None,
        path: str | None = None,
        method: str | None = None,
        min_status: int | None = None,
    ) -> list[RequestLogEntry]:
        """Most-recent-first entries matching every given filter."""

        entries = list(reversed(self._entries))
        if path:
            entries = [e for e in entries if path in e.path]
        if method:
            entries = [e for e in entries if e.method == method.upper()]
        if min_status is not None:
            entries = [e for e in entries if e.status >= min_status]
        if limit is not None:
            entries = entries[: max(limit, 0)]
        return entries

    def get_stats(self, *, top_n: int = 10) -> RequestStats:
        now = self._clock()
        entries = list(self._entries)
        total_duration = sum(e.duration_ms for e in entries)
        by_path = Counter(e.path for e in entries)
        return RequestStats(
            total=len(entries),
            last_hour=sum(1 for e in entries if _within(e.timestamp, now, HOUR)),
            last_24h=sum(1 for e in entries if _within(e.timestamp, now, DAY)),
            avg_duration_ms=round(total_duration / len(entries)) if entries else 0,
            by_status=dict(Counter(f"{e.status // 100}xx" for e in entries)),
            by_method=dict(Counter(e.method for e in entries)),
            top_paths=by_path.most_common(top_n),
        )


__all__ = ["DEFAULT_MAX_ENTRIES", "AuditLog", "RequestLog"]
