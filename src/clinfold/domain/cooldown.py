"""Per-key minimum-interval rate limiting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from clinfold.domain.clock import elapsed_ms, utcnow
from clinfold.domain.model.records import CooldownResult

if TYPE_CHECKING:
    from datetime import datetime

    from clinfold.domain.clock import Clock


@dataclass(slots=True)
class _CooldownEntry:
    recorded_at: datetime
    cooldown_ms: int | None


class CooldownTracker:
    """Remember when each key last acted.

    ``check`` followed by ``record`` is not atomic; callers sharing a key may
    both pass the check before either records.
    """

    def __init__(self, *, clock: Clock = utcnow, max_entries: int | None = None) -> None:
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, _CooldownEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def check(self, key: str, cooldown_ms: int) -> CooldownResult:
        entry = self._entries.get(key)
        if entry is None:
            return CooldownResult(allowed=True, remaining_ms=0)
        elapsed = elapsed_ms(entry.recorded_at, self._clock())
        if elapsed >= cooldown_ms:
            return CooldownResult(allowed=True, remaining_ms=0)
        return CooldownResult(allowed=False, remaining_ms=cooldown_ms - elapsed)

    def record(self, key: str, cooldown_ms: int | None = None) -> None:
        # Re-insert so dict order tracks recency for eviction.
        self._entries.pop(key, None)
        self._entries[key] = _CooldownEntry(self._clock(), cooldown_ms)
        if self._max_entries is not None and len(self._entries) > self._max_entries:
            self.cleanup(self._max_entries)

    def cleanup(self, max_entries: int) -> int:
        """Drop elapsed windows, then evict the oldest entries above ``max_entries``.

        Returns the number of removed entries.
        """

        now = self._clock()
        before = len(self._entries)
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.cooldown_ms is not None
            and elapsed_ms(entry.recorded_at, now) >= entry.cooldown_ms
        ]
        for key in expired:
            del self._entries[key]
        if len(self._entries) > max_entries:
            by_age = sorted(self._entries.items(), key=lambda item: item[1].recorded_at)
            for key, _ in by_age[: len(self._entries) - max(max_entries, 0)]:
                del self._entries[key]
        return before - len(self._entries)


__all__ = ["CooldownTracker"]
