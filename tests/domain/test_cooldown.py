from __future__ import annotations

from clinfold.domain.cooldown import CooldownTracker
from tests.helpers.clock import ManualClock


def test_unknown_key_is_allowed() -> None:
    tracker = CooldownTracker(clock=ManualClock())

    result = tracker.check("P1:evaluate", 1_000)

    assert result.allowed is True
    assert result.remaining_ms == 0


def test_boundary_right_after_record_and_after_window() -> None:
    clock = ManualClock()
    tracker = CooldownTracker(clock=clock)

    tracker.record("P1:evaluate", 1_000)
    blocked = tracker.check("P1:evaluate", 1_000)

    assert blocked.allowed is False
    assert blocked.remaining_ms == 1_000

    clock.advance(ms=999)
    assert tracker.check("P1:evaluate", 1_000).remaining_ms == 1

    clock.advance(ms=1)
    assert tracker.check("P1:evaluate", 1_000).allowed is True


def test_check_does_not_record() -> None:
    tracker = CooldownTracker(clock=ManualClock())

    tracker.check("k", 500)

    assert "k" not in tracker


def test_record_refreshes_timestamp() -> None:
    clock = ManualClock()
    tracker = CooldownTracker(clock=clock)
    tracker.record("k")
    clock.advance(ms=800)

    tracker.record("k")

    assert tracker.check("k", 1_000).remaining_ms == 1_000


def test_cleanup_evicts_oldest_entries() -> None:
    clock = ManualClock()
    tracker = CooldownTracker(clock=clock)
    for key in ("a", "b", "c", "d"):
        tracker.record(key)
        clock.advance(ms=10)

    removed = tracker.cleanup(2)

    assert removed == 2
    assert "a" not in tracker
    assert "b" not in tracker
    assert "c" in tracker
    assert "d" in tracker


def test_cleanup_drops_elapsed_windows_first() -> None:
    clock = ManualClock()
    tracker = CooldownTracker(clock=clock)
    tracker.record("old-but-active", 60_000)
    clock.advance(ms=10)
    tracker.record("expired", 5)
    clock.advance(ms=10)
    tracker.record("fresh", 60_000)

    tracker.cleanup(2)

    assert "expired" not in tracker
    assert "old-but-active" in tracker
    assert "fresh" in tracker


def test_cleanup_below_bound_keeps_entries() -> None:
    tracker = CooldownTracker(clock=ManualClock())
    tracker.record("a")

    assert tracker.cleanup(10) == 0
    assert len(tracker) == 1


def test_automatic_bound() -> None:
    clock = ManualClock()
    tracker = CooldownTracker(clock=clock, max_entries=3)
    for index in range(5):
        tracker.record(f"k{index}")
        clock.advance(ms=1)

    assert len(tracker) == 3
    assert "k0" not in tracker
    assert "k4" in tracker
