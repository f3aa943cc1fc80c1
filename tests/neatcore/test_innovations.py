from __future__ import annotations

import pytest
from neatcore.innovations import InnovationSnapshot, InnovationTracker


def test_allocate_hands_out_increasing_ids() -> None:
    tracker = InnovationTracker(next_innovation=3)

    assert [tracker.allocate() for _ in range(3)] == [3, 4, 5]
    assert tracker.next_innovation == 6


def test_observe_only_moves_forward() -> None:
    tracker = InnovationTracker(next_innovation=5)

    tracker.observe(2)
    assert tracker.next_innovation == 5

    tracker.observe(9)
    assert tracker.next_innovation == 10

    with pytest.raises(ValueError):
        tracker.observe(-1)


def test_snapshot_round_trip() -> None:
    tracker = InnovationTracker()
    tracker.allocate()
    tracker.allocate()

    snapshot = tracker.to_snapshot()
    restored = InnovationTracker.from_snapshot(snapshot)

    assert snapshot == InnovationSnapshot(next_innovation=2)
    assert restored.allocate() == 2


def test_from_snapshot_accepts_mappings() -> None:
    restored = InnovationTracker.from_snapshot({"next_innovation": "7"})

    assert restored.next_innovation == 7

    with pytest.raises(ValueError, match="missing required key"):
        InnovationTracker.from_snapshot({})


@pytest.mark.parametrize("value", [True, -1, "many", object()])
def test_tracker_rejects_invalid_counters(value: object) -> None:
    with pytest.raises(ValueError):
        InnovationTracker(next_innovation=value)  # type: ignore[arg-type]
