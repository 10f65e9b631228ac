from __future__ import annotations

import pytest

from pacer.core.state import SchedulerEvent
from pacer.tracking.distance import (
    DistanceTracker,
    format_pace,
    haversine_km,
    pace_min_per_km,
)


def test_haversine_one_degree_of_latitude() -> None:
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.195, abs=0.01)
    assert haversine_km(48.85, 2.35, 48.85, 2.35) == 0.0


def test_positions_ignored_until_workout_starts() -> None:
    tracker = DistanceTracker()

    assert tracker.add_position(48.0, 2.0, 0.0) is False

    tracker.handle_event(SchedulerEvent("workout_started"))
    assert tracker.is_tracking
    assert tracker.add_position(48.0, 2.0, 0.0) is True


def test_jitter_and_rate_limit_filters() -> None:
    tracker = DistanceTracker()
    tracker.start()
    tracker.add_position(48.0, 2.0, 0.0)

    # Less than one second later.
    assert tracker.add_position(48.001, 2.0, 0.5) is False
    # Under one metre of movement.
    assert tracker.add_position(48.000005, 2.0, 2.0) is False
    assert tracker.add_position(48.001, 2.0, 3.0) is True
    assert len(tracker.samples) == 2


def test_distance_split_by_step() -> None:
    tracker = DistanceTracker()
    tracker.handle_event(SchedulerEvent("workout_started"))
    tracker.handle_event(SchedulerEvent("step_started", step_index=0))
    tracker.add_position(48.000, 2.0, 0.0)
    tracker.add_position(48.001, 2.0, 2.0)
    tracker.handle_event(SchedulerEvent("step_started", step_index=1))
    tracker.add_position(48.002, 2.0, 4.0)
    tracker.add_position(48.003, 2.0, 6.0)
    tracker.handle_event(SchedulerEvent("workout_completed"))

    assert tracker.add_position(48.004, 2.0, 8.0) is False
    per_step = tracker.step_distances_km()
    assert set(per_step) == {0, 1}
    assert per_step[0] == pytest.approx(0.1112, abs=0.001)
    assert per_step[1] == pytest.approx(0.1112, abs=0.001)
    # The hop between steps counts toward the total only.
    assert tracker.total_distance_km == pytest.approx(0.3336, abs=0.001)


def test_pace_helpers() -> None:
    assert pace_min_per_km(300, 1.0) == pytest.approx(5.0)
    assert pace_min_per_km(300, 0.0) is None
    assert format_pace(5.5) == "5:30 /km"
    assert format_pace(None) == "--:-- /km"
