from __future__ import annotations

from pathlib import Path

import pytest

from pacer.workout.run_store import (
    RunRecord,
    RunStoreError,
    delete_run,
    get_run,
    load_runs,
    new_run_id,
    save_run,
)


def _record(run_id: str, started: str, completed: bool = True) -> RunRecord:
    return RunRecord(
        run_id=run_id,
        started_at_utc=started,
        ended_at_utc=started,
        workout_name="Jog for 60s, walk for 90s",
        instructions="Jog for 60s, walk for 90s, repeat 4 times",
        completed=completed,
        planned_duration_sec=600,
        elapsed_duration_sec=600 if completed else 240,
        steps_completed=8 if completed else 3,
        step_total=8,
        distance_km=1.4,
        step_distances_km={0: 0.2, 1: 0.15},
    )


def test_save_and_load_runs_most_recent_first(tmp_path: Path) -> None:
    store = tmp_path / "runs.jsonl"
    save_run(_record("a", "2026-02-25T10:00:00+00:00"), path=store)
    save_run(_record("b", "2026-02-26T10:00:00+00:00", completed=False), path=store)

    loaded = load_runs(path=store)

    assert [r.run_id for r in loaded] == ["b", "a"]
    assert loaded[1].step_distances_km == {0: 0.2, 1: 0.15}
    assert load_runs(limit=1, path=store)[0].run_id == "b"


def test_get_and_delete_run(tmp_path: Path) -> None:
    store = tmp_path / "runs.jsonl"
    save_run(_record("a", "2026-02-25T10:00:00+00:00"), path=store)
    save_run(_record("b", "2026-02-26T10:00:00+00:00"), path=store)

    assert get_run("a", path=store) == _record("a", "2026-02-25T10:00:00+00:00")
    assert get_run("missing", path=store) is None

    assert delete_run("a", path=store) is True
    assert delete_run("a", path=store) is False
    assert [r.run_id for r in load_runs(path=store)] == ["b"]


def test_saving_same_id_replaces_record(tmp_path: Path) -> None:
    store = tmp_path / "runs.jsonl"
    save_run(_record("a", "2026-02-25T10:00:00+00:00", completed=False), path=store)
    save_run(_record("a", "2026-02-25T10:00:00+00:00", completed=True), path=store)

    loaded = load_runs(path=store)

    assert len(loaded) == 1
    assert loaded[0].completed is True


def test_corrupt_lines_are_skipped(tmp_path: Path) -> None:
    store = tmp_path / "runs.jsonl"
    save_run(_record("a", "2026-02-25T10:00:00+00:00"), path=store)
    with store.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n")
        handle.write('{"run_id": "x"}\n')

    assert [r.run_id for r in load_runs(path=store)] == ["a"]


def test_missing_store_and_missing_id(tmp_path: Path) -> None:
    store = tmp_path / "nothing" / "runs.jsonl"

    assert load_runs(path=store) == []
    assert delete_run("a", path=store) is False
    with pytest.raises(RunStoreError):
        save_run(_record("", "2026-02-25T10:00:00+00:00"), path=store)
    assert new_run_id() != new_run_id()
