"""Session controller shared by the terminal and web front ends."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from pacer.core.scheduler import Clock, IntervalScheduler, TimerFactory
from pacer.core.state import EventListener, SchedulerEvent, SchedulerProgress
from pacer.tracking.distance import DistanceTracker
from pacer.workout.expander import build_plan
from pacer.workout.model import WorkoutPlan
from pacer.workout.run_store import RunRecord, new_run_id, now_utc_iso, save_run

logger = logging.getLogger(__name__)


class WorkoutController:
    def __init__(
        self,
        *,
        clock: Clock = time.time,
        timer_factory: TimerFactory | None = None,
        tick_interval_sec: float = 1.0,
        runs_path: Path | None = None,
        save_runs: bool = True,
    ) -> None:
        self._clock = clock
        self._scheduler = IntervalScheduler(
            clock=clock,
            timer_factory=timer_factory,
            tick_interval_sec=tick_interval_sec,
        )
        self._tracker = DistanceTracker()
        self._runs_path = runs_path
        self._save_runs = save_runs
        self._plan: WorkoutPlan | None = None
        self._run_id: str | None = None
        self._started_at_utc: str | None = None
        self._started_at: float | None = None
        self._highest_step_index = -1
        self._last_record: RunRecord | None = None
        self._finish_callbacks: list[Callable[[RunRecord], None]] = []

        self._scheduler.add_listener(self._tracker.handle_event)
        self._scheduler.add_listener(self._on_event)

    @property
    def plan(self) -> WorkoutPlan | None:
        return self._plan

    @property
    def scheduler(self) -> IntervalScheduler:
        return self._scheduler

    @property
    def tracker(self) -> DistanceTracker:
        return self._tracker

    @property
    def last_record(self) -> RunRecord | None:
        return self._last_record

    @property
    def workout_running(self) -> bool:
        return self._scheduler.phase != "idle"

    def add_listener(self, listener: EventListener) -> Callable[[], None]:
        return self._scheduler.add_listener(listener)

    def on_finish(self, callback: Callable[[RunRecord], None]) -> None:
        self._finish_callbacks.append(callback)

    def load_instructions(self, text: str, name: str | None = None) -> WorkoutPlan | None:
        """Parse and expand ``text``; returns ``None`` while a run is active."""
        if self.workout_running:
            logger.debug("cannot load instructions during a run")
            return None
        plan = build_plan(text, name=name)
        self._scheduler.set_steps(plan.steps)
        self._plan = plan
        return plan

    def start(self) -> bool:
        if self._plan is None:
            return False
        return self._scheduler.start()

    def pause(self) -> bool:
        return self._scheduler.pause()

    def resume(self) -> bool:
        return self._scheduler.resume()

    def toggle_pause(self) -> bool:
        if self._scheduler.is_paused:
            return self._scheduler.resume()
        return self._scheduler.pause()

    def stop(self) -> bool:
        return self._scheduler.stop()

    def on_visibility_restored(self) -> int | None:
        return self._scheduler.on_resume_from_background()

    def add_position(
        self,
        latitude: float,
        longitude: float,
        timestamp: float | None = None,
        accuracy_m: float | None = None,
    ) -> bool:
        return self._tracker.add_position(
            latitude,
            longitude,
            self._clock() if timestamp is None else timestamp,
            accuracy_m=accuracy_m,
        )

    def progress(self) -> SchedulerProgress | None:
        return self._scheduler.progress()

    def dispose(self) -> None:
        self._scheduler.dispose()
        self._finish_callbacks.clear()

    def _on_event(self, event: SchedulerEvent) -> None:
        if event.kind == "workout_started":
            self._run_id = new_run_id()
            self._started_at_utc = now_utc_iso()
            self._started_at = self._clock()
            self._highest_step_index = -1
        elif event.kind == "step_started" and event.step_index is not None:
            self._highest_step_index = max(self._highest_step_index, event.step_index)
        elif event.kind in ("workout_completed", "workout_stopped"):
            self._finish(completed=event.kind == "workout_completed")

    def _finish(self, *, completed: bool) -> None:
        if self._plan is None or self._run_id is None:
            return
        step_total = len(self._plan.steps)
        steps_completed = step_total if completed else max(0, self._highest_step_index)
        elapsed = 0 if self._started_at is None else self._clock() - self._started_at
        record = RunRecord(
            run_id=self._run_id,
            started_at_utc=self._started_at_utc or now_utc_iso(),
            ended_at_utc=now_utc_iso(),
            workout_name=self._plan.name,
            instructions=self._plan.instructions,
            completed=completed,
            planned_duration_sec=self._plan.total_duration_sec,
            elapsed_duration_sec=max(0, int(round(elapsed))),
            steps_completed=steps_completed,
            step_total=step_total,
            distance_km=round(self._tracker.total_distance_km, 3),
            step_distances_km={
                index: round(km, 3) for index, km in self._tracker.step_distances_km().items()
            },
        )
        self._run_id = None
        self._last_record = record
        if self._save_runs:
            save_run(record, path=self._runs_path)
        for callback in list(self._finish_callbacks):
            callback(record)
