"""Shared runtime state types for the interval scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Protocol


SchedulerPhase = Literal["idle", "running", "paused"]

EventKind = Literal[
    "workout_started",
    "step_started",
    "workout_paused",
    "workout_resumed",
    "tick",
    "workout_completed",
    "workout_stopped",
]


@dataclass(frozen=True)
class SchedulerEvent:
    kind: EventKind
    step_index: int | None = None
    remaining_sec: int | None = None


@dataclass(frozen=True)
class SchedulerProgress:
    phase: SchedulerPhase
    step_index: int
    step_total: int
    activity: str
    step_duration_sec: int
    remaining_sec: int
    step_elapsed_sec: int
    elapsed_total_sec: int
    total_duration_sec: int
    total_remaining_sec: int


EventListener = Callable[[SchedulerEvent], None]


class PeriodicTimer(Protocol):
    def start(self, interval_sec: float, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...
