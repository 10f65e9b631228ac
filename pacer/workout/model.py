"""Workout domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union


DurationUnit = Literal["seconds", "minutes"]


@dataclass(frozen=True)
class Duration:
    value: int
    unit: DurationUnit = "seconds"

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("duration value must be non-negative")
        if self.unit not in ("seconds", "minutes"):
            raise ValueError(f"unknown duration unit '{self.unit}'")

    @property
    def total_seconds(self) -> int:
        return self.value * 60 if self.unit == "minutes" else self.value

    def describe(self) -> str:
        if self.unit == "seconds" and self.value >= 60:
            minutes, seconds = divmod(self.value, 60)
            if seconds == 0:
                return f"{minutes} minute{'s' if minutes != 1 else ''}"
            return f"{minutes}:{seconds:02d}"
        unit = self.unit[:-1] if self.value == 1 else self.unit
        return f"{self.value} {unit}"


@dataclass(frozen=True)
class ActivityStep:
    activity: str
    duration: Duration


@dataclass(frozen=True)
class RepeatCountStep:
    count: int
    steps_to_repeat: tuple[ActivityStep, ...] = ()

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError("repeat count must be >= 1")


@dataclass(frozen=True)
class RepeatDurationStep:
    duration: Duration
    steps_to_repeat: tuple[ActivityStep, ...] = ()


RawStep = Union[ActivityStep, RepeatCountStep, RepeatDurationStep]


@dataclass(frozen=True)
class ConcreteStep:
    activity: str
    duration: Duration

    @property
    def duration_sec(self) -> int:
        return self.duration.total_seconds

    @classmethod
    def from_activity(cls, step: ActivityStep) -> ConcreteStep:
        return cls(activity=step.activity, duration=step.duration)


@dataclass(frozen=True)
class WorkoutPlan:
    name: str
    instructions: str
    raw_steps: tuple[RawStep, ...] = field(default=())
    steps: tuple[ConcreteStep, ...] = field(default=())

    @property
    def total_duration_sec(self) -> int:
        return sum(step.duration_sec for step in self.steps)


def describe_raw_step(step: RawStep) -> str:
    if isinstance(step, ActivityStep):
        return f"{step.activity} for {step.duration.describe()}"
    block = len(step.steps_to_repeat)
    noun = "step" if block == 1 else "steps"
    if isinstance(step, RepeatCountStep):
        return f"Repeat previous {block} {noun} {step.count} times"
    return f"Repeat previous {block} {noun} for {step.duration.describe()}"
