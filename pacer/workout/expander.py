"""Flatten raw steps into the concrete step sequence a run executes."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from pacer.workout.model import (
    ActivityStep,
    ConcreteStep,
    Duration,
    RawStep,
    RepeatCountStep,
    RepeatDurationStep,
    WorkoutPlan,
)
from pacer.workout.parser import parse_instructions

logger = logging.getLogger(__name__)


def expand_steps(raw_steps: Iterable[RawStep]) -> list[ConcreteStep]:
    """Resolve repeat directives against the blocks they carry.

    A repeat directive runs its block ``count`` times in total (or enough
    times to cover its duration, rounding up). When the block is exactly the
    run of activity steps emitted just before the directive, that first pass
    is already in the output and counts toward the total.
    """
    out: list[ConcreteStep] = []
    pending: list[ActivityStep] = []

    for step in raw_steps:
        if isinstance(step, ActivityStep):
            out.append(ConcreteStep.from_activity(step))
            pending.append(step)
            continue

        block = tuple(step.steps_to_repeat)
        if isinstance(step, RepeatCountStep):
            passes = step.count
        elif isinstance(step, RepeatDurationStep):
            passes = repeat_passes_for_duration(step.duration, block)
        else:
            logger.debug("ignoring unknown raw step %r", step)
            continue

        already_emitted = 1 if block and tuple(pending) == block else 0
        concrete = [ConcreteStep.from_activity(item) for item in block]
        for _ in range(max(0, passes - already_emitted)):
            out.extend(concrete)
        pending = []

    return out


def repeat_passes_for_duration(
    duration: Duration, block: Sequence[ActivityStep]
) -> int:
    if not block:
        logger.debug("repeat-for %s has an empty block", duration.describe())
        return 0
    block_sec = sum(item.duration.total_seconds for item in block)
    if block_sec == 0:
        logger.debug("repeat-for %s has a zero-second block", duration.describe())
        return 0
    target_sec = duration.total_seconds
    # Round up so the block is never cut short; the run may overshoot.
    return (target_sec + block_sec - 1) // block_sec


def build_plan(text: str, name: str | None = None) -> WorkoutPlan:
    raw_steps = parse_instructions(text)
    steps = expand_steps(raw_steps)
    return WorkoutPlan(
        name=name or _default_plan_name(text),
        instructions=text,
        raw_steps=tuple(raw_steps),
        steps=tuple(steps),
    )


def _default_plan_name(text: str) -> str:
    lines = (text or "").strip().splitlines()
    first_line = lines[0].strip() if lines else ""
    if len(first_line) > 40:
        return first_line[:37].rstrip() + "..."
    return first_line or "Interval workout"
