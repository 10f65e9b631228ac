"""Deadline-based interval scheduler.

Walks a list of concrete steps through real time. Remaining time is always
computed as ``deadline - now`` so a suspended process is correct again on the
first evaluation after it wakes up. Operations that do not apply to the
current phase are no-ops; they never raise.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Sequence

from pacer.core.state import (
    EventListener,
    PeriodicTimer,
    SchedulerEvent,
    SchedulerPhase,
    SchedulerProgress,
)
from pacer.workout.model import ConcreteStep

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
TimerFactory = Callable[[], PeriodicTimer]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class IntervalScheduler:
    def __init__(
        self,
        clock: Clock = time.time,
        timer_factory: TimerFactory | None = None,
        tick_interval_sec: float = 1.0,
    ) -> None:
        self._clock = clock
        self._timer_factory = timer_factory
        self._tick_interval_sec = tick_interval_sec
        self._timer: PeriodicTimer | None = None
        self._timer_generation = 0
        self._lock = threading.RLock()
        self._listeners: list[EventListener] = []

        self._steps: tuple[ConcreteStep, ...] = ()
        self._phase: SchedulerPhase = "idle"
        self._current_step_index = -1
        self._step_deadline: float | None = None
        self._remaining_sec = 0
        self._completed_sec = 0

    @property
    def steps(self) -> tuple[ConcreteStep, ...]:
        return self._steps

    @property
    def phase(self) -> SchedulerPhase:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._phase == "running"

    @property
    def is_paused(self) -> bool:
        return self._phase == "paused"

    @property
    def current_step_index(self) -> int:
        return self._current_step_index

    @property
    def step_deadline(self) -> float | None:
        return self._step_deadline

    @property
    def remaining_sec(self) -> int:
        return self._remaining_sec

    def add_listener(self, listener: EventListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def set_steps(self, steps: Sequence[ConcreteStep]) -> bool:
        with self._lock:
            if self._phase != "idle":
                logger.debug("set_steps ignored while %s", self._phase)
                return False
            self._steps = tuple(steps)
            self._current_step_index = -1
            self._step_deadline = None
            self._remaining_sec = 0
            self._completed_sec = 0
            return True

    def start(self) -> bool:
        events: list[SchedulerEvent] = []
        with self._lock:
            if self._phase != "idle":
                logger.debug("start ignored while %s", self._phase)
                return False
            if not self._steps:
                logger.debug("start ignored: no steps")
                return False
            if not self._start_timer():
                return False
            self._phase = "running"
            self._completed_sec = 0
            events.append(SchedulerEvent("workout_started"))
            self._begin_step(0, events)
        self._dispatch(events)
        return True

    def tick(self) -> int | None:
        """Re-evaluate the current step against the clock.

        Returns the remaining seconds of the step that is current after the
        evaluation, or ``None`` when the scheduler is not running.
        """
        events: list[SchedulerEvent] = []
        with self._lock:
            remaining = self._evaluate(events)
        self._dispatch(events)
        return remaining

    def pause(self) -> bool:
        events: list[SchedulerEvent] = []
        with self._lock:
            if self._phase != "running":
                logger.debug("pause ignored while %s", self._phase)
                return False
            self._cancel_timer()
            assert self._step_deadline is not None
            self._remaining_sec = max(
                0, _round_half_up(self._step_deadline - self._clock())
            )
            self._phase = "paused"
            events.append(
                SchedulerEvent(
                    "workout_paused",
                    step_index=self._current_step_index,
                    remaining_sec=self._remaining_sec,
                )
            )
        self._dispatch(events)
        return True

    def resume(self) -> bool:
        events: list[SchedulerEvent] = []
        with self._lock:
            if self._phase != "paused":
                logger.debug("resume ignored while %s", self._phase)
                return False
            if not self._start_timer():
                return False
            self._step_deadline = self._clock() + self._remaining_sec
            self._phase = "running"
            events.append(
                SchedulerEvent(
                    "workout_resumed",
                    step_index=self._current_step_index,
                    remaining_sec=self._remaining_sec,
                )
            )
        self._dispatch(events)
        return True

    def stop(self) -> bool:
        events: list[SchedulerEvent] = []
        with self._lock:
            if self._phase == "idle":
                return False
            self._cancel_timer()
            self._reset_to_idle()
            events.append(SchedulerEvent("workout_stopped"))
        self._dispatch(events)
        return True

    def on_resume_from_background(self) -> int | None:
        return self.tick()

    def dispose(self) -> None:
        self.stop()
        with self._lock:
            self._cancel_timer()
            self._listeners.clear()

    def progress(self) -> SchedulerProgress | None:
        with self._lock:
            if self._phase == "idle" or not 0 <= self._current_step_index < len(self._steps):
                return None
            step = self._steps[self._current_step_index]
            if self._phase == "running":
                assert self._step_deadline is not None
                remaining = max(0, _round_half_up(self._step_deadline - self._clock()))
            else:
                remaining = self._remaining_sec
            remaining = min(remaining, step.duration_sec)
            total = sum(item.duration_sec for item in self._steps)
            step_elapsed = step.duration_sec - remaining
            elapsed_total = self._completed_sec + step_elapsed
            return SchedulerProgress(
                phase=self._phase,
                step_index=self._current_step_index,
                step_total=len(self._steps),
                activity=step.activity,
                step_duration_sec=step.duration_sec,
                remaining_sec=remaining,
                step_elapsed_sec=step_elapsed,
                elapsed_total_sec=elapsed_total,
                total_duration_sec=total,
                total_remaining_sec=max(0, total - elapsed_total),
            )

    def _evaluate(self, events: list[SchedulerEvent]) -> int | None:
        if self._phase != "running":
            return None
        assert self._step_deadline is not None
        now = self._clock()
        remaining = max(0, _round_half_up(self._step_deadline - now))
        self._remaining_sec = remaining
        events.append(
            SchedulerEvent(
                "tick",
                step_index=self._current_step_index,
                remaining_sec=remaining,
            )
        )
        if remaining > 0:
            return remaining

        self._completed_sec += self._steps[self._current_step_index].duration_sec
        next_index = self._current_step_index + 1
        if next_index < len(self._steps):
            self._begin_step(next_index, events)
            return self._remaining_sec

        self._cancel_timer()
        self._reset_to_idle()
        events.append(SchedulerEvent("workout_completed"))
        return 0

    def _begin_step(self, index: int, events: list[SchedulerEvent]) -> None:
        step = self._steps[index]
        self._current_step_index = index
        self._remaining_sec = step.duration_sec
        self._step_deadline = self._clock() + step.duration_sec
        events.append(SchedulerEvent("step_started", step_index=index))

    def _reset_to_idle(self) -> None:
        self._phase = "idle"
        self._current_step_index = -1
        self._step_deadline = None
        self._remaining_sec = 0

    def _start_timer(self) -> bool:
        # Called before any state is committed; a failure leaves the phase untouched.
        if self._timer_factory is None:
            return True
        self._cancel_timer()
        generation = self._timer_generation
        try:
            timer = self._timer_factory()
            timer.start(self._tick_interval_sec, lambda: self._on_timer(generation))
        except Exception:
            logger.exception("could not start the periodic timer")
            return False
        self._timer = timer
        return True

    def _cancel_timer(self) -> None:
        # Any callback captured with an older generation is ignored.
        self._timer_generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        events: list[SchedulerEvent] = []
        with self._lock:
            if generation != self._timer_generation:
                return
            self._evaluate(events)
        self._dispatch(events)

    def _dispatch(self, events: list[SchedulerEvent]) -> None:
        if not events:
            return
        with self._lock:
            listeners = list(self._listeners)
        for event in events:
            for listener in listeners:
                try:
                    listener(event)
                except Exception:
                    logger.exception("listener failed on %s", event.kind)
