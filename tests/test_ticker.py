from __future__ import annotations

import asyncio

import pytest

from pacer.core.scheduler import IntervalScheduler
from pacer.core.state import SchedulerEvent
from pacer.core.ticker import AsyncioTicker
from pacer.workout.model import ConcreteStep, Duration


def test_ticker_fires_until_cancelled() -> None:
    async def _run() -> None:
        ticker = AsyncioTicker()
        fired: list[int] = []
        ticker.start(0.02, lambda: fired.append(1))
        assert ticker.active

        await asyncio.sleep(0.13)
        ticker.cancel()
        count = len(fired)
        assert count >= 3
        assert not ticker.active

        await asyncio.sleep(0.08)
        assert len(fired) == count

    asyncio.run(_run())


def test_cancel_from_inside_callback_stops_ticks() -> None:
    async def _run() -> None:
        ticker = AsyncioTicker()
        fired: list[int] = []

        def on_tick() -> None:
            fired.append(1)
            ticker.cancel()

        ticker.start(0.01, on_tick)
        await asyncio.sleep(0.08)
        assert fired == [1]

    asyncio.run(_run())


def test_ticker_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        AsyncioTicker().start(0, lambda: None)


def test_scheduler_runs_to_completion_on_asyncio_ticker() -> None:
    async def _run() -> None:
        done = asyncio.Event()
        events: list[SchedulerEvent] = []

        def on_event(event: SchedulerEvent) -> None:
            events.append(event)
            if event.kind == "workout_completed":
                done.set()

        scheduler = IntervalScheduler(timer_factory=AsyncioTicker, tick_interval_sec=0.05)
        scheduler.add_listener(on_event)
        scheduler.set_steps(
            [
                ConcreteStep("Jog", Duration(0, "seconds")),
                ConcreteStep("Walk", Duration(0, "seconds")),
            ]
        )
        assert scheduler.start()
        await asyncio.wait_for(done.wait(), timeout=2.0)

        started = [e.step_index for e in events if e.kind == "step_started"]
        assert started == [0, 1]
        assert scheduler.phase == "idle"

    asyncio.run(_run())
