"""Terminal CLI entrypoint for Pacer."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from pathlib import Path

from pacer.core.state import SchedulerEvent
from pacer.core.ticker import AsyncioTicker
from pacer.tracking.distance import format_pace, pace_min_per_km
from pacer.ui.controller import WorkoutController
from pacer.workout.expander import build_plan
from pacer.workout.model import WorkoutPlan, describe_raw_step
from pacer.workout.run_store import RunRecord, delete_run, get_run, load_runs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pacer interval workout timer")
    parser.add_argument(
        "--plan",
        metavar="TEXT",
        default=None,
        help="Parse workout instructions and print the resulting steps",
    )
    parser.add_argument(
        "--run",
        metavar="TEXT",
        default=None,
        help="Parse workout instructions and run them in the terminal",
    )
    parser.add_argument("--history", action="store_true", help="List recent runs")
    parser.add_argument("--show-run", metavar="RUN_ID", default=None, help="Show one run")
    parser.add_argument("--delete-run", metavar="RUN_ID", default=None, help="Delete one run")
    parser.add_argument(
        "--runs-file",
        type=Path,
        default=None,
        help="Run history file (default: ~/.pacer/runs.jsonl)",
    )
    parser.add_argument(
        "--tick",
        type=float,
        default=1.0,
        help="Seconds between countdown evaluations during --run",
    )
    parser.add_argument(
        "--ui-web",
        action="store_true",
        help="Launch web UI (NiceGUI)",
    )
    parser.add_argument(
        "--web-host",
        default="127.0.0.1",
        help="Host bind for --ui-web",
    )
    parser.add_argument(
        "--web-port",
        type=int,
        default=8090,
        help="Port for --ui-web",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def format_clock(total_seconds: int) -> str:
    minutes, seconds = divmod(max(0, total_seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def print_plan(plan: WorkoutPlan) -> None:
    if not plan.raw_steps:
        print("No workout steps recognized")
        return
    print("Workout plan:")
    for raw in plan.raw_steps:
        print(f"  - {describe_raw_step(raw)}")
    print(f"Expanded to {len(plan.steps)} steps, total {format_clock(plan.total_duration_sec)}:")
    for index, step in enumerate(plan.steps, start=1):
        print(f"  {index:>3}. {step.activity:<16} {step.duration.describe()}")


def print_run(record: RunRecord) -> None:
    status = "completed" if record.completed else "stopped"
    print(f"Run {record.run_id} ({status})")
    print(f"  Workout:  {record.workout_name}")
    print(f"  Started:  {record.started_at_utc}")
    print(f"  Ended:    {record.ended_at_utc}")
    print(
        f"  Duration: {format_clock(record.elapsed_duration_sec)}"
        f" of {format_clock(record.planned_duration_sec)}"
    )
    print(f"  Steps:    {record.steps_completed}/{record.step_total}")
    print(f"  Distance: {record.distance_km:.2f} km")
    print(f"  Pace:     {format_pace(pace_min_per_km(record.elapsed_duration_sec, record.distance_km))}")
    for index, km in sorted(record.step_distances_km.items()):
        print(f"    Step {index + 1}: {km:.3f} km")


def run_history(runs_file: Path | None) -> int:
    runs = load_runs(limit=20, path=runs_file)
    if not runs:
        print("No runs recorded")
        return 0
    for record in runs:
        flag = "done" if record.completed else "stop"
        print(
            f"{record.run_id}  {record.started_at_utc[:19]}  [{flag}]"
            f"  {format_clock(record.elapsed_duration_sec):>8}"
            f"  {record.distance_km:6.2f} km  {record.workout_name}"
        )
    return 0


async def run_workout(text: str, runs_file: Path | None, tick_sec: float) -> int:
    controller = WorkoutController(
        timer_factory=AsyncioTicker,
        tick_interval_sec=tick_sec,
        runs_path=runs_file,
    )
    plan = controller.load_instructions(text)
    if plan is None or not plan.steps:
        print("No workout steps recognized")
        return 1
    print_plan(plan)

    finished = asyncio.Event()
    last_remaining: int | None = None

    def on_event(event: SchedulerEvent) -> None:
        nonlocal last_remaining
        if event.kind == "step_started" and event.step_index is not None:
            step = plan.steps[event.step_index]
            print(
                f"\n[{event.step_index + 1}/{len(plan.steps)}] "
                f"{step.activity} for {step.duration.describe()}"
            )
        elif event.kind == "tick" and event.remaining_sec != last_remaining:
            last_remaining = event.remaining_sec
            print(f"  {format_clock(event.remaining_sec or 0)}", end="\r", flush=True)
        elif event.kind == "workout_paused":
            print("\nPaused")
        elif event.kind == "workout_resumed":
            print("Resumed")
        elif event.kind == "workout_completed":
            print("\nWorkout complete! Great job!")
            finished.set()
        elif event.kind == "workout_stopped":
            print("\nWorkout stopped")
            finished.set()

    controller.add_listener(on_event)
    controller.on_finish(lambda record: print(f"Saved run {record.run_id}"))

    loop = asyncio.get_running_loop()
    sigcont = getattr(signal, "SIGCONT", None)
    if sigcont is not None:
        # Resumed after Ctrl-Z / SIGSTOP: surface the wall-clock-correct state now.
        loop.add_signal_handler(sigcont, controller.on_visibility_restored)

    controller.start()
    try:
        await finished.wait()
    except asyncio.CancelledError:
        controller.stop()
        raise
    finally:
        if sigcont is not None:
            loop.remove_signal_handler(sigcont)
        controller.dispose()
    return 0


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.ui_web:
        from pacer.ui.web_app import run_web_ui

        return run_web_ui(host=args.web_host, port=args.web_port, runs_file=args.runs_file)

    if args.plan is not None:
        print_plan(build_plan(args.plan))
        return 0

    if args.history:
        return run_history(args.runs_file)

    if args.show_run is not None:
        record = get_run(args.show_run, path=args.runs_file)
        if record is None:
            print(f"Run {args.show_run} not found")
            return 2
        print_run(record)
        return 0

    if args.delete_run is not None:
        if not delete_run(args.delete_run, path=args.runs_file):
            print(f"Run {args.delete_run} not found")
            return 2
        print(f"Deleted run {args.delete_run}")
        return 0

    if args.run is not None:
        try:
            return asyncio.run(run_workout(args.run, args.runs_file, max(0.1, args.tick)))
        except KeyboardInterrupt:
            return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
