"""NiceGUI web UI for Pacer."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nicegui import ui

from pacer.core.state import SchedulerEvent
from pacer.core.ticker import AsyncioTicker
from pacer.tracking.distance import format_pace, pace_min_per_km
from pacer.ui.controller import WorkoutController
from pacer.workout.model import describe_raw_step
from pacer.workout.run_store import RunRecord, delete_run, load_runs

REFRESH_SEC = 0.5
HISTORY_LIMIT = 10

# Browser hooks: report tab visibility and geolocation back to the server.
_BROWSER_HOOKS = """
<script>
  document.addEventListener('visibilitychange', () => {
    if (!document.hidden) { emitEvent('pacer_visible'); }
  });
  window.pacerWatchId = null;
  window.pacerStartGeo = () => {
    if (!('geolocation' in navigator) || window.pacerWatchId !== null) { return; }
    window.pacerWatchId = navigator.geolocation.watchPosition(
      (pos) => emitEvent('pacer_position', {
        latitude: pos.coords.latitude,
        longitude: pos.coords.longitude,
        accuracy: pos.coords.accuracy,
      }),
      (err) => console.warn('geolocation error', err),
      {enableHighAccuracy: true, maximumAge: 0, timeout: 10000},
    );
  };
  window.pacerStopGeo = () => {
    if (window.pacerWatchId !== null) {
      navigator.geolocation.clearWatch(window.pacerWatchId);
      window.pacerWatchId = null;
    }
  };
</script>
"""


@dataclass
class WebState:
    status: str = "Enter workout instructions"
    last_step_index: int | None = None
    pending_notices: list[str] = field(default_factory=list)
    pending_scripts: list[str] = field(default_factory=list)


def _fmt_duration(total_seconds: int) -> str:
    minutes, seconds = divmod(max(0, total_seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def _fmt_run(record: RunRecord) -> str:
    flag = "Completed" if record.completed else "Stopped"
    pace = format_pace(pace_min_per_km(record.elapsed_duration_sec, record.distance_km))
    return (
        f"{record.started_at_utc[:16].replace('T', ' ')} | {flag} | "
        f"{_fmt_duration(record.elapsed_duration_sec)} | {record.distance_km:.2f} km | {pace}"
    )


def run_web_ui(
    *,
    host: str = "127.0.0.1",
    port: int = 8090,
    runs_file: Path | None = None,
) -> int:
    controller = WorkoutController(timer_factory=AsyncioTicker, runs_path=runs_file)
    state = WebState()
    ui.add_head_html(_BROWSER_HOOKS)

    with ui.card().classes("w-full"):
        ui.label("PACER").classes("text-xl font-semibold tracking-wide")
        with ui.row().classes("w-full items-end"):
            instructions_input = ui.input(
                "Workout instructions",
                placeholder="Jog for 60s, walk for 90s, repeat for 20 minutes",
            ).classes("grow")
            parse_btn = ui.button("Parse Instructions")
        plan_column = ui.column().classes("w-full gap-1")

    with ui.card().classes("w-full items-center"):
        activity_label = ui.label("Ready to start").classes("text-2xl")
        timer_label = ui.label("00:00").classes("text-5xl font-bold")
        step_progress = ui.linear_progress(value=0.0, show_value=False).classes("w-full")
        step_info = ui.label("Step: -").classes("text-sm")
        total_info = ui.label("Total: -").classes("text-sm")
        distance_info = ui.label("Distance: 0.00 km").classes("text-sm")
        status_label = ui.label(state.status).classes("text-sm text-slate-500")
        with ui.row():
            start_btn = ui.button("Start Workout").props("color=primary")
            pause_btn = ui.button("Pause")
            stop_btn = ui.button("Stop").props("color=negative")

    with ui.card().classes("w-full"):
        ui.label("Recent runs").classes("text-base font-medium")
        history_column = ui.column().classes("w-full gap-1")

    def refresh_plan() -> None:
        plan_column.clear()
        plan = controller.plan
        with plan_column:
            if plan is None or not plan.raw_steps:
                ui.label("No workout steps recognized").classes("text-sm")
                return
            for raw in plan.raw_steps:
                ui.label(describe_raw_step(raw)).classes("text-sm")
            ui.label(
                f"{len(plan.steps)} steps, {_fmt_duration(plan.total_duration_sec)} total"
            ).classes("text-sm font-semibold")

    def refresh_history() -> None:
        history_column.clear()
        runs = load_runs(limit=HISTORY_LIMIT, path=runs_file)
        with history_column:
            if not runs:
                ui.label("No runs recorded").classes("text-sm")
                return
            for record in runs:
                with ui.row().classes("w-full items-center"):
                    ui.label(_fmt_run(record)).classes("text-sm grow")

                    def on_delete(run_id: str = record.run_id) -> None:
                        delete_run(run_id, path=runs_file)
                        refresh_history()

                    ui.button("Delete", on_click=on_delete).props("flat dense color=negative")

    def refresh_ui() -> None:
        while state.pending_scripts:
            ui.run_javascript(state.pending_scripts.pop(0))
        while state.pending_notices:
            ui.notify(state.pending_notices.pop(0))
        progress = controller.progress()
        running = controller.workout_running
        plan = controller.plan
        start_btn.set_enabled(not running and plan is not None and bool(plan.steps))
        parse_btn.set_enabled(not running)
        pause_btn.set_enabled(running)
        stop_btn.set_enabled(running)
        pause_btn.set_text("Resume" if controller.scheduler.is_paused else "Pause")
        status_label.set_text(state.status)
        distance_info.set_text(f"Distance: {controller.tracker.total_distance_km:.2f} km")

        if progress is None:
            if state.status in ("Workout Complete", "Workout stopped"):
                activity_label.set_text(state.status)
            timer_label.set_text("00:00")
            step_progress.set_value(0.0)
            step_info.set_text("Step: -")
            total_info.set_text("Total: -")
            return
        activity_label.set_text(progress.activity)
        timer_label.set_text(_fmt_duration(progress.remaining_sec))
        fraction = (
            progress.step_elapsed_sec / progress.step_duration_sec
            if progress.step_duration_sec
            else 1.0
        )
        step_progress.set_value(fraction)
        step_info.set_text(f"Step: {progress.step_index + 1}/{progress.step_total}")
        total_info.set_text(
            f"Total: {_fmt_duration(progress.elapsed_total_sec)} elapsed, "
            f"{_fmt_duration(progress.total_remaining_sec)} left"
        )

    def on_event(event: SchedulerEvent) -> None:
        if event.kind == "workout_started":
            state.status = "Workout started"
            state.pending_scripts.append("window.pacerStartGeo()")
        elif event.kind == "step_started" and event.step_index is not None:
            plan = controller.plan
            if plan is not None and event.step_index != state.last_step_index:
                step = plan.steps[event.step_index]
                state.pending_notices.append(f"{step.activity} for {step.duration.describe()}")
            state.last_step_index = event.step_index
        elif event.kind == "workout_paused":
            state.status = "Paused"
        elif event.kind == "workout_resumed":
            state.status = "Workout running"
        elif event.kind in ("workout_completed", "workout_stopped"):
            state.pending_scripts.append("window.pacerStopGeo()")
            state.last_step_index = None
            state.status = (
                "Workout Complete" if event.kind == "workout_completed" else "Workout stopped"
            )

    def on_parse() -> None:
        plan = controller.load_instructions(str(instructions_input.value or ""))
        if plan is None:
            ui.notify("Stop the current workout first", color="negative")
            return
        if not plan.steps:
            ui.notify("No workout steps recognized", color="negative")
        state.status = f"Loaded {len(plan.steps)} steps"
        refresh_plan()
        refresh_ui()

    def on_start() -> None:
        if not controller.start():
            ui.notify("Nothing to run - parse some instructions first", color="negative")
        refresh_ui()

    def on_pause() -> None:
        controller.toggle_pause()
        refresh_ui()

    def on_stop() -> None:
        controller.stop()
        refresh_ui()

    def on_visible() -> None:
        controller.on_visibility_restored()
        refresh_ui()

    def on_position(event: Any) -> None:
        args = event.args or {}
        try:
            controller.add_position(
                float(args["latitude"]),
                float(args["longitude"]),
                accuracy_m=float(args["accuracy"]) if args.get("accuracy") is not None else None,
            )
        except (KeyError, TypeError, ValueError):
            return

    controller.add_listener(on_event)
    controller.on_finish(lambda _record: refresh_history())
    parse_btn.on_click(on_parse)
    instructions_input.on("keydown.enter", on_parse)
    start_btn.on_click(on_start)
    pause_btn.on_click(on_pause)
    stop_btn.on_click(on_stop)
    ui.on("pacer_visible", lambda _e: on_visible())
    ui.on("pacer_position", on_position)

    refresh_plan()
    refresh_history()
    refresh_ui()
    ui.timer(REFRESH_SEC, refresh_ui)
    ui.run(host=host, port=port, reload=False, title="Pacer")
    return 0
