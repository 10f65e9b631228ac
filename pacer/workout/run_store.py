"""Local persistence for completed/stopped runs, keyed by run id."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)


class RunStoreError(ValueError):
    """Raised when a run record cannot be stored."""


def _default_runs_path() -> Path:
    return Path.home() / ".pacer" / "runs.jsonl"


@dataclass(frozen=True)
class RunRecord:
    run_id: str
    started_at_utc: str
    ended_at_utc: str
    workout_name: str
    instructions: str
    completed: bool
    planned_duration_sec: int
    elapsed_duration_sec: int
    steps_completed: int
    step_total: int
    distance_km: float = 0.0
    step_distances_km: dict[int, float] = field(default_factory=dict)


def new_run_id() -> str:
    return uuid4().hex


def now_utc_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def save_run(record: RunRecord, path: Path | None = None) -> str:
    if not record.run_id:
        raise RunStoreError("Run record must have a run_id")
    target = path or _default_runs_path()
    records = _read_all(target)
    if all(r.run_id != record.run_id for r in records):
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as handle:
            handle.write(_encode(record) + "\n")
    else:
        _write_all(
            target, [record if r.run_id == record.run_id else r for r in records]
        )
    logger.debug("saved run %s to %s", record.run_id, target)
    return record.run_id


def load_runs(limit: int | None = None, path: Path | None = None) -> list[RunRecord]:
    """Return stored runs, most recent first."""
    target = path or _default_runs_path()
    runs = sorted(_read_all(target), key=lambda r: r.started_at_utc, reverse=True)
    if limit is not None:
        return runs[: max(0, limit)]
    return runs


def get_run(run_id: str, path: Path | None = None) -> RunRecord | None:
    target = path or _default_runs_path()
    for record in _read_all(target):
        if record.run_id == run_id:
            return record
    return None


def delete_run(run_id: str, path: Path | None = None) -> bool:
    target = path or _default_runs_path()
    records = _read_all(target)
    kept = [r for r in records if r.run_id != run_id]
    if len(kept) == len(records):
        return False
    _write_all(target, kept)
    return True


def _encode(record: RunRecord) -> str:
    payload = asdict(record)
    payload["step_distances_km"] = {
        str(index): km for index, km in record.step_distances_km.items()
    }
    return json.dumps(payload, ensure_ascii=True)


def _decode(item: dict[str, Any]) -> RunRecord:
    distances = item.get("step_distances_km") or {}
    item["step_distances_km"] = {int(index): float(km) for index, km in distances.items()}
    return RunRecord(**item)


def _read_all(target: Path) -> list[RunRecord]:
    if not target.exists():
        return []
    out: list[RunRecord] = []
    for lineno, raw in enumerate(target.read_text(encoding="utf-8").splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            out.append(_decode(json.loads(raw)))
        except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("skipping corrupt run record at %s:%d (%s)", target, lineno, exc)
    return out


def _write_all(target: Path, records: list[RunRecord]) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    body = "".join(_encode(record) + "\n" for record in records)
    tmp = target.with_suffix(target.suffix + ".tmp")
    tmp.write_text(body, encoding="utf-8")
    tmp.replace(target)
