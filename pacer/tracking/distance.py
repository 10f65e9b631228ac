"""Distance tracking from position samples, split per workout step."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from pacer.core.state import SchedulerEvent

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
MIN_SAMPLE_INTERVAL_SEC = 1.0
# Movement below 1 m is treated as GPS jitter.
MIN_MOVEMENT_KM = 0.001


@dataclass(frozen=True)
class LocationSample:
    latitude: float
    longitude: float
    timestamp: float
    step_index: int
    accuracy_m: float | None = None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def pace_min_per_km(duration_sec: float, distance_km: float) -> float | None:
    if duration_sec <= 0 or distance_km <= 0:
        return None
    return (duration_sec / 60.0) / distance_km


def format_pace(pace: float | None) -> str:
    if pace is None:
        return "--:-- /km"
    minutes = int(pace)
    seconds = int(round((pace - minutes) * 60))
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d} /km"


class DistanceTracker:
    """Scheduler listener that accumulates distance while a workout runs."""

    def __init__(
        self,
        min_interval_sec: float = MIN_SAMPLE_INTERVAL_SEC,
        min_movement_km: float = MIN_MOVEMENT_KM,
    ) -> None:
        self._min_interval_sec = min_interval_sec
        self._min_movement_km = min_movement_km
        self._samples: list[LocationSample] = []
        self._step_index = 0
        self._tracking = False
        self._last_accepted_at: float | None = None

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def samples(self) -> tuple[LocationSample, ...]:
        return tuple(self._samples)

    def handle_event(self, event: SchedulerEvent) -> None:
        if event.kind == "workout_started":
            self.start()
        elif event.kind == "step_started" and event.step_index is not None:
            self._step_index = event.step_index
        elif event.kind in ("workout_stopped", "workout_completed"):
            self.stop()

    def start(self) -> None:
        self._samples = []
        self._step_index = 0
        self._last_accepted_at = None
        self._tracking = True

    def stop(self) -> None:
        self._tracking = False

    def add_position(
        self,
        latitude: float,
        longitude: float,
        timestamp: float,
        accuracy_m: float | None = None,
    ) -> bool:
        if not self._tracking:
            return False
        if (
            self._last_accepted_at is not None
            and timestamp - self._last_accepted_at < self._min_interval_sec
        ):
            return False

        sample = LocationSample(
            latitude=latitude,
            longitude=longitude,
            timestamp=timestamp,
            step_index=self._step_index,
            accuracy_m=accuracy_m,
        )
        if self._samples:
            last = self._samples[-1]
            moved = haversine_km(last.latitude, last.longitude, latitude, longitude)
            if moved <= self._min_movement_km:
                logger.debug("ignoring position %.6f,%.6f: moved %.4f km", latitude, longitude, moved)
                return False

        self._samples.append(sample)
        self._last_accepted_at = timestamp
        return True

    @property
    def total_distance_km(self) -> float:
        return sum(
            haversine_km(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
            for prev, cur in zip(self._samples, self._samples[1:])
        )

    def step_distances_km(self) -> dict[int, float]:
        grouped: dict[int, list[LocationSample]] = {}
        for sample in self._samples:
            grouped.setdefault(sample.step_index, []).append(sample)
        return {
            index: sum(
                haversine_km(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
                for prev, cur in zip(points, points[1:])
            )
            for index, points in sorted(grouped.items())
        }
