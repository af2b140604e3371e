"""Chronological metric series for the runs of one route."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from ..models import Activity, RouteGroup


@dataclass(frozen=True, slots=True)
class ProgressMetric:
    id: str
    label: str
    unit: str
    extract: Callable[[Activity], Optional[float]]


def _pace_min_per_km(activity: Activity) -> float | None:
    speed = activity.average_speed
    if not speed:
        return None
    return (1000.0 / 60.0) / speed


def _cadence_spm(activity: Activity) -> float | None:
    # Strava reports running cadence per leg; double it for steps per minute.
    if not activity.average_cadence:
        return None
    return activity.average_cadence * 2


METRICS: Dict[str, ProgressMetric] = {
    metric.id: metric
    for metric in (
        ProgressMetric("heartrate", "Avg Heart Rate", "bpm", lambda a: a.average_heart_rate),
        ProgressMetric("pace", "Avg Pace", "min/km", _pace_min_per_km),
        ProgressMetric("cadence", "Avg Cadence", "spm", _cadence_spm),
        ProgressMetric("calories", "Calories", "kcal", lambda a: a.calories or None),
    )
}

DEFAULT_METRICS = ("heartrate", "pace")

_MAX_DATE = datetime.max.replace(tzinfo=timezone.utc)


def _sort_key(activity: Activity) -> datetime:
    start = activity.start_date
    if start is None:
        return _MAX_DATE
    if start.tzinfo is None:
        return start.replace(tzinfo=timezone.utc)
    return start


def chronological(activities: Sequence[Activity]) -> List[Activity]:
    """Oldest first; undated runs go last in input order."""

    return sorted(activities, key=_sort_key)


def progress_series(
    group: RouteGroup,
    metrics: Sequence[str] = DEFAULT_METRICS,
) -> List[Dict[str, Any]]:
    """Return one row per run with the requested metric values.

    Raises:
        KeyError: If a metric id is not registered in :data:`METRICS`.
    """

    selected = [METRICS[metric_id] for metric_id in metrics]
    rows: List[Dict[str, Any]] = []
    for activity in chronological(group.activities):
        row: Dict[str, Any] = {
            "activity_id": activity.id,
            "name": activity.name,
            "start_date": activity.start_date,
        }
        for metric in selected:
            row[metric.id] = metric.extract(activity)
        rows.append(row)
    return rows


def progress_frame(
    group: RouteGroup,
    metrics: Sequence[str] = tuple(METRICS),
) -> pd.DataFrame:
    """Progress series as a DataFrame with labelled metric columns."""

    rows = progress_series(group, metrics)
    columns = ["activity_id", "name", "start_date", *metrics]
    df = pd.DataFrame(rows, columns=columns)
    return df.rename(
        columns={
            metric_id: f"{METRICS[metric_id].label} ({METRICS[metric_id].unit})"
            for metric_id in metrics
        }
    )


def format_pace(min_per_km: float | None) -> str:
    """Render a decimal pace as ``m:ss``."""

    if min_per_km is None:
        return ""
    minutes = int(min_per_km)
    seconds = int(round((min_per_km - minutes) * 60))
    if seconds == 60:
        minutes += 1
        seconds = 0
    return f"{minutes}:{seconds:02d}"


__all__ = [
    "DEFAULT_METRICS",
    "METRICS",
    "ProgressMetric",
    "chronological",
    "format_pace",
    "progress_frame",
    "progress_series",
]
