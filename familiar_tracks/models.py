"""Records exchanged between the activity source, the grouping core and outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

LatLon = Tuple[float, float]

RUN_TYPE = "Run"


def parse_iso_datetime(value: Any) -> datetime | None:
    """Parse Strava's ISO-8601 timestamps (``Z`` suffix included)."""

    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _coerce_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_latlng(value: Any) -> LatLon | None:
    # Strava sends [] for activities recorded without GPS.
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    lat = _coerce_float(value[0])
    lon = _coerce_float(value[1])
    if lat is None or lon is None:
        return None
    return (lat, lon)


@dataclass(frozen=True, slots=True)
class Activity:
    """A single recorded activity as consumed by route grouping.

    ``track`` holds the encoded summary polyline. Everything after it is
    carried through for progress charts and exports only; grouping never
    looks at those fields.
    """

    id: int | str
    type: str
    distance: float
    average_heart_rate: Optional[float] = None
    start_latlng: Optional[LatLon] = None
    track: Optional[str] = None
    name: Optional[str] = None
    start_date: Optional[datetime] = None
    moving_time: Optional[float] = None
    elapsed_time: Optional[float] = None
    average_speed: Optional[float] = None
    average_cadence: Optional[float] = None
    calories: Optional[float] = None
    total_elevation_gain: Optional[float] = None

    @classmethod
    def from_strava(cls, payload: Mapping[str, Any]) -> "Activity":
        """Build an activity from a ``/athlete/activities`` summary payload."""

        map_info = payload.get("map")
        track = None
        if isinstance(map_info, Mapping):
            track = map_info.get("summary_polyline") or map_info.get("polyline")
        return cls(
            id=payload.get("id"),
            type=str(payload.get("type") or ""),
            distance=_coerce_float(payload.get("distance")) or 0.0,
            average_heart_rate=_coerce_float(payload.get("average_heartrate")),
            start_latlng=_coerce_latlng(payload.get("start_latlng")),
            track=track or None,
            name=payload.get("name"),
            start_date=parse_iso_datetime(payload.get("start_date")),
            moving_time=_coerce_float(payload.get("moving_time")),
            elapsed_time=_coerce_float(payload.get("elapsed_time")),
            average_speed=_coerce_float(payload.get("average_speed")),
            average_cadence=_coerce_float(payload.get("average_cadence")),
            calories=_coerce_float(payload.get("calories")),
            total_elevation_gain=_coerce_float(payload.get("total_elevation_gain")),
        )

    @property
    def is_run(self) -> bool:
        return self.type == RUN_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "distance": self.distance,
            "average_heart_rate": self.average_heart_rate,
            "start_latlng": list(self.start_latlng) if self.start_latlng else None,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "moving_time": self.moving_time,
            "elapsed_time": self.elapsed_time,
            "average_speed": self.average_speed,
            "average_cadence": self.average_cadence,
            "calories": self.calories,
            "total_elevation_gain": self.total_elevation_gain,
            "track": self.track,
        }


@dataclass(slots=True)
class RouteGroup:
    """Activities judged to follow the same physical route.

    Membership is always decided against ``activities[0]``. The summary
    fields are filled in by :func:`familiar_tracks.routes.aggregation.summarise_groups`.
    """

    id: str
    activities: List[Activity] = field(default_factory=list)
    average_distance: float = 0.0
    average_heart_rate: Optional[float] = None
    center_point: LatLon = (0.0, 0.0)

    @property
    def representative(self) -> Activity:
        return self.activities[0]

    @property
    def size(self) -> int:
        return len(self.activities)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "activity_count": self.size,
            "average_distance": self.average_distance,
            "average_heart_rate": self.average_heart_rate,
            "center_point": list(self.center_point),
            "activities": [activity.to_dict() for activity in self.activities],
        }


__all__ = ["Activity", "LatLon", "RUN_TYPE", "RouteGroup", "parse_iso_datetime"]
