"""Global pytest fixtures & helpers.

Adds project root to path and provides activity factories with synthetic
GPS tracks so grouping tests do not need recorded data.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timezone

import polyline
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from familiar_tracks.models import Activity


# --- Factory helpers -------------------------------------------------
def line_points(lat0=51.4800, lon0=-3.1800, count=30, step=0.0001, lon_offset=0.0):
    """Points heading north from (lat0, lon0); ~11 m apart at the default step."""
    return [(round(lat0 + i * step, 5), round(lon0 + lon_offset, 5)) for i in range(count)]


def encode(points):
    return polyline.encode(points, 5)


def make_activity(
    activity_id,
    points=None,
    *,
    distance=5000.0,
    heart_rate=None,
    type="Run",
    start_latlng=None,
    track=None,
    start_date=None,
    average_speed=None,
    average_cadence=None,
    calories=None,
    name=None,
):
    if track is None and points is not None:
        track = encode(points)
    return Activity(
        id=activity_id,
        type=type,
        distance=distance,
        average_heart_rate=heart_rate,
        start_latlng=start_latlng,
        track=track,
        name=name if name is not None else f"Run {activity_id}",
        start_date=start_date,
        average_speed=average_speed,
        average_cadence=average_cadence,
        calories=calories,
    )


def strava_payload(activity_id, points, **extra):
    payload = {
        "id": activity_id,
        "name": f"Morning Run {activity_id}",
        "type": "Run",
        "distance": 5000.0,
        "moving_time": 1500,
        "elapsed_time": 1550,
        "start_date": "2025-01-05T07:30:00Z",
        "start_latlng": list(points[0]) if points else [],
        "average_speed": 3.33,
        "average_heartrate": 150.0,
        "map": {"id": f"a{activity_id}", "summary_polyline": encode(points), "resource_state": 2},
    }
    payload.update(extra)
    return payload


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def base_points():
    return line_points()


@pytest.fixture
def literal_activities(base_points):
    """Two runs on the same street plus one across town."""
    nudged = [(round(lat + 0.00001, 5), lon) for lat, lon in base_points]
    far = line_points(lat0=52.2000, lon0=0.1200)
    a = make_activity("A", base_points, distance=5000.0, heart_rate=150.0)
    b = make_activity("B", nudged, distance=5200.0, heart_rate=155.0)
    c = make_activity("C", far, distance=8000.0, heart_rate=None)
    return [a, b, c]


@pytest.fixture
def offset_activities():
    """Parallel runs, each ~35 m further east than the previous one."""
    return [
        make_activity(f"off{k}", line_points(lon_offset=k * 0.0005))
        for k in range(5)
    ]


@pytest.fixture
def utc():
    def _utc(*args):
        return datetime(*args, tzinfo=timezone.utc)
    return _utc
