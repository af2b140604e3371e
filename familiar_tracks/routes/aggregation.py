"""Per-route summary statistics and final route ordering."""

from __future__ import annotations

from typing import List, Sequence

from ..models import Activity, LatLon, RouteGroup
from .tracks import decode_track

# Degraded center for a representative with neither a start point nor a
# decodable track.
FALLBACK_CENTER: LatLon = (0.0, 0.0)


def center_point_for(activity: Activity) -> LatLon:
    """Pick a single point to place a route on a map.

    Prefers the recorded start point, then the middle sample of the decoded
    track, then :data:`FALLBACK_CENTER`.
    """

    if activity.start_latlng is not None:
        return activity.start_latlng
    points = decode_track(activity.track)
    if points:
        return points[len(points) // 2]
    return FALLBACK_CENTER


def _mean_heart_rate(activities: Sequence[Activity]) -> float | None:
    values = [a.average_heart_rate for a in activities if a.average_heart_rate is not None]
    if not values:
        return None
    return sum(values) / len(values)


def summarise_groups(groups: List[RouteGroup]) -> List[RouteGroup]:
    """Fill in summary fields and return the groups largest first.

    The sort is stable, so equally sized routes keep their creation order.
    """

    for group in groups:
        members = group.activities
        group.average_distance = sum(a.distance for a in members) / len(members)
        group.average_heart_rate = _mean_heart_rate(members)
        group.center_point = center_point_for(group.representative)
    return sorted(groups, key=lambda group: -group.size)


__all__ = ["FALLBACK_CENTER", "center_point_for", "summarise_groups"]
