"""Utilities for drawing grouped routes on an interactive map."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

import folium  # Using folium to build an interactive Leaflet map.

from .models import LatLon, RouteGroup
from .routes.aggregation import FALLBACK_CENTER
from .routes.tracks import decode_track

PathLike = Union[str, Path]

_ROUTE_COLORS = (
    "#fc4c02",
    "#2c7bb6",
    "#1a9641",
    "#7b3294",
    "#d7191c",
    "#fdae61",
)
_SELECTED_COLOR = "#d73027"


def _map_center(groups: Sequence[RouteGroup]) -> LatLon:
    for group in groups:
        if group.center_point != FALLBACK_CENTER:
            return group.center_point
    return FALLBACK_CENTER


def create_routes_map(
    groups: Sequence[RouteGroup],
    *,
    selected_route_id: Optional[str] = None,
    zoom_start: int = 13,
    output_html_path: Optional[PathLike] = None,
) -> folium.Map:
    """Create a map with one polyline per route and a marker at its center.

    Each route is drawn using its representative's track. The route matching
    ``selected_route_id`` is drawn thicker in a highlight colour.

    Args:
        groups: Routes as returned by the grouping functions.
        selected_route_id: Optional route to highlight.
        zoom_start: Initial Leaflet zoom level.
        output_html_path: Optional path to persist the map as an HTML file.

    Returns:
        A :class:`folium.Map` instance.
    """

    folium_map = folium.Map(location=_map_center(groups), zoom_start=zoom_start, control_scale=True)
    for index, group in enumerate(groups):
        selected = group.id == selected_route_id
        color = _SELECTED_COLOR if selected else _ROUTE_COLORS[index % len(_ROUTE_COLORS)]
        label = f"{group.id}: {group.size} run(s), {group.average_distance / 1000.0:.2f} km"
        points = decode_track(group.representative.track)
        if len(points) >= 2:
            folium.PolyLine(
                points,
                color=color,
                weight=6 if selected else 4,
                opacity=0.9 if selected else 0.6,
                tooltip=label,
            ).add_to(folium_map)
        if group.center_point == FALLBACK_CENTER:
            continue
        folium.CircleMarker(
            location=group.center_point,
            radius=7 if selected else 5,
            color=color,
            fill=True,
            fill_color=color,
            tooltip=label,
        ).add_to(folium_map)

    if output_html_path is not None:
        output_path = Path(output_html_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        folium_map.save(str(output_path))

    return folium_map


__all__ = ["create_routes_map"]
