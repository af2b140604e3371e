"""Familiar tracks: group repeated runs into routes and track progress."""

from .errors import FamiliarTracksError, StravaAPIError
from .main import main
from .models import Activity, RouteGroup
from .routes import group_activities, route_similarity

__all__ = [
    "main",
    "Activity",
    "RouteGroup",
    "FamiliarTracksError",
    "StravaAPIError",
    "group_activities",
    "route_similarity",
]
