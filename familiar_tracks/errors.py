"""Central error types used across the application.

Route grouping itself never raises for bad data; these cover the I/O layers
around it.
"""

from __future__ import annotations


class FamiliarTracksError(RuntimeError):
    """Base error for the package."""


class StravaAPIError(FamiliarTracksError):
    """Raised when the Strava activity feed cannot be fetched."""


class StravaAuthError(StravaAPIError):
    """Raised when Strava rejects the access token (HTTP 401)."""


class ActivityCacheError(FamiliarTracksError):
    """Raised when the on-disk activity cache cannot be written."""


class ExportError(FamiliarTracksError):
    """Raised when route output cannot be written in the requested format."""


__all__ = [
    "ActivityCacheError",
    "ExportError",
    "FamiliarTracksError",
    "StravaAPIError",
    "StravaAuthError",
]
