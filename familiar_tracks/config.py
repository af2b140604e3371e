"""Central configuration for the familiar tracks tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).

The route grouping functions never read this module directly; the values here
only supply defaults to the CLI and service layers.
"""

from __future__ import annotations

import os
from typing import Callable, TypeVar

from dotenv import load_dotenv


_T = TypeVar("_T")

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


def _parse_bool(raw: str) -> bool:
    word = raw.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _env(key: str, default: _T, parse: Callable[[str], _T]) -> _T:
    """Parse ``key`` from the environment; blank or unparsable values keep ``default``."""

    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError:
        return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Strava settings
# ---------------------------------------------------------------------------
STRAVA_BASE_URL = os.getenv("STRAVA_BASE_URL", "https://www.strava.com/api/v3")
STRAVA_OAUTH_URL = os.getenv("STRAVA_OAUTH_URL", "https://www.strava.com/oauth/token")

# Client credentials pulled from the environment. Do not hardcode secrets.
CLIENT_ID = os.getenv("STRAVA_CLIENT_ID", "")
CLIENT_SECRET = os.getenv("STRAVA_CLIENT_SECRET", "")

# Activities requested per page from /athlete/activities (Strava max is 200).
ACTIVITY_PAGE_SIZE = _env("ACTIVITY_PAGE_SIZE", 200, int)

# Upper bound on pages fetched per sync. 0 disables the cap.
ACTIVITY_MAX_PAGES: int | None = _env("ACTIVITY_MAX_PAGES", 0, int) or None


# ---------------------------------------------------------------------------
# HTTP tuning
# ---------------------------------------------------------------------------
HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10

# Request timeout in seconds.
REQUEST_TIMEOUT = _env("REQUEST_TIMEOUT", 15, int)

# STRAVA_MAX_RETRIES covers network failures and 5xx responses.
STRAVA_MAX_RETRIES = _env("STRAVA_MAX_RETRIES", 3, int)
# STRAVA_BACKOFF_MAX_SECONDS caps the exponential backoff per attempt.
STRAVA_BACKOFF_MAX_SECONDS = _env("STRAVA_BACKOFF_MAX_SECONDS", 4.0, float)
# Pause applied after a 429 before retrying the same page.
RATE_LIMIT_THROTTLE_SECONDS = _env("RATE_LIMIT_THROTTLE_SECONDS", 15.0, float)
# Give up on a page after this many consecutive 429 responses.
RATE_LIMIT_MAX_RETRIES = _env("RATE_LIMIT_MAX_RETRIES", 5, int)


# ---------------------------------------------------------------------------
# Route grouping defaults
# ---------------------------------------------------------------------------
# Mean nearest-point distance (metres) below which two runs share a route.
DEFAULT_SIMILARITY_THRESHOLD_M = _env("DEFAULT_SIMILARITY_THRESHOLD_M", 100.0, float)

# Hide routes with fewer runs than this.
DEFAULT_MIN_ACTIVITIES = _env("DEFAULT_MIN_ACTIVITIES", 1, int)

# Compare every Nth decoded track point.
ROUTE_SAMPLE_STRIDE = _env("ROUTE_SAMPLE_STRIDE", 10, int)

# Memoised grouping results kept by the route service.
ROUTE_RESULT_CACHE_SIZE = _env("ROUTE_RESULT_CACHE_SIZE", 32, int)


# ---------------------------------------------------------------------------
# Activity cache
# ---------------------------------------------------------------------------
ACTIVITY_CACHE_ENABLED = _env("ACTIVITY_CACHE_ENABLED", True, _parse_bool)
ACTIVITY_CACHE_FILE = os.getenv("ACTIVITY_CACHE_FILE", "data/activities_cache.json")

# Cached activities older than this are refetched. 0 means always stale.
ACTIVITY_CACHE_MAX_AGE_SECONDS = _env("ACTIVITY_CACHE_MAX_AGE_SECONDS", 3600, int)


# ---------------------------------------------------------------------------
# Excel formatting
# ---------------------------------------------------------------------------
EXCEL_AUTOSIZE_COLUMNS = True
EXCEL_AUTOSIZE_MAX_WIDTH = 50  # characters
EXCEL_AUTOSIZE_MIN_WIDTH = 6  # characters
EXCEL_AUTOSIZE_PADDING = 2  # extra characters added to the detected max
EXCEL_AUTOSIZE_MAX_ROWS = 5000  # skip autosize for very large sheets

ROUTES_COLUMN_ORDER = [
    "Route",
    "Runs",
    "Avg Distance (km)",
    "Avg Heart Rate (bpm)",
    "Center Lat",
    "Center Lon",
    "First Run",
    "Last Run",
]
