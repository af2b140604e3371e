"""Minimal Strava activity feed client.

Fetches the authenticated athlete's activity summaries page by page. Only the
list endpoint is used; the summary polyline it returns is all route grouping
needs.
"""

from __future__ import annotations

import calendar
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, TypeAlias

import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import config
from .errors import StravaAPIError, StravaAuthError
from .models import RUN_TYPE

JSONList: TypeAlias = List[Dict[str, Any]]

LOGGER = logging.getLogger(__name__)

TIME_RANGES = ("month", "3months", "6months", "year", "all")
_TIME_RANGE_MONTHS = {"month": 1, "3months": 3, "6months": 6, "year": 12}


def create_default_session() -> Session:
    """Pooled session that retries failed connections only.

    Status codes (429 throttling, 5xx backoff) are handled per page by
    :func:`_fetch_page`, so the adapter leaves responses alone.
    """

    connection_retry = Retry(
        connect=config.STRAVA_MAX_RETRIES,
        read=0,
        status=0,
        backoff_factor=0.5,
        allowed_methods=frozenset({"GET"}),
    )
    adapter = HTTPAdapter(
        pool_connections=config.HTTP_POOL_CONNECTIONS,
        pool_maxsize=config.HTTP_POOL_MAXSIZE,
        max_retries=connection_retry,
    )
    session = requests.Session()
    for prefix in ("https://", "http://"):
        session.mount(prefix, adapter)
    session.headers["Accept"] = "application/json"
    return session


_default_session: Session | None = None


def get_default_session() -> Session:
    """Return the shared activity feed session, creating it on first use."""

    global _default_session
    if _default_session is None:
        _default_session = create_default_session()
    return _default_session


def _months_back(now: datetime, months: int) -> datetime:
    month_index = now.month - 1 - months
    year = now.year + month_index // 12
    month = month_index % 12 + 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def time_range_after(time_range: str, now: datetime | None = None) -> int | None:
    """Translate a named time range into Strava's ``after`` epoch filter.

    ``"all"`` returns ``None`` (no filter).

    Raises:
        ValueError: If ``time_range`` is not one of :data:`TIME_RANGES`.
    """

    if time_range not in TIME_RANGES:
        raise ValueError(
            f"Unknown time range {time_range!r}; expected one of {', '.join(TIME_RANGES)}"
        )
    if time_range == "all":
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = _months_back(now, _TIME_RANGE_MONTHS[time_range])
    start = start.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(start.timestamp())


def _fetch_page(
    session: Session,
    url: str,
    headers: Dict[str, str],
    params: Dict[str, Any],
    page: int,
) -> JSONList:
    """GET one page with retry/backoff on transport errors, 5xx and 429."""

    attempts = 0
    rate_limit_retries = 0
    backoff = 1.0
    while True:
        attempts += 1
        try:
            resp = session.get(
                url, headers=headers, params=params, timeout=config.REQUEST_TIMEOUT
            )
        except requests.RequestException as exc:
            if attempts < config.STRAVA_MAX_RETRIES:
                LOGGER.warning(
                    "activities page=%s attempt=%s failed (%s); retrying in %.1fs",
                    page,
                    attempts,
                    exc.__class__.__name__,
                    backoff,
                )
                time.sleep(backoff)
                backoff = min(backoff * 2, config.STRAVA_BACKOFF_MAX_SECONDS)
                continue
            raise StravaAPIError(
                f"Transport failure fetching activities page {page}"
            ) from exc

        status = resp.status_code
        if status == 401:
            raise StravaAuthError("Unauthorized - access token may be expired")
        if status == 429:
            rate_limit_retries += 1
            if rate_limit_retries > config.RATE_LIMIT_MAX_RETRIES:
                raise StravaAPIError(
                    f"Rate limited on activities page {page} after "
                    f"{config.RATE_LIMIT_MAX_RETRIES} retries"
                )
            LOGGER.warning(
                "activities page=%s rate limited; throttling %ss",
                page,
                config.RATE_LIMIT_THROTTLE_SECONDS,
            )
            time.sleep(config.RATE_LIMIT_THROTTLE_SECONDS)
            continue
        if 500 <= status < 600 and attempts < config.STRAVA_MAX_RETRIES:
            LOGGER.warning(
                "activities page=%s status=%s; retrying in %.1fs", page, status, backoff
            )
            time.sleep(backoff)
            backoff = min(backoff * 2, config.STRAVA_BACKOFF_MAX_SECONDS)
            continue
        if status >= 400:
            raise StravaAPIError(f"Failed to fetch activities (status {status})")

        try:
            data = resp.json()
        except ValueError as exc:
            raise StravaAPIError(f"Invalid JSON on activities page {page}") from exc
        if not isinstance(data, list):
            raise StravaAPIError(
                f"Unexpected activities payload type {type(data).__name__}"
            )
        return data


def fetch_activities(
    access_token: str,
    *,
    after: int | None = None,
    per_page: int | None = None,
    max_pages: Optional[int] = None,
    session: Session | None = None,
) -> JSONList:
    """Return every activity summary visible to ``access_token``.

    Pages are requested until one comes back shorter than ``per_page`` or
    ``max_pages`` is reached.

    Raises:
        StravaAuthError: If Strava rejects the token.
        StravaAPIError: On any other unrecoverable failure.
    """

    if not access_token:
        raise StravaAuthError("Missing access token")
    session = session or get_default_session()
    per_page = per_page or config.ACTIVITY_PAGE_SIZE
    if max_pages is None:
        max_pages = config.ACTIVITY_MAX_PAGES
    url = f"{config.STRAVA_BASE_URL}/athlete/activities"
    headers = {"Authorization": f"Bearer {access_token}"}

    activities: JSONList = []
    page = 1
    while True:
        params: Dict[str, Any] = {"per_page": per_page, "page": page}
        if after is not None:
            params["after"] = after
        data = _fetch_page(session, url, headers, params, page)
        activities.extend(item for item in data if isinstance(item, dict))
        LOGGER.debug("activities page=%s items=%s", page, len(data))
        if len(data) < per_page:
            break
        if max_pages is not None and page >= max_pages:
            LOGGER.info("Stopping activity fetch at max_pages=%s", max_pages)
            break
        page += 1
    LOGGER.info("Fetched %d activities over %d page(s)", len(activities), page)
    return activities


def filter_runs_with_map(payloads: Iterable[Dict[str, Any]]) -> JSONList:
    """Keep run payloads that carry map data."""

    return [p for p in payloads if p.get("type") == RUN_TYPE and p.get("map")]


__all__ = [
    "TIME_RANGES",
    "create_default_session",
    "fetch_activities",
    "filter_runs_with_map",
    "get_default_session",
    "time_range_after",
]
