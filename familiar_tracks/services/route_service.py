"""Route grouping service.

Sits between the activity feed and the pure grouping functions in
``familiar_tracks.routes``: loads activities (cache first, Strava second),
memoises grouping results per (activity set, threshold) so repeated calls with
unchanged inputs are cheap, and applies the minimum-route-size filter.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import threading
from typing import Any, Callable, Dict, Hashable, List, Sequence, Tuple

from cachetools import LRUCache

from ..activity_cache import ActivityCache
from ..config import ROUTE_RESULT_CACHE_SIZE, ROUTE_SAMPLE_STRIDE
from ..errors import ActivityCacheError, StravaAPIError
from ..models import Activity, RouteGroup
from ..routes import filter_min_size, group_activities
from ..strava_client import fetch_activities, filter_runs_with_map, time_range_after

ActivityPayload = Dict[str, Any]
ActivityFetcher = Callable[[str, int | None], List[ActivityPayload]]
_ResultKey = Tuple[Tuple[Hashable, ...], float, int]


def _copy_groups(groups: Sequence[RouteGroup]) -> List[RouteGroup]:
    return [replace(group, activities=list(group.activities)) for group in groups]


def _default_activity_fetcher(access_token: str, after: int | None) -> List[ActivityPayload]:
    return fetch_activities(access_token, after=after)


@dataclass(slots=True)
class RouteServiceConfig:
    fetcher: ActivityFetcher = _default_activity_fetcher
    cache: ActivityCache | None = None
    sample_stride: int = ROUTE_SAMPLE_STRIDE
    result_cache_size: int = ROUTE_RESULT_CACHE_SIZE
    logger: logging.Logger | None = None


class RouteService:
    def __init__(self, config: RouteServiceConfig | None = None):
        self.config = config or RouteServiceConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self._results: LRUCache[_ResultKey, List[RouteGroup]] = LRUCache(
            maxsize=max(1, self.config.result_cache_size)
        )
        self._results_lock = threading.RLock()

    def load_activities(
        self,
        access_token: str,
        time_range: str = "all",
        *,
        force_refresh: bool = False,
    ) -> List[Activity]:
        """Return run activities for ``time_range``, preferring a fresh cache.

        If the live fetch fails, cached activities for the same time range are
        served even when they have expired.

        Raises:
            StravaAPIError: When the cache cannot serve the request and the
                live fetch fails.
        """

        payloads = None if force_refresh else self._cached_payloads(time_range)
        if payloads is None:
            payloads = self._fetch(access_token, time_range)
        return [Activity.from_strava(payload) for payload in payloads]

    def _cached_payloads(
        self, time_range: str, *, allow_stale: bool = False
    ) -> List[ActivityPayload] | None:
        cache = self.config.cache
        if cache is None or (not allow_stale and not cache.is_valid()):
            return None
        data = cache.load()
        if data is None or data.time_range != time_range:
            return None
        self._log.info(
            "Using %d cached activities (time_range=%s)", len(data.activities), time_range
        )
        return data.activities

    def _fetch(self, access_token: str, time_range: str) -> List[ActivityPayload]:
        after = time_range_after(time_range)
        try:
            payloads = filter_runs_with_map(self.config.fetcher(access_token, after))
        except StravaAPIError as exc:
            stale = self._cached_payloads(time_range, allow_stale=True)
            if stale is None:
                raise
            self._log.warning("Strava sync failed, serving cached activities: %s", exc)
            return stale
        self._store(payloads, time_range)
        return payloads

    def _store(self, payloads: List[ActivityPayload], time_range: str) -> None:
        cache = self.config.cache
        if cache is None:
            return
        try:
            cache.save(payloads, time_range=time_range)
        except ActivityCacheError as exc:
            # The fetched data is still usable without the cache.
            self._log.warning("Activity cache not updated: %s", exc)

    def group(self, activities: Sequence[Activity], threshold_m: float) -> List[RouteGroup]:
        """Group ``activities``, reusing the last result for identical inputs.

        Each call returns its own ``RouteGroup`` copies, so callers may mutate
        them without affecting later cache hits.
        """

        stride = self.config.sample_stride
        key: _ResultKey = (tuple(a.id for a in activities), float(threshold_m), stride)
        with self._results_lock:
            cached = self._results.get(key)
        if cached is not None:
            self._log.debug("Route grouping cache hit (threshold=%s)", threshold_m)
            return _copy_groups(cached)
        groups = group_activities(activities, threshold_m, sample_stride=stride)
        with self._results_lock:
            self._results[key] = groups
        self._log.info(
            "Grouped %d activities into %d routes (threshold=%sm)",
            len(activities),
            len(groups),
            threshold_m,
        )
        return _copy_groups(groups)

    def routes(
        self,
        activities: Sequence[Activity],
        threshold_m: float,
        min_activities: int = 1,
    ) -> List[RouteGroup]:
        """Grouped routes with at least ``min_activities`` runs each."""

        return filter_min_size(self.group(activities, threshold_m), min_activities)

    def clear(self) -> None:
        with self._results_lock:
            self._results.clear()


__all__ = ["RouteService", "RouteServiceConfig"]
