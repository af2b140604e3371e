"""On-disk cache for fetched activity payloads.

Keeps the last synced activity list in a single JSON document so repeated
runs (and threshold tweaks) do not hit the Strava API every time. Grouping
results are never stored here; they are recomputed from the cached
activities on demand.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ACTIVITY_CACHE_FILE, ACTIVITY_CACHE_MAX_AGE_SECONDS
from .errors import ActivityCacheError
from .models import parse_iso_datetime

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CachedData:
    activities: List[Dict[str, Any]]
    last_sync: datetime | None
    athlete_id: str | None = None
    time_range: str | None = None


@dataclass(frozen=True, slots=True)
class CacheStats:
    cached: bool
    count: int
    age_minutes: int
    last_sync: datetime | None


class ActivityCache:
    """JSON file holding the most recent activity sync."""

    def __init__(
        self,
        path: str | Path = ACTIVITY_CACHE_FILE,
        max_age_seconds: int = ACTIVITY_CACHE_MAX_AGE_SECONDS,
    ) -> None:
        self._path = Path(path)
        self._max_age_seconds = max(0, max_age_seconds)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def save(
        self,
        activities: List[Dict[str, Any]],
        time_range: str | None = None,
        athlete_id: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Replace the cached document.

        Raises:
            ActivityCacheError: If the file cannot be written.
        """

        synced = now or datetime.now(timezone.utc)
        payload = {
            "activities": activities,
            "last_sync": synced.isoformat(),
            "athlete_id": athlete_id,
            "time_range": time_range,
        }
        temp_path = self._path.with_suffix(".tmp")
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with temp_path.open("w", encoding="utf-8") as handle:
                    json.dump(payload, handle, ensure_ascii=True)
                temp_path.replace(self._path)
            except (OSError, TypeError, ValueError) as exc:
                temp_path.unlink(missing_ok=True)
                raise ActivityCacheError(
                    f"Failed to write activity cache {self._path}: {exc}"
                ) from exc
        _LOGGER.info("Cached %d activities at %s", len(activities), self._path)

    def load(self) -> Optional[CachedData]:
        """Return the cached document, or ``None`` when missing or unreadable."""

        with self._lock:
            try:
                with self._path.open("r", encoding="utf-8") as handle:
                    payload = json.load(handle)
            except FileNotFoundError:
                return None
            except (OSError, ValueError) as exc:
                _LOGGER.error("Failed reading activity cache %s: %s", self._path, exc)
                return None
        if not isinstance(payload, dict) or not isinstance(payload.get("activities"), list):
            _LOGGER.error("Activity cache %s has an unexpected shape", self._path)
            return None
        return CachedData(
            activities=payload["activities"],
            last_sync=parse_iso_datetime(payload.get("last_sync")),
            athlete_id=payload.get("athlete_id"),
            time_range=payload.get("time_range"),
        )

    def last_sync(self) -> datetime | None:
        data = self.load()
        return data.last_sync if data else None

    def _age_seconds(self, last_sync: datetime, now: datetime | None) -> float:
        now = now or datetime.now(timezone.utc)
        if last_sync.tzinfo is None:
            last_sync = last_sync.replace(tzinfo=timezone.utc)
        return (now - last_sync).total_seconds()

    def is_valid(self, now: datetime | None = None) -> bool:
        """True while the last sync is younger than the configured max age."""

        last_sync = self.last_sync()
        if last_sync is None:
            return False
        return self._age_seconds(last_sync, now) < self._max_age_seconds

    def clear(self) -> None:
        with self._lock:
            self._path.unlink(missing_ok=True)

    def stats(self, now: datetime | None = None) -> CacheStats:
        data = self.load()
        if data is None or data.last_sync is None:
            return CacheStats(cached=False, count=0, age_minutes=0, last_sync=None)
        age = self._age_seconds(data.last_sync, now)
        return CacheStats(
            cached=True,
            count=len(data.activities),
            age_minutes=int(age // 60),
            last_sync=data.last_sync,
        )


__all__ = ["ActivityCache", "CacheStats", "CachedData"]
