"""Similarity scoring between the GPS tracks of two activities."""

from __future__ import annotations

import math
from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray

from ..models import Activity, LatLon
from .tracks import decode_track

MetricArray = NDArray[np.float64]

_EARTH_RADIUS_M = 6_371_000.0

# Compare every Nth decoded point. Keeps the pairwise pass bounded.
DEFAULT_SAMPLE_STRIDE = 10

# Returned when a comparison is impossible; never below any finite threshold.
SIMILARITY_SENTINEL = math.inf


def haversine_m(first: LatLon, second: LatLon) -> float:
    """Great-circle distance in metres between two lat/lon points."""

    lat1, lon1 = first
    lat2, lon2 = second
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = lat2_rad - lat1_rad
    delta_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(delta_lat / 2.0) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return _EARTH_RADIUS_M * c


def subsample(points: Sequence[LatLon], stride: int = DEFAULT_SAMPLE_STRIDE) -> List[LatLon]:
    """Keep indices ``0, stride, 2 * stride, ...``.

    A non-empty input always yields at least its first point.
    """

    if stride < 1:
        raise ValueError("stride must be a positive integer")
    return list(points[::stride])


def _pairwise_haversine(a: MetricArray, b: MetricArray) -> MetricArray:
    """Return the ``len(a) x len(b)`` matrix of great-circle distances."""

    lat_a = np.radians(a[:, 0])[:, None]
    lon_a = np.radians(a[:, 1])[:, None]
    lat_b = np.radians(b[:, 0])[None, :]
    lon_b = np.radians(b[:, 1])[None, :]
    sin_half_lat = np.sin((lat_b - lat_a) / 2.0)
    sin_half_lon = np.sin((lon_b - lon_a) / 2.0)
    h = sin_half_lat**2 + np.cos(lat_a) * np.cos(lat_b) * sin_half_lon**2
    h = np.clip(h, 0.0, 1.0)
    return 2.0 * _EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))


def directed_mean_nearest_m(
    points: Sequence[LatLon],
    reference: Sequence[LatLon],
) -> float:
    """Average, over ``points``, of the distance to the nearest ``reference`` point.

    One-sided on purpose: swapping the arguments generally changes the result.
    Either side being empty yields :data:`SIMILARITY_SENTINEL`.
    """

    if len(points) == 0 or len(reference) == 0:
        return SIMILARITY_SENTINEL
    a = np.asarray(points, dtype=float)
    b = np.asarray(reference, dtype=float)
    nearest = _pairwise_haversine(a, b).min(axis=1)
    return float(nearest.mean())


def route_similarity(
    candidate: Activity,
    representative: Activity,
    *,
    sample_stride: int = DEFAULT_SAMPLE_STRIDE,
) -> float:
    """Score how closely ``candidate`` follows ``representative``'s route.

    Lower is more similar; ``0.0`` means every sampled candidate point lies on
    a sampled representative point. Missing or undecodable tracks on either
    side return :data:`SIMILARITY_SENTINEL`.
    """

    if not candidate.track or not representative.track:
        return SIMILARITY_SENTINEL
    candidate_points = decode_track(candidate.track)
    representative_points = decode_track(representative.track)
    if not candidate_points or not representative_points:
        return SIMILARITY_SENTINEL
    return directed_mean_nearest_m(
        subsample(candidate_points, sample_stride),
        subsample(representative_points, sample_stride),
    )


__all__ = [
    "DEFAULT_SAMPLE_STRIDE",
    "SIMILARITY_SENTINEL",
    "directed_mean_nearest_m",
    "haversine_m",
    "route_similarity",
    "subsample",
]
