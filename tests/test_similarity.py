"""Tests for the directed nearest-point route similarity metric."""

from __future__ import annotations

import math

import pytest

from conftest import line_points, make_activity
from familiar_tracks.routes.similarity import (
    SIMILARITY_SENTINEL,
    directed_mean_nearest_m,
    haversine_m,
    route_similarity,
    subsample,
)


def test_haversine_one_degree_latitude() -> None:
    assert haversine_m((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111_195, rel=1e-3)


def test_vectorised_distance_matches_scalar_haversine() -> None:
    a = (51.48, -3.18)
    b = (51.50, -3.10)
    assert directed_mean_nearest_m([a], [b]) == pytest.approx(haversine_m(a, b), rel=1e-9)


def test_subsample_keeps_every_tenth_point_from_zero() -> None:
    points = [(float(i), 0.0) for i in range(25)]
    assert subsample(points, 10) == [(0.0, 0.0), (10.0, 0.0), (20.0, 0.0)]


def test_subsample_of_short_track_keeps_first_point() -> None:
    points = [(1.0, 2.0), (3.0, 4.0)]
    assert subsample(points, 10) == [(1.0, 2.0)]


def test_subsample_rejects_non_positive_stride() -> None:
    with pytest.raises(ValueError):
        subsample([(0.0, 0.0)], 0)


def test_identical_tracks_score_zero(base_points) -> None:
    a = make_activity(1, base_points)
    b = make_activity(2, base_points)
    assert route_similarity(a, b) == pytest.approx(0.0, abs=1e-9)


def test_missing_track_returns_sentinel(base_points) -> None:
    with_track = make_activity(1, base_points)
    without_track = make_activity(2, None)
    assert route_similarity(with_track, without_track) == SIMILARITY_SENTINEL
    assert route_similarity(without_track, with_track) == SIMILARITY_SENTINEL
    assert math.isinf(SIMILARITY_SENTINEL)


def test_undecodable_track_returns_sentinel(base_points) -> None:
    good = make_activity(1, base_points)
    broken = make_activity(2, track="_p~iF")
    assert route_similarity(broken, good) == SIMILARITY_SENTINEL


def test_parallel_offset_is_roughly_the_offset_distance() -> None:
    west = make_activity(1, line_points())
    east = make_activity(2, line_points(lon_offset=0.0005))
    # 0.0005 degrees of longitude at 51.48N is ~34.6 m.
    assert route_similarity(east, west) == pytest.approx(34.6, abs=0.5)


def test_metric_is_directed() -> None:
    long_points = line_points(count=41)
    short = make_activity("short", long_points[:11])
    long = make_activity("long", long_points)
    # Every sampled point of the short run lies on the long run...
    assert route_similarity(short, long) == pytest.approx(0.0, abs=1e-9)
    # ...but the long run's tail is far from anything in the short run.
    assert route_similarity(long, short) > 50.0


def test_stride_is_tunable(base_points) -> None:
    shifted = [(lat, round(lon + 0.0002, 5)) for lat, lon in base_points]
    a = make_activity(1, shifted)
    b = make_activity(2, base_points)
    coarse = route_similarity(a, b, sample_stride=10)
    fine = route_similarity(a, b, sample_stride=1)
    assert coarse == pytest.approx(fine, rel=0.05)
