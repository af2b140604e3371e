"""Tests for polyline track decoding."""

from __future__ import annotations

import pytest

from conftest import encode
from familiar_tracks.routes.tracks import decode_track


def test_decode_reference_polyline() -> None:
    points = decode_track("_p~iF~ps|U_ulLnnqC_mqNvxq`@")
    assert points == [
        pytest.approx((38.5, -120.2)),
        pytest.approx((40.7, -120.95)),
        pytest.approx((43.252, -126.453)),
    ]


@pytest.mark.parametrize("encoded", [None, ""])
def test_missing_track_decodes_to_empty(encoded) -> None:
    assert decode_track(encoded) == []


def test_truncated_polyline_decodes_to_empty() -> None:
    # Latitude present, longitude chunk missing.
    assert decode_track("_p~iF") == []


def test_decoded_points_are_float_tuples(base_points) -> None:
    points = decode_track(encode(base_points))
    assert len(points) == len(base_points)
    assert all(isinstance(p, tuple) and len(p) == 2 for p in points)
    assert points[0] == pytest.approx(base_points[0])


@pytest.mark.parametrize("encoded", ["!!!!", "_p~iF ~ps|U", "_p~iF~ps|Ué"])
def test_characters_outside_encoding_range_decode_to_empty(encoded) -> None:
    assert decode_track(encoded) == []
