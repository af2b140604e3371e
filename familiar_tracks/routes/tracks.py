"""Decoding of encoded summary polylines into lat/lon tracks."""

from __future__ import annotations

import logging
from typing import List, Optional

from polyline import decode as polyline_decode

from ..models import LatLon

_LOG = logging.getLogger(__name__)

DEFAULT_PRECISION = 5

# Every encoded chunk is offset by 63, so valid characters run from "?" to "~".
_MIN_CHAR, _MAX_CHAR = 63, 126


def _is_encoded_text(encoded: str) -> bool:
    return all(_MIN_CHAR <= ord(ch) <= _MAX_CHAR for ch in encoded)


def decode_track(encoded: Optional[str], precision: int = DEFAULT_PRECISION) -> List[LatLon]:
    """Return the ordered points of an encoded polyline.

    Missing or malformed input yields an empty list. An empty track is a valid
    "no track" state for callers, not an error.
    """

    if not encoded:
        return []
    if not isinstance(encoded, str) or not _is_encoded_text(encoded):
        _LOG.debug("Rejected polyline with characters outside the encoding range")
        return []
    try:
        points = polyline_decode(encoded, precision)
    except (ValueError, TypeError, IndexError) as exc:
        _LOG.debug("Failed to decode polyline: %s", exc)
        return []
    return [(float(lat), float(lon)) for lat, lon in points]


__all__ = ["DEFAULT_PRECISION", "decode_track"]
