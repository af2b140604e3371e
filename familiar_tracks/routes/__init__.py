"""Route similarity grouping: decode, compare, group, summarise."""

from .aggregation import center_point_for, summarise_groups
from .grouping import eligible_activities, filter_min_size, group_activities
from .progress import progress_frame, progress_series
from .similarity import (
    DEFAULT_SAMPLE_STRIDE,
    SIMILARITY_SENTINEL,
    route_similarity,
)
from .tracks import decode_track

__all__ = [
    "DEFAULT_SAMPLE_STRIDE",
    "SIMILARITY_SENTINEL",
    "center_point_for",
    "decode_track",
    "eligible_activities",
    "filter_min_size",
    "group_activities",
    "progress_frame",
    "progress_series",
    "route_similarity",
    "summarise_groups",
]
