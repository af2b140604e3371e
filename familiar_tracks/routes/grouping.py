"""Greedy grouping of runs into familiar routes.

Each run is compared only with the first run of every existing group, in
group creation order, and joins the first group it is close enough to. The
result depends on input order and is not a global optimum; callers relying on
reproducible output must keep passing activities in the same order.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from ..models import Activity, RouteGroup
from .aggregation import summarise_groups
from .similarity import DEFAULT_SAMPLE_STRIDE, route_similarity

_LOG = logging.getLogger(__name__)

ROUTE_ID_PREFIX = "route-"


def eligible_activities(activities: Iterable[Activity]) -> List[Activity]:
    """Return runs that carry a track, in input order."""

    return [activity for activity in activities if activity.is_run and activity.track]


def group_activities(
    activities: Sequence[Activity],
    threshold_m: float,
    *,
    sample_stride: int = DEFAULT_SAMPLE_STRIDE,
) -> List[RouteGroup]:
    """Partition runs into route groups and summarise them.

    Args:
        activities: Activities in the order they should be considered.
        threshold_m: A run joins a group when its similarity to the group's
            representative is strictly below this many metres.
        sample_stride: Track subsampling stride passed to the metric.

    Returns:
        Groups ordered by member count (largest first, creation order on
        ties). Empty when no activity qualifies.
    """

    runs = eligible_activities(activities)
    groups: List[RouteGroup] = []
    for activity in runs:
        for group in groups:
            score = route_similarity(
                activity, group.representative, sample_stride=sample_stride
            )
            if score < threshold_m:
                group.activities.append(activity)
                break
        else:
            groups.append(
                RouteGroup(id=f"{ROUTE_ID_PREFIX}{len(groups)}", activities=[activity])
            )
    _LOG.debug(
        "Grouped %d of %d activities into %d routes (threshold=%.1fm stride=%d)",
        len(runs),
        len(activities),
        len(groups),
        threshold_m,
        sample_stride,
    )
    return summarise_groups(groups)


def filter_min_size(groups: Iterable[RouteGroup], min_activities: int) -> List[RouteGroup]:
    """Keep groups with at least ``min_activities`` members, order preserved."""

    return [group for group in groups if group.size >= min_activities]


__all__ = [
    "ROUTE_ID_PREFIX",
    "eligible_activities",
    "filter_min_size",
    "group_activities",
]
