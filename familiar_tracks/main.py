"""Command line entry point: load runs, group them into routes, write results."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .activity_cache import ActivityCache
from .auth import TokenError, refresh_access_token
from .config import (
    ACTIVITY_CACHE_ENABLED,
    ACTIVITY_CACHE_FILE,
    DEFAULT_MIN_ACTIVITIES,
    DEFAULT_SIMILARITY_THRESHOLD_M,
)
from .errors import FamiliarTracksError
from .export import routes_to_json, write_routes_json, write_routes_workbook
from .models import Activity, RouteGroup
from .services import RouteService, RouteServiceConfig
from .strava_client import TIME_RANGES
from .visualization import create_routes_map


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="familiar-tracks",
        description="Group repeated runs into familiar routes.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input",
        type=Path,
        help="JSON file with Strava activity payloads (a list, or {'activities': [...]})",
    )
    source.add_argument("--access-token", help="Strava access token for a live fetch")
    source.add_argument(
        "--refresh-token", help="Strava refresh token; exchanged for an access token"
    )
    parser.add_argument("--time-range", choices=TIME_RANGES, default="all")
    parser.add_argument(
        "--threshold",
        type=float,
        default=DEFAULT_SIMILARITY_THRESHOLD_M,
        help="Similarity threshold in metres (default: %(default)s)",
    )
    parser.add_argument(
        "--min-activities",
        type=int,
        default=DEFAULT_MIN_ACTIVITIES,
        help="Hide routes with fewer runs (default: %(default)s)",
    )
    parser.add_argument("--output", type=Path, help="Write routes to .json or .xlsx")
    parser.add_argument("--map", type=Path, help="Write an HTML route map")
    parser.add_argument("--cache-file", type=Path, default=Path(ACTIVITY_CACHE_FILE))
    parser.add_argument("--no-cache", action="store_true", help="Do not read or write the cache")
    parser.add_argument("--refresh", action="store_true", help="Ignore cached activities")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _read_input_file(path: Path) -> List[Dict[str, Any]]:
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        data = data.get("activities")
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain an activity list")
    return [item for item in data if isinstance(item, dict)]


def _load_activities(args: argparse.Namespace, service: RouteService) -> List[Activity]:
    if args.input is not None:
        payloads = _read_input_file(args.input)
        logging.info("Loaded %d activities from %s", len(payloads), args.input)
        return [Activity.from_strava(payload) for payload in payloads]
    token = args.access_token
    if args.refresh_token:
        token = refresh_access_token(args.refresh_token).access_token
    return service.load_activities(token, args.time_range, force_refresh=args.refresh)


def _write_outputs(args: argparse.Namespace, routes: Sequence[RouteGroup]) -> None:
    if args.output is None:
        sys.stdout.write(routes_to_json(routes) + "\n")
    elif args.output.suffix.lower() == ".xlsx":
        write_routes_workbook(args.output, routes)
    else:
        write_routes_json(args.output, routes)
    if args.map is not None:
        create_routes_map(routes, output_html_path=args.map)
        logging.info("Route map saved to %s", args.map)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    cache = None
    if ACTIVITY_CACHE_ENABLED and not args.no_cache:
        cache = ActivityCache(args.cache_file)
    service = RouteService(RouteServiceConfig(cache=cache))

    try:
        activities = _load_activities(args, service)
    except (FamiliarTracksError, TokenError, OSError, ValueError) as exc:
        logging.error("Failed to load activities: %s", exc)
        return 1

    routes = service.routes(activities, args.threshold, args.min_activities)
    logging.info(
        "Found %d routes (threshold=%sm, min_activities=%s) from %d activities",
        len(routes),
        args.threshold,
        args.min_activities,
        len(activities),
    )
    try:
        _write_outputs(args, routes)
    except (FamiliarTracksError, OSError) as exc:
        logging.error("Failed to write results: %s", exc)
        return 1
    return 0
