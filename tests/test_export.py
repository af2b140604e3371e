"""Tests for JSON and Excel route exports."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest
from openpyxl.utils.exceptions import IllegalCharacterError

from conftest import make_activity
from familiar_tracks import export as export_mod
from familiar_tracks.errors import ExportError
from familiar_tracks.export import (
    build_routes_frame,
    routes_to_json,
    write_routes_json,
    write_routes_workbook,
)
from familiar_tracks.routes import group_activities


@pytest.fixture
def routes(base_points, utc):
    activities = [
        make_activity(1, base_points, heart_rate=150.0, start_date=utc(2025, 1, 2, 7), average_speed=3.2),
        make_activity(
            2,
            base_points,
            heart_rate=154.0,
            start_date=utc(2025, 1, 9, 7),
            average_speed=3.4,
            name="Run\x07bell",
        ),
        make_activity(3, [(lat + 1.0, lon) for lat, lon in base_points], distance=8000.0),
    ]
    return group_activities(activities, 50.0)


def test_routes_to_json(routes) -> None:
    payload = json.loads(routes_to_json(routes))
    assert [r["id"] for r in payload] == ["route-0", "route-1"]
    assert [a["id"] for a in payload[0]["activities"]] == [1, 2]
    assert payload[0]["average_heart_rate"] == pytest.approx(152.0)


def test_write_routes_json(tmp_path: Path, routes) -> None:
    target = tmp_path / "out" / "routes.json"
    write_routes_json(target, routes)
    assert len(json.loads(target.read_text(encoding="utf-8"))) == 2


def test_build_routes_frame(routes) -> None:
    df = build_routes_frame(routes)
    assert list(df["Route"]) == ["route-0", "route-1"]
    assert list(df["Runs"]) == [2, 1]
    assert df.loc[0, "Avg Distance (km)"] == pytest.approx(5.0)
    assert pd.isna(df.loc[1, "Avg Heart Rate (bpm)"])
    assert df.loc[0, "First Run"].year == 2025
    assert pd.isna(df.loc[1, "First Run"])


def test_build_routes_frame_empty() -> None:
    df = build_routes_frame([])
    assert df.empty
    assert "Route" in df.columns


def test_write_routes_workbook(tmp_path: Path, routes) -> None:
    target = tmp_path / "routes.xlsx"
    sheets = write_routes_workbook(target, routes)
    assert sheets == ["Routes", "route-0", "route-1"]

    summary = pd.read_excel(target, sheet_name="Routes")
    assert list(summary["Runs"]) == [2, 1]
    progress = pd.read_excel(target, sheet_name="route-0")
    assert list(progress["Activity ID"]) == [1, 2]
    assert "Avg Pace (min/km)" in progress.columns


def test_workbook_progress_sheet_cleans_names_and_formats_pace(tmp_path: Path, routes) -> None:
    target = tmp_path / "routes.xlsx"
    write_routes_workbook(target, routes)

    progress = pd.read_excel(target, sheet_name="route-0")
    assert list(progress["Name"]) == ["Run 1", "Runbell"]
    assert progress.loc[1, "Pace (m:ss/km)"] == "4:54"


def test_workbook_write_errors_become_export_errors(monkeypatch, tmp_path: Path, routes) -> None:
    def failing_write(*args, **kwargs):
        raise IllegalCharacterError("bad cell")

    monkeypatch.setattr(export_mod, "_write_sheet", failing_write)
    with pytest.raises(ExportError):
        write_routes_workbook(tmp_path / "routes.xlsx", routes)
