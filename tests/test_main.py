"""End-to-end tests for the command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import line_points, strava_payload
from familiar_tracks.main import main
from familiar_tracks.errors import StravaAuthError


@pytest.fixture
def input_file(tmp_path: Path) -> Path:
    base = line_points()
    payloads = [
        strava_payload(1, base),
        strava_payload(2, base, average_heartrate=160.0),
        strava_payload(3, line_points(lat0=52.2, lon0=0.12)),
        strava_payload(4, base, type="Ride"),
    ]
    path = tmp_path / "activities.json"
    path.write_text(json.dumps({"activities": payloads}), encoding="utf-8")
    return path


def test_main_writes_json(tmp_path: Path, input_file: Path) -> None:
    output = tmp_path / "routes.json"
    code = main(
        ["--input", str(input_file), "--threshold", "50", "--output", str(output), "--no-cache"]
    )
    assert code == 0
    routes = json.loads(output.read_text(encoding="utf-8"))
    assert [r["activity_count"] for r in routes] == [2, 1]
    assert routes[0]["average_heart_rate"] == pytest.approx(155.0)


def test_main_min_activities_and_stdout(capsys, input_file: Path) -> None:
    code = main(
        ["--input", str(input_file), "--threshold", "50", "--min-activities", "2", "--no-cache"]
    )
    assert code == 0
    routes = json.loads(capsys.readouterr().out)
    assert len(routes) == 1


def test_main_writes_workbook_and_map(tmp_path: Path, input_file: Path) -> None:
    output = tmp_path / "routes.xlsx"
    map_path = tmp_path / "routes.html"
    code = main(
        [
            "--input", str(input_file),
            "--output", str(output),
            "--map", str(map_path),
            "--no-cache",
        ]
    )
    assert code == 0
    assert output.is_file()
    assert map_path.is_file()


def test_main_reports_bad_input(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text('{"activities": 3}', encoding="utf-8")
    assert main(["--input", str(bad), "--no-cache"]) == 1
    assert main(["--input", str(tmp_path / "missing.json"), "--no-cache"]) == 1


def test_main_reports_provider_errors(monkeypatch, tmp_path: Path) -> None:
    def failing_fetch(access_token, after=None, **kwargs):
        raise StravaAuthError("expired")

    monkeypatch.setattr("familiar_tracks.services.route_service.fetch_activities", failing_fetch)
    code = main(
        ["--access-token", "tok", "--cache-file", str(tmp_path / "cache.json"), "--refresh"]
    )
    assert code == 1


def test_main_workbook_tolerates_control_characters_in_names(tmp_path: Path) -> None:
    source = tmp_path / "activities.json"
    source.write_text(
        json.dumps([strava_payload(1, line_points(), name="Run\x07bell")]), encoding="utf-8"
    )
    output = tmp_path / "routes.xlsx"
    assert main(["--input", str(source), "--output", str(output), "--no-cache"]) == 0
    assert output.is_file()
