"""Tests for the navpath command-line entry point."""

import json

import pytest

from common.types import InvalidCoordinateError
from visualization.cli import main, parse_coordinates


def test_parse_coordinates() -> None:
    coords = parse_coordinates("48.8566,2.3522")
    assert (coords.lat, coords.lon) == (48.8566, 2.3522)
    assert parse_coordinates("Paris") is None
    assert parse_coordinates("New York, NY") is None
    with pytest.raises(InvalidCoordinateError):
        parse_coordinates("95,0")


def test_numeric_pair_reports_both_distances(capsys) -> None:
    assert main(["48.8566,2.3522", "40.7128,-74.0060"]) == 0

    out = capsys.readouterr().out
    assert "* orthodromic" in out
    assert "  loxodromic" in out
    assert "km" in out and "nautical_mile" in out


def test_place_names_use_gazetteer(capsys) -> None:
    assert main(["--path-type", "loxodromic", "Paris", "Tokyo"]) == 0
    out = capsys.readouterr().out
    assert "* loxodromic" in out
    assert "Tokyo: 35.6762, 139.6503" in out


def test_pair_and_name_can_be_mixed(capsys) -> None:
    assert main(["51.5074,-0.1278", "Sydney"]) == 0
    assert "Sydney: -33.8688, 151.2093" in capsys.readouterr().out


def test_unknown_place_fails(capsys) -> None:
    assert main(["Paris", "Atlantis"]) == 1
    err = capsys.readouterr().err
    assert 'Failed to fetch location data: location not found: "Atlantis"' in err


def test_out_of_range_pair_fails() -> None:
    assert main(["95,0", "Paris"]) == 1


def test_frame_export(tmp_path) -> None:
    frame = tmp_path / "frame.json"
    code = main(["--view-mode", "map", "--no-basemap", "--frame", str(frame), "Paris", "New York"])

    assert code == 0
    document = json.loads(frame.read_text())
    assert document["view_mode"] == "map"
    types = [p["type"] for p in document["primitives"]]
    roles = [p["role"] for p in document["primitives"]]
    assert types[0] == "polygon" and roles[0] == "ocean"
    assert "path" in roles
    assert roles[-2:] == ["marker-start", "marker-end"]
    path = next(p for p in document["primitives"] if p["role"] == "path")
    assert path["dash"][0] == pytest.approx(path["dash"][1])


def test_config_file_and_audit_export(tmp_path) -> None:
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"path_type": "loxodromic", "loxodrome_segments": 10}))
    audit = tmp_path / "audit.json"

    assert main(["--config", str(config), "--audit", str(audit), "Paris", "London"]) == 0
    artifacts = json.loads(audit.read_text())
    assert artifacts["requests"] == 1
    assert artifacts["end_time"] is not None


def test_missing_config_file_fails(tmp_path) -> None:
    assert main(["--config", str(tmp_path / "nope.json"), "Paris", "London"]) == 1


def test_course_line_and_consistency_checks(capsys) -> None:
    assert main(["--check", "--", "-17.0,178.0", "21.0,-157.0"]) == 0
    out = capsys.readouterr().out
    assert "course: great circle departs" in out
    assert "rhumb line holds" in out
    assert "checks: " in out and " passed" in out
