"""Tests for configuration loading, the audit trail and unit conversion."""

import json

import pint
import pytest

from common.config import VisualizerConfig
from common.logging_config import AuditLogger
from common.types import PathType, ViewMode
from common.units import Q_, UnitRegistry, distance_in_units, ensure_quantity


# --------------------------------------------------------------------------- #
# Configuration
# --------------------------------------------------------------------------- #

def test_defaults() -> None:
    config = VisualizerConfig()
    assert config.path_type is PathType.ORTHODROMIC
    assert config.view_mode is ViewMode.GLOBE
    assert config.viewport.center == (400.0, 300.0)
    assert config.orthographic_zoom_extent == (0.8, 10.0)
    assert config.mercator_zoom_extent == (0.8, 18.0)


def test_from_dict_coerces_enums_and_ignores_unknown_keys() -> None:
    config = VisualizerConfig.from_dict(
        {"path_type": "loxodromic", "view_mode": "map", "colour": "teal", "mercator_zoom_extent": [1, 8]}
    )
    assert config.path_type is PathType.LOXODROMIC
    assert config.view_mode is ViewMode.MAP
    assert config.mercator_zoom_extent == (1.0, 8.0)
    assert not hasattr(config, "colour")


@pytest.mark.parametrize(
    "data",
    [
        {"path_type": "straight"},
        {"loxodrome_segments": 0},
        {"great_circle_samples_per_degree": 0},
        {"orthographic_zoom_extent": (5, 1)},
        {"mercator_zoom_extent": (0, 4)},
    ],
)
def test_invalid_values_are_rejected(data) -> None:
    with pytest.raises(ValueError):
        VisualizerConfig.from_dict(data)


def test_from_json_round_trips_to_dict(tmp_path) -> None:
    source = VisualizerConfig(path_type=PathType.LOXODROMIC, width=1024, height=768)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(source.to_dict()))

    loaded = VisualizerConfig.from_json(path)
    assert loaded == source
    assert loaded.to_dict()["path_type"] == "loxodromic"


def test_config_hash_tracks_content() -> None:
    a = VisualizerConfig()
    assert a.config_hash() == VisualizerConfig().config_hash()
    assert len(a.config_hash()) == 16
    assert a.config_hash() != VisualizerConfig(view_mode="map").config_hash()


# --------------------------------------------------------------------------- #
# Audit trail
# --------------------------------------------------------------------------- #

def test_audit_logger_is_a_singleton() -> None:
    assert AuditLogger() is AuditLogger()


def test_session_summary_counts_corrections_by_type() -> None:
    audit = AuditLogger()
    config = VisualizerConfig().to_dict()
    with audit.session_context("audit-summary", config) as session:
        audit.log_request()
        audit.log_constraint_correction("mercator_zoom_extent", 20.0, 18.0)
        audit.log_constraint_correction("mercator_zoom_extent", 0.1, 0.8)
        audit.log_constraint_correction("stretched_latitude_clamp", 90.0, 89.9999)

    summary = audit.get_session_summary("audit-summary")
    assert summary["requests"] == 1
    assert summary["total_corrections"] == 3
    assert summary["correction_counts_by_type"] == {"mercator_zoom_extent": 2, "stretched_latitude_clamp": 1}
    assert summary["config_hash"] == VisualizerConfig().config_hash()
    assert summary["end_time"] is not None
    assert session.corrections[0].correction_magnitude == pytest.approx(2.0)


def test_corrections_outside_a_session_are_not_recorded() -> None:
    audit = AuditLogger()
    with audit.session_context("audit-scope") as session:
        pass
    audit.log_constraint_correction("orthographic_zoom_extent", 11.0, 10.0)
    assert session.corrections == []


def test_export_session_artifacts(tmp_path) -> None:
    audit = AuditLogger()
    with audit.session_context("audit-export"):
        audit.log_constraint_correction("orthographic_zoom_extent", 12.0, 10.0, context={"event": "zoom"})

    out = tmp_path / "audit.json"
    audit.export_session_artifacts("audit-export", out)
    artifacts = json.loads(out.read_text())

    assert artifacts["session_id"] == "audit-export"
    assert artifacts["corrections"][0]["context"] == {"event": "zoom"}
    assert artifacts["corrections"][0]["corrected_value"] == 10.0


def test_named_session_receives_records_outside_its_context() -> None:
    audit = AuditLogger()
    audit.open_session("named-target")
    with audit.session_context("named-active") as active:
        audit.log_constraint_correction("mercator_zoom_extent", 20.0, 18.0, session_id="named-target")
    assert active.corrections == []
    assert audit.get_session_summary("named-target")["total_corrections"] == 1

    audit.close_session("named-target")
    audit.log_constraint_correction("mercator_zoom_extent", 20.0, 18.0, session_id="named-target")
    assert audit.get_session_summary("named-target")["total_corrections"] == 1


def test_closed_sessions_are_evicted_oldest_first() -> None:
    audit = AuditLogger()
    ids = [f"evict-{i}" for i in range(AuditLogger.MAX_CLOSED_SESSIONS + 3)]
    for session_id in ids:
        with audit.session_context(session_id):
            pass

    assert not any(audit.has_session(session_id) for session_id in ids[:3])
    assert all(audit.has_session(session_id) for session_id in ids[3:])


def test_unknown_session_summary_raises() -> None:
    with pytest.raises(KeyError):
        AuditLogger().get_session_summary("never-opened")


# --------------------------------------------------------------------------- #
# Units
# --------------------------------------------------------------------------- #

def test_distance_in_units() -> None:
    converted = distance_in_units(1.852, ("km", "nautical_mile"))
    assert converted["km"].magnitude == pytest.approx(1.852)
    assert converted["nautical_mile"].magnitude == pytest.approx(1.0)


def test_unit_registry_dimensionality() -> None:
    units = UnitRegistry()
    assert units.validate_dimensionality(units.quantity(3, "nmi"), "km")
    with pytest.raises(pint.DimensionalityError):
        units.validate_dimensionality(Q_(3, "second"), "km")


def test_ensure_quantity_warns_on_bare_number() -> None:
    with pytest.warns(UserWarning):
        quantity = ensure_quantity(12.0, "km")
    assert quantity.to("m").magnitude == pytest.approx(12000.0)
    assert ensure_quantity(Q_(1, "mile"), "km").units == Q_(1, "mile").units
