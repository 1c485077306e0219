"""Tests for basemap decoding and the load-once basemap store."""

import numpy as np
import pytest
import requests

from data_ingestion import basemap as basemap_module
from data_ingestion.basemap import (
    BasemapStore,
    BasemapUnavailableError,
    decode_basemap,
    decode_geojson,
    decode_topojson,
    load_basemap,
)


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


# --------------------------------------------------------------------------- #
# Decoding
# --------------------------------------------------------------------------- #

def test_topology_decodes_polygons_and_multipolygons(topology) -> None:
    decoded = decode_topojson(topology)

    assert len(decoded) == 3
    assert [p.feature_id for p in decoded] == ["A", "B", "B"]
    square = decoded.polygons[0].rings[0]
    np.testing.assert_array_equal(square, [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]])
    assert decoded.provenance.object_name == "countries"


def test_negative_arc_index_reverses_arc(topology) -> None:
    triangle = decode_topojson(topology).polygons[1].rings[0]
    np.testing.assert_array_equal(triangle, [[20, 20], [25, 25], [25, 20], [20, 20]])


def test_stitched_arcs_share_their_join_point(topology) -> None:
    ring = decode_topojson(topology).polygons[2].rings[0]
    np.testing.assert_array_equal(ring, [[30, 0], [35, 0], [35, 5], [30, 0]])


def test_decoded_rings_are_read_only(topology) -> None:
    ring = decode_topojson(topology).polygons[0].rings[0]
    with pytest.raises(ValueError):
        ring[0, 0] = 1.0


def test_topology_quantisation_transform(topology) -> None:
    topology["transform"] = {"scale": [0.5, 0.25], "translate": [-180.0, -90.0]}
    square = decode_topojson(topology).polygons[0].rings[0]
    assert tuple(square[2]) == (-175.0, -87.5)


def test_missing_object_and_bad_arc_are_rejected(topology) -> None:
    with pytest.raises(BasemapUnavailableError):
        decode_topojson(topology, object_name="land")
    topology["objects"]["countries"]["geometries"][0]["arcs"] = [[9]]
    with pytest.raises(BasemapUnavailableError):
        decode_topojson(topology)


def test_geojson_feature_collection() -> None:
    document = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "Squareland"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[0, 0], [5, 0], [5, 5], [0, 0]]],
                },
            },
            {"type": "Feature", "properties": {}, "geometry": None},
        ],
    }
    decoded = decode_geojson(document)

    assert len(decoded) == 1
    assert decoded.polygons[0].feature_id == "Squareland"
    assert decoded.bounds() == (0.0, 5.0, 0.0, 5.0)


def test_decode_basemap_attaches_provenance(topology) -> None:
    decoded = decode_basemap(topology, source="world.json")
    assert decoded.provenance.source == "world.json"
    assert decoded.provenance.format == "topojson"
    assert decoded.provenance.object_name == "countries"


def test_malformed_document_is_wrapped() -> None:
    with pytest.raises(BasemapUnavailableError):
        decode_basemap({"type": "Polygon"})
    with pytest.raises(BasemapUnavailableError):
        decode_basemap([1, 2, 3])


# --------------------------------------------------------------------------- #
# Loading
# --------------------------------------------------------------------------- #

def test_load_basemap_from_file(topology_file) -> None:
    decoded = load_basemap(topology_file)
    assert len(decoded) == 3
    assert decoded.provenance.source == str(topology_file)


def test_missing_file_raises_unavailable(tmp_path) -> None:
    with pytest.raises(BasemapUnavailableError):
        load_basemap(tmp_path / "missing.json")


def test_load_basemap_from_url(monkeypatch, topology) -> None:
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _FakeResponse(topology)

    monkeypatch.setattr(basemap_module.requests, "get", fake_get)
    decoded = load_basemap("https://example.org/world.json", timeout=3.0)

    assert len(decoded) == 3
    assert calls == [("https://example.org/world.json", 3.0)]


def test_network_failure_raises_unavailable(monkeypatch) -> None:
    def fake_get(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(basemap_module.requests, "get", fake_get)
    with pytest.raises(BasemapUnavailableError):
        load_basemap("https://example.org/world.json")


def test_http_error_raises_unavailable(monkeypatch) -> None:
    monkeypatch.setattr(basemap_module.requests, "get", lambda url, timeout: _FakeResponse({}, 404))
    with pytest.raises(BasemapUnavailableError):
        load_basemap("https://example.org/world.json")


# --------------------------------------------------------------------------- #
# Store
# --------------------------------------------------------------------------- #

def test_store_is_a_singleton() -> None:
    assert BasemapStore() is BasemapStore()


def test_store_loads_once(fresh_basemap_store, topology_file) -> None:
    first = fresh_basemap_store.get(topology_file)
    topology_file.unlink()

    assert fresh_basemap_store.get(topology_file) is first
    assert fresh_basemap_store.peek() is first
    assert fresh_basemap_store.is_loaded


def test_store_remembers_failure(fresh_basemap_store, tmp_path, topology_file) -> None:
    """After a failure the store does not retry until invalidated."""
    missing = tmp_path / "missing.json"
    with pytest.raises(BasemapUnavailableError):
        fresh_basemap_store.get(missing)
    assert fresh_basemap_store.failed

    with pytest.raises(BasemapUnavailableError):
        fresh_basemap_store.get(topology_file)
    assert fresh_basemap_store.peek() is None

    fresh_basemap_store.invalidate()
    assert len(fresh_basemap_store.get(topology_file)) == 3


def test_store_set_installs_decoded_basemap(fresh_basemap_store, topology) -> None:
    decoded = decode_topojson(topology)
    fresh_basemap_store.set(decoded)
    assert fresh_basemap_store.get("unused-source") is decoded
    assert not fresh_basemap_store.failed
