"""Shared fixtures for the path visualizer tests."""

import json

import pytest

from common.types import Coordinates, Viewport
from data_ingestion.basemap import BasemapStore


@pytest.fixture(autouse=True)
def fresh_basemap_store():
    """Every test starts and ends with an empty process-wide basemap store."""
    store = BasemapStore()
    store.invalidate()
    yield store
    store.invalidate()


@pytest.fixture
def paris() -> Coordinates:
    return Coordinates(lat=48.8566, lon=2.3522)


@pytest.fixture
def new_york() -> Coordinates:
    return Coordinates(lat=40.7128, lon=-74.0060)


@pytest.fixture
def viewport() -> Viewport:
    return Viewport(800.0, 600.0)


@pytest.fixture
def topology() -> dict:
    """Small quantised TopoJSON with a polygon, a reversed-arc multipolygon and a null geometry."""
    return {
        "type": "Topology",
        "transform": {"scale": [1.0, 1.0], "translate": [0.0, 0.0]},
        "objects": {
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "arcs": [[0]], "id": "A"},
                    {"type": "MultiPolygon", "arcs": [[[-2]], [[2, 3]]], "id": "B"},
                    {"type": None},
                ],
            }
        },
        "arcs": [
            [[0, 0], [10, 0], [0, 10], [-10, 0], [0, -10]],
            [[20, 20], [5, 0], [0, 5], [-5, -5]],
            [[30, 0], [5, 0]],
            [[35, 0], [0, 5], [-5, -5]],
        ],
    }


@pytest.fixture
def topology_file(tmp_path, topology):
    path = tmp_path / "world.json"
    path.write_text(json.dumps(topology))
    return path
