"""
World Basemap Loading for the Path Visualizer.

This module decodes the world-outline dataset drawn under the paths and
keeps exactly one decoded copy per process. Both view modes share that copy
read-only; it is never mutated after load.

Supported Formats
-----------------
1. TopoJSON Topology (world-atlas `countries-110m.json` and similar):
   quantised, delta-encoded arcs; `Polygon` and `MultiPolygon` geometries;
   negative arc indices (~i) meaning arc i reversed.
2. GeoJSON `FeatureCollection`, `Feature` or bare geometry.

Sources
-------
A local file path or an HTTP(S) URL fetched with `requests`.

Failure Semantics
-----------------
A failed load raises `BasemapUnavailableError`. The store remembers the
failure and re-raises it on later calls instead of fetching again; callers
draw frames without land until `invalidate()` is called explicitly.
"""

import json
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
import requests

from common.logging_config import get_logger

logger = get_logger(__name__)


class BasemapUnavailableError(RuntimeError):
    """Raised when the world-outline dataset cannot be loaded or decoded."""


@dataclass(frozen=True, eq=False)
class LandPolygon:
    """One polygon of the basemap.

    Attributes
    ----------
    rings : tuple of ndarray
        Closed rings as read-only (N, 2) arrays of (lon, lat) in DEGREES.
        The first ring is the outer boundary, the rest are holes.
    feature_id : str, optional
        Identifier of the feature the polygon belongs to (e.g. ISO code).
    """
    rings: Tuple[NDArray[np.float64], ...]
    feature_id: Optional[str] = None

    @property
    def num_vertices(self) -> int:
        return sum(len(ring) for ring in self.rings)


@dataclass(frozen=True)
class BasemapProvenance:
    """Where a basemap came from.

    Attributes
    ----------
    source : str
        File path or URL the dataset was read from.
    format : str
        'topojson' or 'geojson'.
    loaded_at : datetime
        When the dataset was decoded.
    object_name : str, optional
        TopoJSON object that was decoded.
    """
    source: str
    format: str
    loaded_at: datetime
    object_name: Optional[str] = None


@dataclass(frozen=True, eq=False)
class BasemapPolygonSet:
    """Immutable collection of land polygons shared by all renderers."""
    polygons: Tuple[LandPolygon, ...]
    provenance: Optional[BasemapProvenance] = None

    def __len__(self) -> int:
        return len(self.polygons)

    def __iter__(self):
        return iter(self.polygons)

    @property
    def num_vertices(self) -> int:
        return sum(p.num_vertices for p in self.polygons)

    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_lat, max_lat, min_lon, max_lon) over every ring, in degrees."""
        if not self.polygons:
            raise ValueError("Empty basemap has no bounds")
        coords = np.concatenate([ring for p in self.polygons for ring in p.rings])
        return (
            float(coords[:, 1].min()), float(coords[:, 1].max()),
            float(coords[:, 0].min()), float(coords[:, 0].max()),
        )


# =============================================================================
# Decoding
# =============================================================================

def _frozen_ring(points: Iterable[Sequence[float]]) -> NDArray[np.float64]:
    ring = np.array([[p[0], p[1]] for p in points], dtype=np.float64)
    if ring.ndim != 2 or len(ring) < 3:
        raise BasemapUnavailableError(f"Ring with fewer than three positions: {ring.tolist()}")
    ring.setflags(write=False)
    return ring


def _decode_arcs(topology: Dict[str, Any]) -> List[NDArray[np.float64]]:
    """Absolute (lon, lat) positions of every arc of a topology."""
    transform = topology.get("transform")
    decoded = []
    for arc in topology.get("arcs", []):
        positions = np.array([p[:2] for p in arc], dtype=np.float64)
        if transform is not None and len(positions):
            positions = np.cumsum(positions, axis=0)
            positions = positions * np.asarray(transform["scale"], dtype=np.float64)
            positions = positions + np.asarray(transform["translate"], dtype=np.float64)
        decoded.append(positions)
    return decoded


def _stitch_ring(arc_indices: Sequence[int], arcs: List[NDArray[np.float64]]) -> NDArray[np.float64]:
    """Concatenate arcs into one ring, dropping each shared join point."""
    pieces = []
    for index in arc_indices:
        try:
            arc = arcs[~index][::-1] if index < 0 else arcs[index]
        except IndexError as e:
            raise BasemapUnavailableError(f"Arc index {index} out of range ({len(arcs)} arcs)") from e
        pieces.append(arc if not pieces else arc[1:])
    return _frozen_ring(np.concatenate(pieces))


def _topology_polygons(
    geometry: Dict[str, Any],
    arcs: List[NDArray[np.float64]]
) -> List[LandPolygon]:
    gtype = geometry.get("type")
    feature_id = geometry.get("id")
    feature_id = str(feature_id) if feature_id is not None else None

    if gtype == "GeometryCollection":
        polygons = []
        for child in geometry.get("geometries", []):
            polygons.extend(_topology_polygons(child, arcs))
        return polygons
    if gtype == "Polygon":
        parts = [geometry["arcs"]]
    elif gtype == "MultiPolygon":
        parts = geometry["arcs"]
    else:
        # Null and line geometries carry no land
        return []

    return [
        LandPolygon(rings=tuple(_stitch_ring(ring, arcs) for ring in polygon), feature_id=feature_id)
        for polygon in parts
        if polygon
    ]


def decode_topojson(topology: Dict[str, Any], object_name: Optional[str] = None) -> BasemapPolygonSet:
    """Decode one object of a TopoJSON topology into land polygons.

    Parameters
    ----------
    topology : dict
        Parsed TopoJSON document (`"type": "Topology"`).
    object_name : str, optional
        Object to decode. Defaults to 'countries', then 'land', then the
        first object in the document.

    Returns
    -------
    BasemapPolygonSet
        Decoded polygons with (lon, lat) rings in degrees.

    Raises
    ------
    BasemapUnavailableError
        If the document has no usable object or references missing arcs.
    """
    objects = topology.get("objects") or {}
    if not objects:
        raise BasemapUnavailableError("TopoJSON document has no objects")

    if object_name is None:
        for candidate in ("countries", "land"):
            if candidate in objects:
                object_name = candidate
                break
        else:
            object_name = next(iter(objects))
    if object_name not in objects:
        raise BasemapUnavailableError(f"TopoJSON object '{object_name}' not found")

    arcs = _decode_arcs(topology)
    polygons = _topology_polygons(objects[object_name], arcs)
    logger.info(f"Decoded {len(polygons)} polygons from TopoJSON object '{object_name}'")
    provenance = BasemapProvenance(
        source="<memory>", format="topojson", loaded_at=datetime.now(), object_name=object_name
    )
    return BasemapPolygonSet(polygons=tuple(polygons), provenance=provenance)


def _geojson_polygons(geometry: Optional[Dict[str, Any]], feature_id: Optional[str]) -> List[LandPolygon]:
    if not geometry:
        return []
    gtype = geometry.get("type")
    if gtype == "GeometryCollection":
        polygons = []
        for child in geometry.get("geometries", []):
            polygons.extend(_geojson_polygons(child, feature_id))
        return polygons
    if gtype == "Polygon":
        parts = [geometry["coordinates"]]
    elif gtype == "MultiPolygon":
        parts = geometry["coordinates"]
    else:
        return []
    return [
        LandPolygon(rings=tuple(_frozen_ring(ring) for ring in polygon), feature_id=feature_id)
        for polygon in parts
        if polygon
    ]


def decode_geojson(document: Dict[str, Any]) -> BasemapPolygonSet:
    """Decode a GeoJSON FeatureCollection, Feature or geometry."""
    dtype = document.get("type")
    if dtype == "FeatureCollection":
        features = document.get("features", [])
    elif dtype == "Feature":
        features = [document]
    else:
        features = [{"type": "Feature", "geometry": document}]

    polygons: List[LandPolygon] = []
    for feature in features:
        fid = feature.get("id")
        if fid is None:
            fid = (feature.get("properties") or {}).get("name")
        polygons.extend(_geojson_polygons(feature.get("geometry"), str(fid) if fid is not None else None))
    logger.info(f"Decoded {len(polygons)} polygons from GeoJSON")
    return BasemapPolygonSet(polygons=tuple(polygons))


def decode_basemap(document: Dict[str, Any], source: str = "<memory>") -> BasemapPolygonSet:
    """Decode a parsed TopoJSON or GeoJSON document and attach provenance."""
    if not isinstance(document, dict):
        raise BasemapUnavailableError(f"Basemap document from {source} is not a JSON object")
    try:
        if document.get("type") == "Topology":
            decoded = decode_topojson(document)
            fmt = "topojson"
        else:
            decoded = decode_geojson(document)
            fmt = "geojson"
    except (KeyError, TypeError, ValueError) as e:
        raise BasemapUnavailableError(f"Malformed basemap document from {source}: {e}") from e

    object_name = decoded.provenance.object_name if decoded.provenance else None
    provenance = BasemapProvenance(
        source=source, format=fmt, loaded_at=datetime.now(), object_name=object_name
    )
    return BasemapPolygonSet(polygons=decoded.polygons, provenance=provenance)


# =============================================================================
# Loading
# =============================================================================

def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def load_basemap(source: Union[str, Path], timeout: float = 10.0) -> BasemapPolygonSet:
    """Read and decode a basemap from a file path or URL.

    Raises
    ------
    BasemapUnavailableError
        On any network, file, JSON or format error.
    """
    source = str(source)
    if _is_url(source):
        logger.info(f"Fetching basemap from {source}")
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
            document = response.json()
        except requests.RequestException as e:
            raise BasemapUnavailableError(f"Failed to fetch basemap from {source}: {e}") from e
        except ValueError as e:
            raise BasemapUnavailableError(f"Basemap at {source} is not valid JSON: {e}") from e
    else:
        logger.info(f"Reading basemap from {source}")
        try:
            with open(source) as f:
                document = json.load(f)
        except OSError as e:
            raise BasemapUnavailableError(f"Failed to read basemap {source}: {e}") from e
        except ValueError as e:
            raise BasemapUnavailableError(f"Basemap {source} is not valid JSON: {e}") from e

    return decode_basemap(document, source=source)


class BasemapStore:
    """Process-wide, load-once cache of the decoded basemap.

    The first `get()` loads the dataset; every later call returns the same
    object. A failed load is remembered and re-raised without fetching
    again until `invalidate()` is called.

    Thread Safety
    -------------
    Instance creation and the load step are guarded by a lock so hosts that
    render on worker threads still load the dataset exactly once.

    Examples
    --------
    >>> store = BasemapStore()
    >>> store is BasemapStore()
    True
    """

    _instance: Optional['BasemapStore'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'BasemapStore':
        """Singleton pattern for the shared basemap."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._basemap: Optional[BasemapPolygonSet] = None
        self._error: Optional[BasemapUnavailableError] = None
        self._source: Optional[str] = None
        self._load_lock = threading.Lock()
        self._initialized = True

    @property
    def is_loaded(self) -> bool:
        return self._basemap is not None

    @property
    def failed(self) -> bool:
        return self._error is not None

    def peek(self) -> Optional[BasemapPolygonSet]:
        """The loaded basemap, or None; never triggers a load."""
        return self._basemap

    def get(self, source: Union[str, Path], timeout: float = 10.0) -> BasemapPolygonSet:
        """Return the shared basemap, loading it from `source` on first use.

        Raises
        ------
        BasemapUnavailableError
            If loading failed now or on an earlier call.
        """
        if self._basemap is not None:
            return self._basemap
        with self._load_lock:
            if self._basemap is not None:
                return self._basemap
            if self._error is not None:
                raise self._error
            self._source = str(source)
            try:
                self._basemap = load_basemap(source, timeout=timeout)
            except BasemapUnavailableError as e:
                logger.error(f"Basemap unavailable: {e}")
                self._error = e
                raise
            logger.info(
                f"Basemap loaded: {len(self._basemap)} polygons, "
                f"{self._basemap.num_vertices} vertices"
            )
            return self._basemap

    def set(self, basemap: BasemapPolygonSet) -> None:
        """Install an already decoded basemap (e.g. bundled with the host)."""
        with self._load_lock:
            self._basemap = basemap
            self._error = None

    def invalidate(self) -> None:
        """Forget the loaded basemap and any remembered failure."""
        with self._load_lock:
            self._basemap = None
            self._error = None
            self._source = None
        logger.info("Basemap store invalidated")
