"""
Map Projections from the Sphere to Screen Coordinates.

This module provides the two projections the visualizer draws with: the
orthographic globe and the cylindrical Mercator map. Each projection is a
pure function of a coordinate and an immutable view state; nothing here is
mutated when the user drags or zooms.

Scientific Context
------------------
Domain: Cartography
Model: Sphere; azimuthal (orthographic) and cylindrical conformal (Mercator)

Projection Properties
---------------------
1. Orthographic: perspective from infinite distance. Shows exactly one
   hemisphere; points farther than π/2 from the view centre are on the back
   face and are reported as not visible.
2. Mercator: conformal, rhumb lines are straight. Undefined at the poles,
   so latitude is clamped to ±89.9999° before projecting.

Screen Frame
------------
x grows to the right and y grows downward, the convention of SVG/canvas
drawing backends.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper 1395.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from common.types import Coordinates, ProjectionKind, ScreenPoint
from geospatial.coordinate_models import (
    normalize_longitude_deg,
    rotate_geographic,
    rotate_geographic_inverse,
)
from geospatial.distance_calculations import stretched_latitude

if TYPE_CHECKING:
    from viewport.view_state import MercatorViewState, OrthographicViewState, ViewState

ProjectedArrays = Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.bool_]]


class ProjectionAdapter(ABC):
    """Abstract base class for screen projections.

    All projections in this system implement this interface so the path and
    basemap renderers can stay projection-agnostic.
    """

    @property
    @abstractmethod
    def kind(self) -> ProjectionKind:
        """Projection variant."""
        pass

    @property
    @abstractmethod
    def culls_back_face(self) -> bool:
        """Whether some points of the sphere are not visible."""
        pass

    @abstractmethod
    def project_arrays(
        self,
        lat_deg: NDArray[np.float64],
        lon_deg: NDArray[np.float64],
        state: "ViewState"
    ) -> ProjectedArrays:
        """Transform arrays of coordinates to screen space.

        Parameters
        ----------
        lat_deg, lon_deg : ndarray
            Coordinates in degrees (longitudes may lie outside [-180, 180]).
        state : ViewState
            Current view state for this projection.

        Returns
        -------
        Tuple[ndarray, ndarray, ndarray]
            (x, y, visible) in screen pixels.
        """
        pass

    @abstractmethod
    def invert(self, x: float, y: float, state: "ViewState") -> Optional[Tuple[float, float]]:
        """Screen point back to (lat_deg, lon_deg), or None off the sphere."""
        pass

    def project(self, coords: Coordinates, state: "ViewState") -> Optional[ScreenPoint]:
        """Project a single coordinate; None when it is not visible."""
        xs, ys, visible = self.project_arrays(
            np.array([coords.lat]), np.array([coords.lon]), state
        )
        if not visible[0]:
            return None
        return float(xs[0]), float(ys[0])


class OrthographicProjection(ProjectionAdapter):
    """Orthographic globe projection.

    Notes
    -----
    After rotating the sphere by the view's (λ, φ, γ), a point (φ', λ')
    projects to x = cos φ' sin λ', y = sin φ'. Its angular distance c from
    the view centre satisfies cos c = cos φ' cos λ', so the point is on the
    visible hemisphere iff cos φ' cos λ' ≥ 0.
    """

    @property
    def kind(self) -> ProjectionKind:
        return ProjectionKind.ORTHOGRAPHIC

    @property
    def culls_back_face(self) -> bool:
        return True

    def rotated_unit_vectors(
        self,
        lat_deg: NDArray[np.float64],
        lon_deg: NDArray[np.float64],
        state: "OrthographicViewState"
    ) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """View-frame components (x right, y up, z toward the viewer)."""
        lat, lon = rotate_geographic(
            np.radians(lat_deg), np.radians(lon_deg), state.rotation
        )
        cos_lat = np.cos(lat)
        return cos_lat * np.sin(lon), np.sin(lat), cos_lat * np.cos(lon)

    def project_arrays(
        self,
        lat_deg: NDArray[np.float64],
        lon_deg: NDArray[np.float64],
        state: "OrthographicViewState"
    ) -> ProjectedArrays:
        x, y, depth = self.rotated_unit_vectors(
            np.asarray(lat_deg, dtype=np.float64),
            np.asarray(lon_deg, dtype=np.float64),
            state
        )
        cx, cy = state.viewport.center
        scale = state.scale
        return cx + scale * x, cy - scale * y, depth >= 0.0

    def invert(self, x: float, y: float, state: "OrthographicViewState") -> Optional[Tuple[float, float]]:
        cx, cy = state.viewport.center
        u = (x - cx) / state.scale
        v = (cy - y) / state.scale
        rho_sq = u * u + v * v
        if rho_sq > 1.0:
            return None
        depth = np.sqrt(1.0 - rho_sq)
        lat = np.arctan2(v, np.hypot(u, depth))
        lon = np.arctan2(u, depth)
        orig_lat, orig_lon = rotate_geographic_inverse(lat, lon, state.rotation)
        return float(np.degrees(orig_lat)), float(normalize_longitude_deg(np.degrees(orig_lon)))

    def view_center(self, state: "OrthographicViewState") -> Tuple[float, float]:
        """Geographic (lat_deg, lon_deg) shown at the centre of the globe."""
        lat, lon = rotate_geographic_inverse(0.0, 0.0, state.rotation)
        return float(np.degrees(lat)), float(normalize_longitude_deg(np.degrees(lon)))


class MercatorProjection(ProjectionAdapter):
    """Cylindrical Mercator map with a post-projection pan/zoom transform.

    Notes
    -----
    x = s·(λ − λ0) + w/2,  y = −s·ln tan(π/4 + φ/2) + h/2, then
    X = k·x + tx, Y = k·y + ty.
    """

    def __init__(self, central_meridian_deg: float = 0.0):
        self._central_meridian = central_meridian_deg

    @property
    def kind(self) -> ProjectionKind:
        return ProjectionKind.MERCATOR

    @property
    def culls_back_face(self) -> bool:
        return False

    def project_baseline(
        self,
        lat_deg: NDArray[np.float64],
        lon_deg: NDArray[np.float64],
        state: "MercatorViewState"
    ) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Project without the pan/zoom transform (the identity view)."""
        lat = np.radians(np.asarray(lat_deg, dtype=np.float64))
        lon = np.radians(np.asarray(lon_deg, dtype=np.float64) - self._central_meridian)
        cx, cy = state.viewport.center
        scale = state.baseline_scale
        return cx + scale * lon, cy - scale * stretched_latitude(lat)

    def project_arrays(
        self,
        lat_deg: NDArray[np.float64],
        lon_deg: NDArray[np.float64],
        state: "MercatorViewState"
    ) -> ProjectedArrays:
        x, y = self.project_baseline(lat_deg, lon_deg, state)
        xs = state.k * x + state.tx
        ys = state.k * y + state.ty
        return xs, ys, np.ones(np.shape(xs), dtype=bool)

    def invert(self, x: float, y: float, state: "MercatorViewState") -> Optional[Tuple[float, float]]:
        bx = (x - state.tx) / state.k
        by = (y - state.ty) / state.k
        cx, cy = state.viewport.center
        scale = state.baseline_scale
        lon = (bx - cx) / scale
        psi = (cy - by) / scale
        lat = 2 * np.arctan(np.exp(psi)) - np.pi / 2
        return float(np.degrees(lat)), float(normalize_longitude_deg(np.degrees(lon) + self._central_meridian))


ORTHOGRAPHIC = OrthographicProjection()
MERCATOR = MercatorProjection()


def projection_for(kind: ProjectionKind) -> ProjectionAdapter:
    """Shared stateless projection instance for a projection kind."""
    return ORTHOGRAPHIC if ProjectionKind(kind) is ProjectionKind.ORTHOGRAPHIC else MERCATOR
