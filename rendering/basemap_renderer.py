"""
Basemap Rendering: Background, Graticule and Land Polygons.

Scientific Context
------------------
Domain: Cartography
Model: Sphere, orthographic and Mercator projections

Hemisphere Clipping
-------------------
On the globe a land ring can straddle the horizon. Each ring is rotated into
the view frame (x right, y up, z toward the viewer) and clipped against the
plane z = 0 with the Sutherland–Hodgman rule:

1. An edge inside → inside keeps its end vertex.
2. An edge inside → outside ends at its crossing, pushed onto the limb.
3. An edge outside → inside starts at its crossing; the limb between the
   previous exit and this entry is filled with arc samples so the polygon
   follows the globe's outline instead of cutting a chord across it.

The shorter way round the limb is taken between an exit and the next entry.

On the Mercator map rings are projected as they are; the world-atlas data
is already cut at the antimeridian.
"""

from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from common.constants import Palette
from common.logging_config import get_logger
from data_ingestion.basemap import BasemapPolygonSet
from geospatial.projections import MERCATOR, ORTHOGRAPHIC
from rendering.graticule import render_graticule
from rendering.primitives import Circle, Polygon, RenderPrimitive, Style
from viewport.view_state import MercatorViewState, OrthographicViewState, ViewState

logger = get_logger(__name__)

LIMB_STEP_RAD = np.radians(2.0)


def _limb_arc(theta_from: float, theta_to: float, step: float = LIMB_STEP_RAD) -> NDArray[np.float64]:
    """Interior samples on the unit circle from one angle to another."""
    delta = (theta_to - theta_from + np.pi) % (2 * np.pi) - np.pi
    n = int(np.ceil(abs(delta) / step))
    if n <= 1:
        return np.empty((0, 2))
    thetas = theta_from + delta * np.arange(1, n) / n
    return np.column_stack([np.cos(thetas), np.sin(thetas)])


def _horizon_crossing(a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    """Point where edge a→b meets z = 0, pushed onto the unit limb."""
    t = a[2] / (a[2] - b[2])
    p = a[:2] + t * (b[:2] - a[:2])
    norm = np.hypot(p[0], p[1])
    if norm == 0:
        return p
    return p / norm


def clip_ring_to_hemisphere(
    lon_lat: NDArray[np.float64],
    state: OrthographicViewState
) -> Optional[NDArray[np.float64]]:
    """Clip a (lon, lat) ring to the visible hemisphere.

    Parameters
    ----------
    lon_lat : ndarray
        (N, 2) ring in degrees; a repeated closing vertex is allowed.
    state : OrthographicViewState
        View whose rotation defines the visible hemisphere.

    Returns
    -------
    ndarray or None
        (M, 2) ring in unit-disc coordinates (x right, y up), or None when
        nothing of the ring is visible.
    """
    ring = np.asarray(lon_lat, dtype=np.float64)
    if len(ring) > 1 and np.array_equal(ring[0], ring[-1]):
        ring = ring[:-1]
    if len(ring) < 3:
        return None

    x, y, z = ORTHOGRAPHIC.rotated_unit_vectors(ring[:, 1], ring[:, 0], state)
    inside = z >= 0.0
    if inside.all():
        return np.column_stack([x, y])
    if not inside.any():
        return None

    # Start on a visible vertex so every entry has a preceding exit
    start = int(np.argmax(inside))
    order = np.roll(np.arange(len(ring)), -start)
    vectors = np.column_stack([x, y, z])[order]
    inside = inside[order]

    out: List[NDArray[np.float64]] = []
    exit_theta: Optional[float] = None
    n = len(vectors)
    for i in range(n):
        a, b = vectors[i], vectors[(i + 1) % n]
        a_in, b_in = inside[i], inside[(i + 1) % n]
        if a_in and b_in:
            out.append(b[:2])
        elif a_in:
            crossing = _horizon_crossing(a, b)
            out.append(crossing)
            exit_theta = float(np.arctan2(crossing[1], crossing[0]))
        elif b_in:
            crossing = _horizon_crossing(a, b)
            entry_theta = float(np.arctan2(crossing[1], crossing[0]))
            if exit_theta is not None:
                out.extend(_limb_arc(exit_theta, entry_theta))
                exit_theta = None
            out.append(crossing)
            out.append(b[:2])

    if len(out) < 3:
        return None
    return np.vstack(out)


class BasemapRenderer:
    """Render the map background, graticule and land for a view state.

    Parameters
    ----------
    land_style, ocean_style, sphere_style : Style, optional
        Overrides for the default palette.
    draw_graticule : bool
        Whether to emit the 10° graticule.
    """

    def __init__(
        self,
        land_style: Optional[Style] = None,
        ocean_style: Optional[Style] = None,
        sphere_style: Optional[Style] = None,
        draw_graticule: bool = True
    ):
        self.land_style = land_style or Style(
            stroke=Palette.LAND_STROKE, fill=Palette.LAND_FILL, stroke_width=0.3
        )
        self.ocean_style = ocean_style or Style(fill=Palette.OCEAN_FILL)
        self.sphere_style = sphere_style or Style(
            stroke=Palette.SPHERE_STROKE, fill=Palette.OCEAN_FILL, stroke_width=0.5
        )
        self.draw_graticule = draw_graticule

    def render(self, basemap: Optional[BasemapPolygonSet], state: ViewState) -> List[RenderPrimitive]:
        """Background, then graticule, then land (bottom to top).

        A missing basemap yields the background and graticule only.
        """
        primitives: List[RenderPrimitive] = [self.render_background(state)]
        if self.draw_graticule:
            primitives.extend(render_graticule(state))
        if basemap is not None:
            primitives.extend(self.render_land(basemap, state))
        return primitives

    def render_background(self, state: ViewState) -> RenderPrimitive:
        if isinstance(state, OrthographicViewState):
            cx, cy = state.viewport.center
            return Circle(x=cx, y=cy, r=float(state.scale), style=self.sphere_style, role="sphere")
        w, h = state.viewport.width, state.viewport.height
        rect = ((0.0, 0.0), (w, 0.0), (w, h), (0.0, h))
        return Polygon(rings=(rect,), style=self.ocean_style, role="ocean")

    def render_land(self, basemap: BasemapPolygonSet, state: ViewState) -> List[Polygon]:
        if isinstance(state, OrthographicViewState):
            return self._render_land_orthographic(basemap, state)
        return self._render_land_mercator(basemap, state)

    def _render_land_mercator(self, basemap: BasemapPolygonSet, state: MercatorViewState) -> List[Polygon]:
        polygons = []
        for land in basemap:
            rings = []
            for ring in land.rings:
                xs, ys, _ = MERCATOR.project_arrays(ring[:, 1], ring[:, 0], state)
                rings.append(tuple(zip(xs.tolist(), ys.tolist())))
            polygons.append(Polygon(rings=tuple(rings), style=self.land_style, feature_id=land.feature_id))
        return polygons

    def _render_land_orthographic(
        self,
        basemap: BasemapPolygonSet,
        state: OrthographicViewState
    ) -> List[Polygon]:
        cx, cy = state.viewport.center
        scale = state.scale
        polygons = []
        culled = 0
        for land in basemap:
            rings = []
            for i, ring in enumerate(land.rings):
                clipped = clip_ring_to_hemisphere(ring, state)
                if clipped is None:
                    if i == 0:
                        break
                    continue
                xs = cx + scale * clipped[:, 0]
                ys = cy - scale * clipped[:, 1]
                rings.append(tuple(zip(xs.tolist(), ys.tolist())))
            if not rings:
                culled += 1
                continue
            polygons.append(Polygon(rings=tuple(rings), style=self.land_style, feature_id=land.feature_id))
        logger.debug(f"Globe frame: {len(polygons)} land polygons drawn, {culled} on the back face")
        return polygons
