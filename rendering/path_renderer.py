"""
Path Rendering: GeoPath to Screen Primitives.

This module turns a sampled geographic path and the current view state into
polylines and endpoint markers. Geometry is computed once per request (the
GeoPath); only projection runs per frame.

Rendering Rules
---------------
1. On the orthographic globe the projected path is split into runs of
   consecutive visible samples. A run never crosses the back face.
   On the Mercator map the path is cut at the antimeridian, so a route
   crossing ±180° leaves one map edge and re-enters at the other.
2. Markers sit at the requested endpoints, not at the last sample of the
   continuous path. Markers whose endpoint is on the back face are not
   emitted.
3. Stroke width is 2/√k and marker radius 5/√k for zoom factor k, so
   overlays thin out gently as the user zooms in.
4. A newly visualized path draws in over its screen length while the
   markers grow in after a delay (see `RevealTiming`).
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from common.constants import InteractionConstants, Palette
from common.logging_config import get_logger
from common.types import GeoPath, ProjectionKind
from geospatial.path_generation import split_at_antimeridian
from geospatial.projections import projection_for
from rendering.primitives import (
    Circle,
    Polyline,
    ProjectedPath,
    RenderPrimitive,
    Style,
    polyline_length,
    truncate_runs,
)
from viewport.view_state import ViewState, ease_cubic_in_out, marker_radius, stroke_width

logger = get_logger(__name__)


@dataclass(frozen=True)
class RevealTiming:
    """Presentation clock for the draw-in of a new path.

    Attributes
    ----------
    start_ms : float
        Clock time of the visualize request.
    duration_ms : float
        Time for the path to draw in from 0 to 100% of its length.
    marker_delay_ms : float
        Delay before the markers start growing.
    marker_fade_ms : float
        Time for the markers to reach full radius and opacity.
    """
    start_ms: float
    duration_ms: float = InteractionConstants.REVEAL_DURATION_MS
    marker_delay_ms: float = InteractionConstants.MARKER_DELAY_MS
    marker_fade_ms: float = InteractionConstants.MARKER_FADE_MS

    def path_fraction(self, now_ms: float) -> float:
        """Eased fraction of the path length drawn at `now_ms`."""
        if self.duration_ms <= 0:
            return 1.0
        return ease_cubic_in_out((now_ms - self.start_ms) / self.duration_ms)

    def marker_fraction(self, now_ms: float) -> float:
        """Eased marker scale/opacity at `now_ms`."""
        elapsed = now_ms - self.start_ms - self.marker_delay_ms
        if self.marker_fade_ms <= 0:
            return 1.0 if elapsed >= 0 else 0.0
        return ease_cubic_in_out(elapsed / self.marker_fade_ms)

    def is_complete(self, now_ms: float) -> bool:
        end = max(self.duration_ms, self.marker_delay_ms + self.marker_fade_ms)
        return now_ms - self.start_ms >= end


def project_path(path: GeoPath, state: ViewState) -> ProjectedPath:
    """Project every sample of a path with the projection matching `state`.

    Mercator tracks are cut at the antimeridian first; the cut shows up as an
    invisible vertex between the pieces.
    """
    projection = projection_for(state.kind)
    lats, lons = path.latitudes, path.longitudes
    if projection.kind is ProjectionKind.MERCATOR:
        lats, lons = split_at_antimeridian(lats, lons)
    xs, ys, visible = projection.project_arrays(lats, lons, state)
    visible = visible & np.isfinite(xs) & np.isfinite(ys)
    return ProjectedPath(xs=xs, ys=ys, visible=visible, metadata={"path_type": path.path_type.value})


class PathRenderer:
    """Render a GeoPath and its endpoint markers for a view state.

    Parameters
    ----------
    path_style : Style, optional
        Base style of the path stroke (width is overridden per zoom).
    marker_style : Style, optional
        Base style of the endpoint markers.
    """

    def __init__(
        self,
        path_style: Optional[Style] = None,
        marker_style: Optional[Style] = None
    ):
        self.path_style = path_style or Style(stroke=Palette.PATH_STROKE, stroke_width=2.0)
        self.marker_style = marker_style or Style(
            stroke=Palette.MARKER_STROKE, fill=Palette.MARKER_FILL, stroke_width=1.5
        )

    def render(
        self,
        path: GeoPath,
        state: ViewState,
        now_ms: Optional[float] = None,
        reveal: Optional[RevealTiming] = None
    ) -> List[RenderPrimitive]:
        """Build the primitives for one frame.

        Parameters
        ----------
        path : GeoPath
            Sampled path; longitudes may be unwrapped beyond ±180°.
        state : ViewState
            Current view state of the active mode.
        now_ms : float, optional
            Frame time. Required for the reveal animation to apply.
        reveal : RevealTiming, optional
            Draw-in timing. Without it the path is drawn complete.

        Returns
        -------
        List[RenderPrimitive]
            Path polylines (one per visible run) followed by the markers.
        """
        projected = project_path(path, state)
        runs = projected.visible_runs()
        total_length = sum(polyline_length(run) for run in runs)

        path_fraction = 1.0
        marker_fraction = 1.0
        if reveal is not None and now_ms is not None:
            path_fraction = reveal.path_fraction(now_ms)
            marker_fraction = reveal.marker_fraction(now_ms)

        style = Style(
            stroke=self.path_style.stroke,
            fill=None,
            stroke_width=float(stroke_width(state, self.path_style.stroke_width)),
            opacity=self.path_style.opacity,
        )
        primitives: List[RenderPrimitive] = []
        dash = (path_fraction * total_length, total_length)
        for run in truncate_runs(runs, path_fraction):
            primitives.append(Polyline(points=run, style=style, role="path", dash=dash))

        primitives.extend(self.render_markers(path, state, marker_fraction))
        return primitives

    def render_markers(
        self,
        path: GeoPath,
        state: ViewState,
        fraction: float = 1.0
    ) -> List[Circle]:
        """Endpoint markers scaled by `fraction`; back-face endpoints are skipped."""
        if fraction <= 0.0:
            return []

        projection = projection_for(state.kind)
        lats = np.array([path.start.lat, path.end.lat])
        lons = np.array([path.start.lon, path.end.lon])
        xs, ys, visible = projection.project_arrays(lats, lons, state)

        radius = float(marker_radius(state, InteractionConstants.BASE_MARKER_RADIUS)) * fraction
        style = Style(
            stroke=self.marker_style.stroke,
            fill=self.marker_style.fill,
            stroke_width=self.marker_style.stroke_width,
            opacity=self.marker_style.opacity * fraction,
        )
        markers = []
        for role, x, y, vis in zip(("start", "end"), xs, ys, visible):
            if not vis:
                logger.debug(f"Marker '{role}' is on the back face; not drawn")
                continue
            markers.append(Circle(x=float(x), y=float(y), r=radius, style=style, role=f"marker-{role}"))
        return markers
