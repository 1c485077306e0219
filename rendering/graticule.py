"""
Graticule: meridians and parallels at a fixed angular step.
"""

from functools import lru_cache
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from common.constants import Palette
from geospatial.projections import projection_for
from rendering.primitives import Polyline, ProjectedPath, Style
from viewport.view_state import ViewState

GraticuleLine = Tuple[NDArray[np.float64], NDArray[np.float64]]

# Meridians stop short of the poles where Mercator diverges
GRATICULE_LAT_LIMIT = 80.0


@lru_cache(maxsize=8)
def graticule_lines(step_deg: float = 10.0, precision_deg: float = 2.5) -> Tuple[GraticuleLine, ...]:
    """Sampled (lat, lon) arrays of every graticule line, in degrees.

    Meridians run from -80° to 80° latitude; parallels run a full turn of
    longitude. Results are cached and must be treated as read-only.
    """
    if step_deg <= 0 or precision_deg <= 0:
        raise ValueError("Graticule step and precision must be positive")

    lines: List[GraticuleLine] = []
    lat_samples = np.arange(-GRATICULE_LAT_LIMIT, GRATICULE_LAT_LIMIT + precision_deg / 2, precision_deg)
    for lon in np.arange(-180.0, 180.0, step_deg):
        lines.append((lat_samples, np.full_like(lat_samples, lon)))

    lon_samples = np.arange(-180.0, 180.0 + precision_deg / 2, precision_deg)
    for lat in np.arange(-GRATICULE_LAT_LIMIT, GRATICULE_LAT_LIMIT + step_deg / 2, step_deg):
        lines.append((np.full_like(lon_samples, lat), lon_samples))

    for lat, lon in lines:
        lat.setflags(write=False)
        lon.setflags(write=False)
    return tuple(lines)


def render_graticule(state: ViewState, style: Optional[Style] = None, step_deg: float = 10.0) -> List[Polyline]:
    """Project the graticule; on the globe each line is split at the horizon."""
    style = style or Style(stroke=Palette.GRATICULE_STROKE, stroke_width=0.5)
    projection = projection_for(state.kind)
    polylines: List[Polyline] = []
    for lats, lons in graticule_lines(step_deg):
        xs, ys, visible = projection.project_arrays(lats, lons, state)
        for run in ProjectedPath(xs, ys, visible).visible_runs():
            polylines.append(Polyline(points=run, style=style, role="graticule"))
    return polylines
