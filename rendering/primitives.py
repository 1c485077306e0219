"""
Screen-space render primitives handed to the drawing backend.

Primitives are rebuilt for every frame and owned by the caller; the core
never keeps a reference to one after returning it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from common.types import ScreenPoint


@dataclass(frozen=True)
class Style:
    """Drawing style: colours as CSS strings, widths in pixels."""
    stroke: Optional[str] = None
    fill: Optional[str] = None
    stroke_width: float = 1.0
    opacity: float = 1.0


@dataclass(frozen=True)
class Polyline:
    """Open polyline; `dash` is (visible length, total length) for draw-in."""
    points: Tuple[ScreenPoint, ...]
    style: Style
    role: str = "path"
    dash: Optional[Tuple[float, float]] = None

    def length(self) -> float:
        return polyline_length(self.points)


@dataclass(frozen=True)
class Polygon:
    """Polygon made of closed rings (first ring outer, others holes)."""
    rings: Tuple[Tuple[ScreenPoint, ...], ...]
    style: Style
    role: str = "land"
    feature_id: Optional[str] = None


@dataclass(frozen=True)
class Circle:
    """Circle; invisible circles are culled rather than emitted."""
    x: float
    y: float
    r: float
    style: Style
    role: str = "marker"
    visible: bool = True


RenderPrimitive = Union[Polyline, Polygon, Circle]


@dataclass(frozen=True, eq=False)
class ProjectedPath:
    """A projected sample sequence with per-vertex visibility flags."""
    xs: NDArray[np.float64]
    ys: NDArray[np.float64]
    visible: NDArray[np.bool_]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def visible_runs(self) -> List[Tuple[ScreenPoint, ...]]:
        """Split into maximal runs of consecutive visible vertices.

        Runs with fewer than two vertices cannot be stroked and are dropped.
        """
        runs: List[Tuple[ScreenPoint, ...]] = []
        current: List[ScreenPoint] = []
        for x, y, vis in zip(self.xs, self.ys, self.visible):
            if vis:
                current.append((float(x), float(y)))
                continue
            if len(current) >= 2:
                runs.append(tuple(current))
            current = []
        if len(current) >= 2:
            runs.append(tuple(current))
        return runs


def polyline_length(points: Sequence[ScreenPoint]) -> float:
    if len(points) < 2:
        return 0.0
    arr = np.asarray(points, dtype=np.float64)
    return float(np.sum(np.hypot(np.diff(arr[:, 0]), np.diff(arr[:, 1]))))


def truncate_runs(
    runs: Sequence[Tuple[ScreenPoint, ...]],
    fraction: float
) -> List[Tuple[ScreenPoint, ...]]:
    """Keep the leading `fraction` of the total length of a list of runs.

    The cut point is interpolated inside the segment where the remaining length runs
    out, so the draw-in advances smoothly rather than vertex by vertex.
    """
    if fraction >= 1.0:
        return list(runs)
    total = sum(polyline_length(run) for run in runs)
    remaining = max(fraction, 0.0) * total
    result: List[Tuple[ScreenPoint, ...]] = []
    if remaining <= 0.0:
        return result

    for run in runs:
        kept: List[ScreenPoint] = [run[0]]
        for (x0, y0), (x1, y1) in zip(run[:-1], run[1:]):
            seg = float(np.hypot(x1 - x0, y1 - y0))
            if seg <= remaining:
                kept.append((x1, y1))
                remaining -= seg
                continue
            t = remaining / seg if seg > 0 else 0.0
            kept.append((x0 + (x1 - x0) * t, y0 + (y1 - y0) * t))
            remaining = 0.0
            break
        if len(kept) >= 2:
            result.append(tuple(kept))
        if remaining <= 0.0:
            break
    return result
