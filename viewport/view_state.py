"""
Immutable View States for the Globe and the Map.

A view state is a value: every interaction computes the next state instead
of mutating the current one, so the frame on screen and the state being
dragged can never alias.

Invariants
----------
- OrthographicViewState.zoom lies in its zoom extent (default [0.8, 10]).
- MercatorViewState.k lies in its zoom extent (default [0.8, 18]).
Construction outside the extent raises ValueError; controllers clamp first.
"""

from dataclasses import dataclass, field, replace
from typing import ClassVar, Tuple, Union

import numpy as np

from common.constants import InteractionConstants
from common.types import ProjectionKind, Viewport


def ease_cubic_in_out(t: float) -> float:
    """Cubic in-out easing on [0, 1]."""
    t = min(max(t, 0.0), 1.0) * 2.0
    if t <= 1.0:
        return t * t * t / 2.0
    t -= 2.0
    return (t * t * t + 2.0) / 2.0


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _check_extent(name: str, value: float, extent: Tuple[float, float]) -> None:
    lo, hi = extent
    if not lo <= value <= hi:
        raise ValueError(f"{name}={value} outside its extent [{lo}, {hi}]")


@dataclass(frozen=True)
class OrthographicViewState:
    """View of the orthographic globe.

    Attributes
    ----------
    viewport : Viewport
        Canvas size.
    rotation : tuple of float
        (λ, φ, γ) sphere rotation in degrees.
    zoom : float
        Multiplier on the baseline scale min(w, h)/2.2.
    zoom_extent : tuple of float
        Allowed range for zoom.
    """
    kind: ClassVar[ProjectionKind] = ProjectionKind.ORTHOGRAPHIC

    viewport: Viewport
    rotation: Tuple[float, float, float] = InteractionConstants.DEFAULT_ROTATION
    zoom: float = 1.0
    zoom_extent: Tuple[float, float] = field(
        default=InteractionConstants.ORTHOGRAPHIC_ZOOM_EXTENT, compare=False
    )

    def __post_init__(self):
        object.__setattr__(self, "rotation", tuple(float(r) for r in self.rotation))
        _check_extent("zoom", self.zoom, self.zoom_extent)

    @property
    def baseline_scale(self) -> float:
        return min(self.viewport.width, self.viewport.height) / InteractionConstants.ORTHOGRAPHIC_SCALE_DIVISOR

    @property
    def scale(self) -> float:
        return self.baseline_scale * self.zoom

    @property
    def zoom_factor(self) -> float:
        return self.zoom

    def with_rotation(self, rotation: Tuple[float, float, float]) -> "OrthographicViewState":
        return replace(self, rotation=tuple(rotation))

    def with_zoom(self, zoom: float) -> "OrthographicViewState":
        return replace(self, zoom=zoom)

    def identity(self) -> "OrthographicViewState":
        return OrthographicViewState(viewport=self.viewport, zoom_extent=self.zoom_extent)

    def interpolate(self, other: "OrthographicViewState", t: float) -> "OrthographicViewState":
        """Component-wise interpolation toward another state at eased time t."""
        rotation = tuple(_lerp(a, b, t) for a, b in zip(self.rotation, other.rotation))
        zoom = float(np.clip(_lerp(self.zoom, other.zoom, t), *self.zoom_extent))
        return replace(self, rotation=rotation, zoom=zoom)


@dataclass(frozen=True)
class MercatorViewState:
    """View of the Mercator map.

    Attributes
    ----------
    viewport : Viewport
        Canvas size.
    tx, ty : float
        Pan offset in pixels applied after projection.
    k : float
        Zoom factor applied after projection.
    zoom_extent : tuple of float
        Allowed range for k.
    """
    kind: ClassVar[ProjectionKind] = ProjectionKind.MERCATOR

    viewport: Viewport
    tx: float = 0.0
    ty: float = 0.0
    k: float = 1.0
    zoom_extent: Tuple[float, float] = field(
        default=InteractionConstants.MERCATOR_ZOOM_EXTENT, compare=False
    )

    def __post_init__(self):
        _check_extent("k", self.k, self.zoom_extent)

    @property
    def baseline_scale(self) -> float:
        return self.viewport.width / (2 * np.pi)

    @property
    def zoom_factor(self) -> float:
        return self.k

    def with_transform(self, tx: float, ty: float, k: float) -> "MercatorViewState":
        return replace(self, tx=float(tx), ty=float(ty), k=float(k))

    def identity(self) -> "MercatorViewState":
        return MercatorViewState(viewport=self.viewport, zoom_extent=self.zoom_extent)

    def interpolate(self, other: "MercatorViewState", t: float) -> "MercatorViewState":
        k = float(np.clip(_lerp(self.k, other.k, t), *self.zoom_extent))
        return replace(
            self,
            tx=_lerp(self.tx, other.tx, t),
            ty=_lerp(self.ty, other.ty, t),
            k=k,
        )


ViewState = Union[OrthographicViewState, MercatorViewState]


def stroke_width(state: ViewState, base: float = InteractionConstants.BASE_STROKE_WIDTH) -> float:
    """Path stroke width for the current zoom: base / √k."""
    return base / np.sqrt(state.zoom_factor)


def marker_radius(state: ViewState, base: float = InteractionConstants.BASE_MARKER_RADIUS) -> float:
    """Endpoint marker radius for the current zoom: base / √k."""
    return base / np.sqrt(state.zoom_factor)
