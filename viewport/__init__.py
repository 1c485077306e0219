"""
Viewport state and interaction for the globe and map views.

- Immutable view states and zoom-dependent styling
- Tween values and the scheduler that advances them
- Per-mode controllers for drag, wheel/pinch and auto-fit
"""

from viewport.view_state import (
    OrthographicViewState,
    MercatorViewState,
    ViewState,
    ease_cubic_in_out,
    stroke_width,
    marker_radius,
)
from viewport.tweening import Tween, TweenScheduler, run_tween
from viewport.controller import (
    ViewportController,
    OrthographicController,
    MercatorController,
    PointerMode,
    wheel_zoom_factor,
)

__all__ = [
    "OrthographicViewState",
    "MercatorViewState",
    "ViewState",
    "ease_cubic_in_out",
    "stroke_width",
    "marker_radius",
    "Tween",
    "TweenScheduler",
    "run_tween",
    "ViewportController",
    "OrthographicController",
    "MercatorController",
    "PointerMode",
    "wheel_zoom_factor",
]
