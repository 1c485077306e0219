"""
Viewport Controllers: Pointer, Wheel and Auto-Fit Handling.

One controller exists per visualization mode. It owns that mode's view
state exclusively and replaces it with a new immutable value on every drag
step, wheel event or animation tick.

State Machine
-------------
    idle --pointer_down--> dragging --pointer_move*--> dragging --pointer_up--> idle

Independently of dragging, wheel/pinch events change the zoom factor within
its extent, and `fit_path`/`reset` start tweens that `tick` advances.
Pointer-down interrupts a running tween so the user's grab always wins.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from common.constants import InteractionConstants
from common.logging_config import AuditLogger, get_logger
from common.types import Coordinates, Viewport
from geospatial.path_generation import great_circle_midpoint
from geospatial.projections import MERCATOR
from viewport.tweening import Tween, TweenScheduler
from viewport.view_state import MercatorViewState, OrthographicViewState, ViewState

logger = get_logger(__name__)


class PointerMode(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


def wheel_zoom_factor(delta_y: float, delta_factor: float = InteractionConstants.WHEEL_DELTA_FACTOR) -> float:
    """Multiplicative zoom for a wheel event: 2^(−Δy · 0.002)."""
    return float(2.0 ** (-delta_y * delta_factor))


class ViewportController(ABC):
    """Base class holding the view state, pointer mode and tween scheduler.

    Zoom clamps are recorded in the audit session named by `session_id`.
    """

    constraint_name = "zoom_extent"

    def __init__(self, initial_state: ViewState, session_id: Optional[str] = None):
        self._state = initial_state
        self.session_id = session_id
        self._mode = PointerMode.IDLE
        self._last_pointer: Optional[Tuple[float, float]] = None
        self._scheduler = TweenScheduler()
        self._audit = AuditLogger()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def pointer_mode(self) -> PointerMode:
        return self._mode

    @property
    def is_animating(self) -> bool:
        return self._scheduler.is_running

    @property
    def active_tween(self) -> Optional[Tween]:
        return self._scheduler.active

    # ------------------------------------------------------------------
    # Pointer handling
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> None:
        interrupted = self._scheduler.cancel()
        if interrupted is not None:
            logger.debug(f"Pointer interrupted tween '{interrupted.label}'")
        self._mode = PointerMode.DRAGGING
        self._last_pointer = (x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        """Apply a drag step; returns True when the state changed."""
        if self._mode is not PointerMode.DRAGGING or self._last_pointer is None:
            return False
        dx = x - self._last_pointer[0]
        dy = y - self._last_pointer[1]
        self._last_pointer = (x, y)
        if dx == 0 and dy == 0:
            return False
        self._state = self._drag(dx, dy)
        return True

    def pointer_up(self) -> None:
        self._mode = PointerMode.IDLE
        self._last_pointer = None

    def wheel(self, delta_y: float, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        """Zoom for a wheel event at an optional cursor position."""
        return self.zoom_by(wheel_zoom_factor(delta_y), x, y)

    def zoom_by(self, factor: float, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        """Multiply the zoom factor (pinch or wheel); returns True on change."""
        if factor <= 0:
            raise ValueError(f"Zoom factor must be positive, got {factor}")
        previous = self._state
        self._state = self._zoom(self._state.zoom_factor * factor, x, y)
        return self._state != previous

    # ------------------------------------------------------------------
    # Animation
    # ------------------------------------------------------------------

    def animate_to(self, target: ViewState, now_ms: float, duration_ms: float, label: str = "") -> Tween:
        """Start a tween from the current state, replacing any in flight."""
        tween = Tween(
            start_state=self._state,
            end_state=target,
            start_ms=now_ms,
            duration_ms=duration_ms,
            label=label,
        )
        self._scheduler.start(tween)
        return tween

    def cancel_animation(self) -> None:
        self._scheduler.cancel()

    def tick(self, now_ms: float) -> bool:
        """Advance the active tween; returns True when the state changed."""
        step = self._scheduler.advance(now_ms)
        if step is None:
            return False
        state, done = step
        changed = state != self._state
        self._state = state
        if done:
            logger.debug(f"Tween settled at {state}")
        return changed

    def fit_path(
        self,
        start: Coordinates,
        end: Coordinates,
        now_ms: float,
        duration_ms: float = InteractionConstants.AUTO_FIT_DURATION_MS
    ) -> Tween:
        """Animate to the view framing both endpoints."""
        return self.animate_to(self.fit_target(start, end), now_ms, duration_ms, label="auto-fit")

    def reset(
        self,
        now_ms: float,
        duration_ms: float = InteractionConstants.RESET_DURATION_MS
    ) -> Tween:
        """Animate back to the identity view."""
        return self.animate_to(self._state.identity(), now_ms, duration_ms, label="reset")

    def resize(self, viewport: Viewport) -> None:
        """Adopt a new canvas size, keeping the rest of the view."""
        self._scheduler.cancel()
        self._state = self._with_viewport(viewport)

    # ------------------------------------------------------------------
    # Mode-specific behaviour
    # ------------------------------------------------------------------

    def _clamp_zoom(self, requested: float, kind: str) -> float:
        lo, hi = self._state.zoom_extent
        clamped = float(np.clip(requested, lo, hi))
        if clamped != requested:
            self._audit.log_constraint_correction(
                constraint_name=self.constraint_name,
                original_value=requested,
                corrected_value=clamped,
                context={"event": kind},
                session_id=self.session_id,
            )
        return clamped

    @abstractmethod
    def _drag(self, dx: float, dy: float) -> ViewState:
        pass

    @abstractmethod
    def _zoom(self, requested: float, x: Optional[float], y: Optional[float]) -> ViewState:
        pass

    @abstractmethod
    def _with_viewport(self, viewport: Viewport) -> ViewState:
        pass

    @abstractmethod
    def fit_target(self, start: Coordinates, end: Coordinates) -> ViewState:
        """View state that frames both endpoints (depends only on inputs)."""
        pass


def _nearest_turn(angle: float, reference: float) -> float:
    """The 360° equivalent of `angle` closest to `reference`."""
    return float(angle + 360.0 * np.round((reference - angle) / 360.0))


class OrthographicController(ViewportController):
    """Rotate/zoom controller for the globe.

    Drag rotates the sphere by (dx·k·100, −dy·k·100) degrees with
    k = sensitivity / scale, so the same pointer travel turns a zoomed-in
    globe less.
    """

    constraint_name = "orthographic_zoom_extent"

    def __init__(
        self,
        viewport: Viewport,
        sensitivity: float = InteractionConstants.DRAG_SENSITIVITY,
        zoom_extent: Tuple[float, float] = InteractionConstants.ORTHOGRAPHIC_ZOOM_EXTENT,
        session_id: Optional[str] = None
    ):
        super().__init__(
            OrthographicViewState(viewport=viewport, zoom_extent=tuple(zoom_extent)), session_id=session_id
        )
        self.sensitivity = sensitivity

    def _drag(self, dx: float, dy: float) -> OrthographicViewState:
        state = self._state
        k = self.sensitivity / (state.scale or 1.0)
        lam, phi, gamma = state.rotation
        gain = InteractionConstants.DRAG_GAIN
        return state.with_rotation((lam + dx * k * gain, phi - dy * k * gain, gamma))

    def _zoom(self, requested: float, x: Optional[float], y: Optional[float]) -> OrthographicViewState:
        # The globe always scales about its centre; the cursor is ignored
        return self._state.with_zoom(self._clamp_zoom(requested, "zoom"))

    def _with_viewport(self, viewport: Viewport) -> OrthographicViewState:
        return OrthographicViewState(
            viewport=viewport,
            rotation=self._state.rotation,
            zoom=self._state.zoom,
            zoom_extent=self._state.zoom_extent,
        )

    def fit_target(self, start: Coordinates, end: Coordinates) -> OrthographicViewState:
        """Rotate so the great-circle midpoint sits at the globe's centre.

        Yaw −midpoint.lon and pitch −midpoint.lat are each replaced by
        their 360° equivalent nearest the current angle, so a globe dragged
        through whole turns unwinds the short way round. Roll and zoom are
        kept.
        """
        center = great_circle_midpoint(start, end)
        lam, phi, gamma = self._state.rotation
        return self._state.with_rotation(
            (_nearest_turn(-center.lon, lam), _nearest_turn(-center.lat, phi), gamma)
        )


class MercatorController(ViewportController):
    """Pan/zoom controller for the Mercator map."""

    constraint_name = "mercator_zoom_extent"

    def __init__(
        self,
        viewport: Viewport,
        zoom_extent: Tuple[float, float] = InteractionConstants.MERCATOR_ZOOM_EXTENT,
        padding: float = InteractionConstants.AUTO_FIT_PADDING,
        session_id: Optional[str] = None
    ):
        super().__init__(MercatorViewState(viewport=viewport, zoom_extent=tuple(zoom_extent)), session_id=session_id)
        self.padding = padding

    def _drag(self, dx: float, dy: float) -> MercatorViewState:
        s = self._state
        return s.with_transform(s.tx + dx, s.ty + dy, s.k)

    def _zoom(self, requested: float, x: Optional[float], y: Optional[float]) -> MercatorViewState:
        s = self._state
        k = self._clamp_zoom(requested, "zoom")
        if x is None or y is None:
            x, y = s.viewport.center
        # Keep the map point under the cursor fixed
        px = (x - s.tx) / s.k
        py = (y - s.ty) / s.k
        return s.with_transform(x - px * k, y - py * k, k)

    def _with_viewport(self, viewport: Viewport) -> MercatorViewState:
        s = self._state
        return MercatorViewState(viewport=viewport, tx=s.tx, ty=s.ty, k=s.k, zoom_extent=s.zoom_extent)

    def fit_target(self, start: Coordinates, end: Coordinates) -> MercatorViewState:
        """Zoom and pan so the endpoints' bounding box fills 90% of the view.

        Endpoints are projected as given at the baseline (identity transform),
        so both markers end up inside the frame. A route crossing the
        antimeridian is drawn in two pieces meeting the map edges, which the
        box then spans.
        """
        s = self._state
        xs, ys = MERCATOR.project_baseline(
            np.array([start.lat, end.lat]), np.array([start.lon, end.lon]), s
        )
        width, height = s.viewport.width, s.viewport.height
        dx = float(xs.max() - xs.min())
        dy = float(ys.max() - ys.min())
        cx = float(xs.max() + xs.min()) / 2.0
        cy = float(ys.max() + ys.min()) / 2.0

        extent = max(dx / width, dy / height)
        requested = self.padding / extent if extent > 0 else s.zoom_extent[1]
        k = self._clamp_zoom(requested, "auto-fit")
        return s.with_transform(width / 2.0 - k * cx, height / 2.0 - k * cy, k)