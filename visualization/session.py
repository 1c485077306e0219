"""
Visualization Session: the Path Visualizer Facade.

A `PathVisualizer` ties the pieces together for one host surface: the two
viewport controllers (globe and map), the shared basemap, the current pair
of endpoints with their cached path geometry, and the presentation clock of
the path draw-in.

Request Ordering
----------------
A new visualize request cancels any in-flight auto-fit of both modes before
starting its own, and replaces the previous endpoints, path and reveal
clock in one step, so no stale overlay survives into the next frame.
Geocoding failures abort the request before any of that happens.

Time
----
Every time-dependent call takes `now_ms` from the host's monotonic clock.
When omitted, `viewport.tweening.monotonic_ms()` is used.
"""

import uuid
from typing import Dict, List, Optional, Tuple

import pint

from common.config import VisualizerConfig
from common.logging_config import AuditLogger, get_logger
from common.types import Coordinates, GeoPath, PathType, ViewMode, Viewport
from common.units import distance_in_units
from data_ingestion.basemap import BasemapPolygonSet, BasemapStore, BasemapUnavailableError
from data_ingestion.geocoding import GeocodingError, LocationPoint, LocationResolver
from geospatial.distance_calculations import (
    initial_bearing_deg,
    loxodromic_distance_km,
    orthodromic_distance_km,
    rhumb_bearing_deg,
)
from geospatial.path_generation import path_between
from geospatial.projections import projection_for
from rendering.basemap_renderer import BasemapRenderer
from rendering.path_renderer import PathRenderer, RevealTiming
from rendering.primitives import RenderPrimitive
from validation.path_checks import PathConsistencyChecker, ValidationResult
from viewport.controller import MercatorController, OrthographicController, ViewportController
from viewport.tweening import FrameCallback, monotonic_ms, run_tween
from viewport.view_state import ViewState

logger = get_logger(__name__)

MISSING_INPUT_MESSAGE = "Please enter both a start and end location."
FETCH_FAILED_PREFIX = "Failed to fetch location data: "

REPORT_UNITS = ("km", "nautical_mile", "mile")


class PathVisualizer:
    """Session state and operations of the orthodromic/loxodromic visualizer.

    Parameters
    ----------
    config : VisualizerConfig, optional
        Session configuration. Defaults to `VisualizerConfig()`.
    basemap_store : BasemapStore, optional
        Shared basemap cache. Defaults to the process-wide store.
    session_id : str, optional
        Identifier for the audit trail. Generated when omitted.

    Attributes
    ----------
    error : str or None
        User-facing message of the last failed request, cleared on success.

    Examples
    --------
    >>> viz = PathVisualizer()
    >>> path = viz.visualize(Coordinates(48.8566, 2.3522), Coordinates(40.7128, -74.0060), now_ms=0.0)
    >>> round(viz.distance_km())
    5837
    >>> viz.close()
    """

    def __init__(
        self,
        config: Optional[VisualizerConfig] = None,
        basemap_store: Optional[BasemapStore] = None,
        session_id: Optional[str] = None
    ):
        self.config = config or VisualizerConfig()
        self._path_type = self.config.path_type
        self._view_mode = self.config.view_mode

        self.session_id = session_id or f"navpath-{uuid.uuid4().hex[:8]}"
        self._audit = AuditLogger()
        self._audit.open_session(self.session_id, self.config.to_dict())

        viewport = self.config.viewport
        self._controllers: Dict[ViewMode, ViewportController] = {
            ViewMode.GLOBE: OrthographicController(
                viewport,
                sensitivity=self.config.drag_sensitivity,
                zoom_extent=self.config.orthographic_zoom_extent,
                session_id=self.session_id,
            ),
            ViewMode.MAP: MercatorController(
                viewport,
                zoom_extent=self.config.mercator_zoom_extent,
                session_id=self.session_id,
            ),
        }

        self._basemap_store = basemap_store or BasemapStore()
        self._basemap_renderer = BasemapRenderer()
        self._path_renderer = PathRenderer()

        self._endpoints: Optional[Tuple[LocationPoint, LocationPoint]] = None
        self._paths: Dict[PathType, GeoPath] = {}
        self._reveal: Optional[RevealTiming] = None
        self.error: Optional[str] = None

    # ------------------------------------------------------------------
    # Configuration surface
    # ------------------------------------------------------------------

    @property
    def path_type(self) -> PathType:
        return self._path_type

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    def set_path_type(self, path_type: PathType, now_ms: Optional[float] = None) -> None:
        """Switch the path model; a drawn path is refitted and redrawn."""
        path_type = PathType(path_type)
        if path_type is self._path_type:
            return
        self._path_type = path_type
        logger.info(f"Path type set to {path_type.value}")
        if self._endpoints is not None:
            now_ms = monotonic_ms() if now_ms is None else now_ms
            self._start_presentation(now_ms)

    def set_view_mode(self, view_mode: ViewMode) -> None:
        """Switch between globe and map; each mode keeps its own view state."""
        view_mode = ViewMode(view_mode)
        if view_mode is not self._view_mode:
            self._view_mode = view_mode
            logger.info(f"View mode set to {view_mode.value}")

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def controller(self) -> ViewportController:
        """Controller of the active view mode."""
        return self._controllers[self._view_mode]

    def controller_for(self, view_mode: ViewMode) -> ViewportController:
        return self._controllers[ViewMode(view_mode)]

    @property
    def state(self) -> ViewState:
        return self.controller.state

    @property
    def endpoints(self) -> Optional[Tuple[LocationPoint, LocationPoint]]:
        return self._endpoints

    @property
    def path(self) -> Optional[GeoPath]:
        """Cached geometry of the current path type, or None."""
        if self._endpoints is None:
            return None
        if self._path_type not in self._paths:
            start, end = self._endpoints
            self._paths[self._path_type] = path_between(
                start.coords,
                end.coords,
                self._path_type,
                loxodrome_segments=self.config.loxodrome_segments,
                samples_per_degree=self.config.great_circle_samples_per_degree,
            )
        return self._paths[self._path_type]

    @property
    def is_animating(self) -> bool:
        return any(c.is_animating for c in self._controllers.values())

    def needs_frame(self, now_ms: float) -> bool:
        """Whether a redraw is still pending (tween or path draw-in)."""
        if self.is_animating:
            return True
        return self._reveal is not None and not self._reveal.is_complete(now_ms)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def visualize(
        self,
        start: Coordinates,
        end: Coordinates,
        now_ms: Optional[float] = None,
        names: Tuple[str, str] = ("start", "end")
    ) -> GeoPath:
        """Show the path between two coordinates.

        Cancels in-flight auto-fits, replaces the previous path, and starts
        the auto-fit of both modes and the path draw-in.

        Returns
        -------
        GeoPath
            Geometry of the current path type.
        """
        now_ms = monotonic_ms() if now_ms is None else now_ms
        for controller in self._controllers.values():
            controller.cancel_animation()

        self._endpoints = (LocationPoint(names[0], start), LocationPoint(names[1], end))
        self._paths = {}
        self.error = None
        self._audit.log_request(self.session_id)

        path = self._start_presentation(now_ms)
        logger.info(
            f"Visualizing {names[0]} ({start.lat:.4f}, {start.lon:.4f}) -> "
            f"{names[1]} ({end.lat:.4f}, {end.lon:.4f}): "
            f"{self.distance_km():.1f} km {self._path_type.value}"
        )
        return path

    async def visualize_names(
        self,
        resolver: LocationResolver,
        start_name: str,
        end_name: str,
        now_ms: Optional[float] = None
    ) -> Optional[GeoPath]:
        """Resolve two place names concurrently, then visualize.

        On empty input or a geocoding failure `error` is set, None is
        returned and the current view is left untouched.
        """
        start_name = (start_name or "").strip()
        end_name = (end_name or "").strip()
        if not start_name or not end_name:
            self.error = MISSING_INPUT_MESSAGE
            return None

        try:
            start, end = await resolver.resolve_pair(start_name, end_name)
        except GeocodingError as e:
            self.error = f"{FETCH_FAILED_PREFIX}{e}"
            logger.error(self.error)
            return None

        return self.visualize(start.coords, end.coords, now_ms=now_ms, names=(start.name, end.name))

    def clear(self, now_ms: Optional[float] = None) -> None:
        """Remove the path and animate both modes back to their identity view."""
        now_ms = monotonic_ms() if now_ms is None else now_ms
        self._endpoints = None
        self._paths = {}
        self._reveal = None
        self.error = None
        for controller in self._controllers.values():
            controller.reset(now_ms, self.config.reset_duration_ms)

    def _start_presentation(self, now_ms: float) -> GeoPath:
        path = self.path
        start, end = self._endpoints
        for controller in self._controllers.values():
            controller.fit_path(start.coords, end.coords, now_ms, self.config.auto_fit_duration_ms)
        self._reveal = RevealTiming(
            start_ms=now_ms,
            duration_ms=self.config.reveal_duration_ms,
            marker_delay_ms=self.config.marker_delay_ms,
            marker_fade_ms=self.config.marker_fade_ms,
        )
        return path

    # ------------------------------------------------------------------
    # Distances
    # ------------------------------------------------------------------

    def distance_km(self, path_type: Optional[PathType] = None) -> Optional[float]:
        """Distance of the current endpoints for a path type (default: current)."""
        if self._endpoints is None:
            return None
        start, end = self._endpoints
        path_type = self._path_type if path_type is None else PathType(path_type)
        if path_type is PathType.LOXODROMIC:
            with self._audit.active_session(self.session_id):
                return loxodromic_distance_km(start.coords, end.coords)
        return orthodromic_distance_km(start.coords, end.coords)

    def distance_report(self) -> Optional[Dict[str, Dict[str, pint.Quantity]]]:
        """Both distances in kilometres, nautical miles and statute miles."""
        if self._endpoints is None:
            return None
        return {
            path_type.value: distance_in_units(self.distance_km(path_type), REPORT_UNITS)
            for path_type in PathType
        }

    def courses(self) -> Optional[Dict[str, float]]:
        """Departure course of each path type, degrees clockwise from north.

        The rhumb line keeps its course all the way; the great circle starts
        on the returned course and turns along the way.
        """
        if self._endpoints is None:
            return None
        start, end = self._endpoints
        with self._audit.active_session(self.session_id):
            rhumb = rhumb_bearing_deg(start.coords, end.coords)
        return {
            PathType.ORTHODROMIC.value: initial_bearing_deg(start.coords, end.coords),
            PathType.LOXODROMIC.value: rhumb,
        }

    def check_consistency(self, strict: bool = False) -> List[ValidationResult]:
        """Run the geometric consistency checks on both paths and both views.

        Raises
        ------
        ConsistencyViolation
            In strict mode, on the first failed check.
        """
        checker = PathConsistencyChecker(strict_mode=strict)
        states = [c.state for c in self._controllers.values()]
        if self._endpoints is None:
            return [checker.check_zoom_range(state) for state in states]

        start, end = self._endpoints
        results: List[ValidationResult] = []
        with self._audit.active_session(self.session_id):
            for path_type in PathType:
                path = path_between(
                    start.coords,
                    end.coords,
                    path_type,
                    loxodrome_segments=self.config.loxodrome_segments,
                    samples_per_degree=self.config.great_circle_samples_per_degree,
                )
                # View states are bound-checked once, with the active path type
                checked_states = states if path_type is self._path_type else ()
                results.extend(checker.check_all(start.coords, end.coords, path=path, states=checked_states))
        passed = sum(r.passed for r in results)
        logger.info(f"Consistency checks: {passed}/{len(results)} passed")
        return results

    # ------------------------------------------------------------------
    # Interaction forwarding (active mode only)
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> None:
        self.controller.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        return self.controller.pointer_move(x, y)

    def pointer_up(self) -> None:
        self.controller.pointer_up()

    def wheel(self, delta_y: float, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        return self.controller.wheel(delta_y, x, y)

    def pinch(self, factor: float, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        return self.controller.zoom_by(factor, x, y)

    def resize(self, width: float, height: float) -> None:
        viewport = Viewport(width, height)
        for controller in self._controllers.values():
            controller.resize(viewport)

    def coordinates_at(self, x: float, y: float) -> Optional[Coordinates]:
        """Geographic point under a screen position in the active mode.

        None when the position is off the globe.
        """
        state = self.state
        located = projection_for(state.kind).invert(x, y, state)
        if located is None:
            return None
        lat, lon = located
        return Coordinates(lat=min(max(lat, -90.0), 90.0), lon=lon)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def load_basemap(self) -> Optional[BasemapPolygonSet]:
        """Load the shared basemap; None (and a warning) when unavailable."""
        try:
            return self._basemap_store.get(self.config.basemap_source, timeout=self.config.request_timeout_s)
        except BasemapUnavailableError as e:
            logger.warning(f"Rendering without land: {e}")
            return None

    def tick(self, now_ms: Optional[float] = None) -> bool:
        """Advance the tweens of both modes; True when the active view changed."""
        now_ms = monotonic_ms() if now_ms is None else now_ms
        changed = {mode: c.tick(now_ms) for mode, c in self._controllers.items()}
        return changed[self._view_mode]

    def frame(self, now_ms: Optional[float] = None) -> List[RenderPrimitive]:
        """Advance animations to `now_ms` and build the active mode's primitives.

        Order, bottom to top: background, graticule, land, path, markers.
        The basemap is drawn only once it has been loaded.
        """
        now_ms = monotonic_ms() if now_ms is None else now_ms
        self.tick(now_ms)
        state = self.state
        primitives = self._basemap_renderer.render(self._basemap_store.peek(), state)
        path = self.path
        if path is not None:
            primitives.extend(self._path_renderer.render(path, state, now_ms=now_ms, reveal=self._reveal))
        return primitives

    async def animate(self, on_frame: Optional[FrameCallback] = None, clock=monotonic_ms) -> ViewState:
        """Drive the active mode's tween to completion on the event loop."""
        return await run_tween(self.controller, on_frame=on_frame, clock=clock)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the audit session."""
        self._audit.close_session(self.session_id)

    def __enter__(self) -> "PathVisualizer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
