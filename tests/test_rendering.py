"""Tests for render primitives, path draw-in, the graticule and land clipping."""

import numpy as np
import pytest

from common.types import Coordinates, PathType
from data_ingestion.basemap import BasemapPolygonSet, LandPolygon
from geospatial.path_generation import great_circle_path, path_between
from geospatial.projections import MERCATOR
from rendering import (
    BasemapRenderer,
    Circle,
    PathRenderer,
    Polygon,
    Polyline,
    ProjectedPath,
    RevealTiming,
    clip_ring_to_hemisphere,
    graticule_lines,
    polyline_length,
    render_graticule,
    truncate_runs,
)
from viewport.view_state import MercatorViewState, OrthographicViewState


def _square(lon0: float, lon1: float, lat0: float, lat1: float) -> np.ndarray:
    return np.array([[lon0, lat0], [lon1, lat0], [lon1, lat1], [lon0, lat1], [lon0, lat0]])


def _basemap(*polygons: LandPolygon) -> BasemapPolygonSet:
    return BasemapPolygonSet(polygons=tuple(polygons))


# --------------------------------------------------------------------------- #
# Primitives
# --------------------------------------------------------------------------- #

def test_visible_runs_split_at_hidden_samples() -> None:
    """Single visible vertices between hidden ones cannot be stroked."""
    flags = np.array([True, True, False, True, True, False, True])
    xs = np.arange(7, dtype=float)
    projected = ProjectedPath(xs=xs, ys=np.zeros(7), visible=flags)

    runs = projected.visible_runs()
    assert runs == [((0.0, 0.0), (1.0, 0.0)), ((3.0, 0.0), (4.0, 0.0))]


def test_truncate_runs_interpolates_cut_point() -> None:
    runs = [((0.0, 0.0), (10.0, 0.0)), ((20.0, 0.0), (20.0, 10.0))]

    half = truncate_runs(runs, 0.5)
    assert half == [((0.0, 0.0), (10.0, 0.0))]

    three_quarters = truncate_runs(runs, 0.75)
    assert len(three_quarters) == 2
    assert three_quarters[1][-1] == pytest.approx((20.0, 5.0))

    assert truncate_runs(runs, 0.0) == []
    assert truncate_runs(runs, 1.0) == runs


def test_polyline_length() -> None:
    assert polyline_length([(0.0, 0.0), (3.0, 4.0)]) == 5.0
    assert polyline_length([(1.0, 1.0)]) == 0.0


# --------------------------------------------------------------------------- #
# Path renderer
# --------------------------------------------------------------------------- #

def test_mercator_path_renders_line_and_two_markers(viewport, paris, new_york) -> None:
    state = MercatorViewState(viewport=viewport, k=4.0)
    primitives = PathRenderer().render(great_circle_path(paris, new_york), state)

    lines = [p for p in primitives if isinstance(p, Polyline)]
    markers = [p for p in primitives if isinstance(p, Circle)]
    assert len(lines) == 1
    assert [m.role for m in markers] == ["marker-start", "marker-end"]
    assert lines[0].style.stroke_width == pytest.approx(1.0)
    assert markers[0].r == pytest.approx(2.5)
    assert primitives[-1] is markers[-1]


TOKYO = Coordinates(35.6762, 139.6503)
LOS_ANGELES = Coordinates(34.0522, -118.2437)


@pytest.mark.parametrize("path_type", list(PathType))
def test_seam_crossing_markers_sit_on_the_endpoints(viewport, path_type) -> None:
    state = MercatorViewState(viewport=viewport)
    markers = PathRenderer().render_markers(path_between(TOKYO, LOS_ANGELES, path_type), state)

    assert (markers[0].x, markers[0].y) == pytest.approx(MERCATOR.project(TOKYO, state))
    assert (markers[1].x, markers[1].y) == pytest.approx(MERCATOR.project(LOS_ANGELES, state))
    assert all(0.0 <= m.x <= viewport.width for m in markers)


@pytest.mark.parametrize("path_type", list(PathType))
def test_mercator_path_is_cut_at_the_antimeridian(viewport, path_type) -> None:
    """The route leaves the right map edge and re-enters at the left one."""
    state = MercatorViewState(viewport=viewport)
    primitives = PathRenderer().render(path_between(TOKYO, LOS_ANGELES, path_type), state)

    lines = [p for p in primitives if isinstance(p, Polyline)]
    assert len(lines) == 2
    assert all(-1e-6 <= x <= viewport.width + 1e-6 for line in lines for x, _ in line.points)
    west_piece, east_piece = lines
    assert west_piece.points[-1][0] == pytest.approx(viewport.width)
    assert east_piece.points[0][0] == pytest.approx(0.0, abs=1e-6)
    assert west_piece.points[-1][1] == pytest.approx(east_piece.points[0][1])


def test_globe_path_hides_back_face(viewport) -> None:
    """A path running onto the far side is cut at the horizon and loses its end marker."""
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0))
    path = great_circle_path(Coordinates(0, 0), Coordinates(0, 170))
    primitives = PathRenderer().render(path, state)

    lines = [p for p in primitives if isinstance(p, Polyline)]
    markers = [p for p in primitives if isinstance(p, Circle)]
    assert len(lines) == 1
    assert [m.role for m in markers] == ["marker-start"]
    scale = state.scale
    assert all(x <= 400.0 + scale + 1e-6 for x, _ in lines[0].points)


def test_reveal_draws_in_over_time(viewport, paris, new_york) -> None:
    state = MercatorViewState(viewport=viewport)
    path = great_circle_path(paris, new_york)
    renderer = PathRenderer()
    reveal = RevealTiming(start_ms=0.0)
    full = renderer.render(path, state)
    full_length = full[0].length()

    assert renderer.render(path, state, now_ms=0.0, reveal=reveal) == []

    halfway = renderer.render(path, state, now_ms=750.0, reveal=reveal)
    assert len(halfway) == 1
    assert halfway[0].length() == pytest.approx(full_length / 2, rel=1e-6)
    assert halfway[0].dash == pytest.approx((full_length / 2, full_length))

    growing = renderer.render(path, state, now_ms=1250.0, reveal=reveal)
    marker = [p for p in growing if isinstance(p, Circle)][0]
    assert marker.r == pytest.approx(2.5)
    assert marker.style.opacity == pytest.approx(0.5)

    done = renderer.render(path, state, now_ms=1500.0, reveal=reveal)
    assert done == full
    assert reveal.is_complete(1500.0)
    assert not reveal.is_complete(1499.0)


# --------------------------------------------------------------------------- #
# Graticule
# --------------------------------------------------------------------------- #

def test_graticule_lines_are_cached_and_read_only() -> None:
    lines = graticule_lines()
    assert lines is graticule_lines()
    assert len(lines) == 36 + 17
    lats, _ = lines[0]
    assert lats.min() == -80.0 and lats.max() == 80.0
    with pytest.raises(ValueError):
        lats[0] = 0.0


def test_graticule_renders_every_line_on_the_map(viewport) -> None:
    polylines = render_graticule(MercatorViewState(viewport=viewport))
    assert len(polylines) == 53
    assert {p.role for p in polylines} == {"graticule"}


def test_graticule_is_split_on_the_globe(viewport) -> None:
    state = OrthographicViewState(viewport=viewport)
    polylines = render_graticule(state)
    cx, cy = viewport.center
    for line in polylines:
        pts = np.array(line.points)
        assert np.all(np.hypot(pts[:, 0] - cx, pts[:, 1] - cy) <= state.scale + 1e-6)


# --------------------------------------------------------------------------- #
# Land clipping and basemap renderer
# --------------------------------------------------------------------------- #

def test_front_ring_is_kept_whole(viewport) -> None:
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0))
    clipped = clip_ring_to_hemisphere(_square(-10, 10, -10, 10), state)
    assert clipped.shape == (4, 2)


def test_back_ring_is_dropped(viewport) -> None:
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0))
    assert clip_ring_to_hemisphere(_square(170, 179, -10, 10), state) is None


def test_straddling_ring_follows_the_limb(viewport) -> None:
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0))
    clipped = clip_ring_to_hemisphere(_square(80, 100, -10, 10), state)

    radii = np.hypot(clipped[:, 0], clipped[:, 1])
    assert len(clipped) > 4
    assert np.all(radii <= 1.0 + 1e-9)
    assert np.sum(np.isclose(radii, 1.0)) >= 3


def test_background_matches_view_mode(viewport) -> None:
    renderer = BasemapRenderer(draw_graticule=False)

    globe = renderer.render(None, OrthographicViewState(viewport=viewport))
    assert len(globe) == 1
    assert isinstance(globe[0], Circle) and globe[0].role == "sphere"
    assert globe[0].r == pytest.approx(600.0 / 2.2)

    flat = renderer.render(None, MercatorViewState(viewport=viewport))
    assert isinstance(flat[0], Polygon) and flat[0].role == "ocean"


def test_land_drawn_above_background_and_graticule(viewport) -> None:
    front = LandPolygon(rings=(_square(-10, 10, -10, 10),), feature_id="front")
    back = LandPolygon(rings=(_square(170, 179, -10, 10),), feature_id="back")
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0))

    primitives = BasemapRenderer().render(_basemap(front, back), state)
    roles = [p.role for p in primitives]
    assert roles[0] == "sphere"
    assert roles[-1] == "land"
    assert roles.index("land") > max(i for i, r in enumerate(roles) if r == "graticule")
    assert [p.feature_id for p in primitives if p.role == "land"] == ["front"]


def test_mercator_land_keeps_all_polygons(viewport) -> None:
    front = LandPolygon(rings=(_square(-10, 10, -10, 10),), feature_id="front")
    back = LandPolygon(rings=(_square(170, 179, -10, 10),), feature_id="back")
    land = BasemapRenderer().render_land(_basemap(front, back), MercatorViewState(viewport=viewport))

    assert [p.feature_id for p in land] == ["front", "back"]
    assert len(land[0].rings[0]) == 5
