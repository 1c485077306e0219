"""Tests for the orthographic and Mercator screen projections."""

import numpy as np
import pytest

from common.types import Coordinates, ProjectionKind
from geospatial.projections import MERCATOR, ORTHOGRAPHIC, projection_for
from viewport.view_state import MercatorViewState, OrthographicViewState


def test_view_centre_projects_to_canvas_centre(viewport) -> None:
    """With the default rotation (0, -20, 0) the point (20°N, 0°) is centred."""
    state = OrthographicViewState(viewport=viewport)
    x, y = ORTHOGRAPHIC.project(Coordinates(20, 0), state)

    assert (x, y) == pytest.approx(viewport.center)
    lat, lon = ORTHOGRAPHIC.view_center(state)
    assert (lat, lon) == pytest.approx((20.0, 0.0), abs=1e-9)


def test_orthographic_scale_and_orientation(viewport) -> None:
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0))
    scale = 600.0 / 2.2

    x, y = ORTHOGRAPHIC.project(Coordinates(0, 60), state)
    assert x == pytest.approx(400.0 + scale * np.sin(np.radians(60)))
    assert y == pytest.approx(300.0)

    x, y = ORTHOGRAPHIC.project(Coordinates(45, 0), state)
    assert y == pytest.approx(300.0 - scale * np.sin(np.radians(45)))


def test_back_face_points_are_not_visible(viewport) -> None:
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0))

    assert ORTHOGRAPHIC.project(Coordinates(0, 180), state) is None
    _, _, visible = ORTHOGRAPHIC.project_arrays(
        np.array([0.0, 0.0, 0.0]), np.array([0.0, 120.0, -150.0]), state
    )
    assert visible.tolist() == [True, False, False]


def test_zoom_scales_about_the_centre(viewport) -> None:
    state = OrthographicViewState(viewport=viewport, rotation=(0.0, 0.0, 0.0), zoom=2.0)
    x, _ = ORTHOGRAPHIC.project(Coordinates(0, 30), state)
    assert x == pytest.approx(400.0 + 2.0 * (600.0 / 2.2) * 0.5)


def test_poles_project_without_error(viewport) -> None:
    ortho = OrthographicViewState(viewport=viewport)
    merc = MercatorViewState(viewport=viewport)

    assert ORTHOGRAPHIC.project(Coordinates(90, 0), ortho) is not None
    x, y = MERCATOR.project(Coordinates(-90, 45), merc)
    assert np.isfinite(x) and np.isfinite(y)


def test_orthographic_invert_recovers_coordinates(viewport) -> None:
    state = OrthographicViewState(viewport=viewport, rotation=(30.0, -10.0, 5.0))
    target = Coordinates(12.5, -25.0)
    x, y = ORTHOGRAPHIC.project(target, state)

    assert ORTHOGRAPHIC.invert(x, y, state) == pytest.approx((target.lat, target.lon))
    assert ORTHOGRAPHIC.invert(0.0, 0.0, state) is None


def test_mercator_identity_layout(viewport) -> None:
    state = MercatorViewState(viewport=viewport)

    assert MERCATOR.project(Coordinates(0, 0), state) == pytest.approx((400.0, 300.0))
    assert MERCATOR.project(Coordinates(0, 180), state)[0] == pytest.approx(800.0)
    _, y_north = MERCATOR.project(Coordinates(60, 0), state)
    assert y_north < 300.0


def test_mercator_applies_pan_and_zoom(viewport) -> None:
    state = MercatorViewState(viewport=viewport, tx=10.0, ty=20.0, k=2.0)
    assert MERCATOR.project(Coordinates(0, 0), state) == pytest.approx((810.0, 620.0))

    x, y = MERCATOR.project(Coordinates(35, -60), state)
    assert MERCATOR.invert(x, y, state) == pytest.approx((35.0, -60.0))


def test_projection_for_kind() -> None:
    assert projection_for(ProjectionKind.ORTHOGRAPHIC) is ORTHOGRAPHIC
    assert projection_for("mercator") is MERCATOR
    assert ORTHOGRAPHIC.culls_back_face and not MERCATOR.culls_back_face
