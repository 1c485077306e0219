"""Tests for great-circle and rhumb-line path sampling."""

import numpy as np
import pytest

from common.types import Coordinates, GeoPath, PathType
from geospatial.distance_calculations import orthodromic_distance_batch, orthodromic_distance_km
from geospatial.path_generation import (
    central_angle,
    great_circle_interpolate,
    great_circle_midpoint,
    great_circle_path,
    loxodromic_path,
    path_between,
    split_at_antimeridian,
)


def test_loxodromic_path_crosses_antimeridian_without_jump() -> None:
    """(0°, 170°) → (0°, -170°) advances monotonically through 180°."""
    path = loxodromic_path(Coordinates(0, 170), Coordinates(0, -170), num_segments=50)

    steps = np.diff(path.longitudes)
    assert len(path) == 51
    assert np.all(np.abs(steps) <= 180.0)
    assert np.all(steps > 0)
    assert path.longitudes[-1] == pytest.approx(190.0)


def test_east_west_loxodrome_keeps_latitude() -> None:
    path = loxodromic_path(Coordinates(45, -10), Coordinates(45, 30))

    assert np.ptp(path.latitudes) < 1e-9
    assert path.metadata["east_west"] is True
    assert path.longitudes[0] == pytest.approx(-10.0)
    assert path.longitudes[-1] == pytest.approx(30.0)


def test_loxodromic_path_hits_both_endpoints(paris, new_york) -> None:
    path = loxodromic_path(paris, new_york, num_segments=10)

    assert path.path_type is PathType.LOXODROMIC
    assert (path.latitudes[0], path.longitudes[0]) == pytest.approx((paris.lat, paris.lon))
    assert (path.latitudes[-1], path.longitudes[-1]) == pytest.approx((new_york.lat, new_york.lon))
    assert path.num_segments == 10


def test_loxodromic_path_rejects_zero_segments(paris, new_york) -> None:
    with pytest.raises(ValueError):
        loxodromic_path(paris, new_york, num_segments=0)


def test_loxodromic_path_from_pole_is_finite() -> None:
    path = loxodromic_path(Coordinates(90, 0), Coordinates(10, 40))
    assert np.all(np.isfinite(path.latitudes))
    assert np.all(np.isfinite(path.longitudes))


def test_great_circle_path_density_and_endpoints(paris, new_york) -> None:
    """At least one sample per degree of central angle, exact endpoints."""
    path = great_circle_path(paris, new_york)
    angle_deg = np.degrees(central_angle(paris, new_york))

    assert path.num_segments >= angle_deg
    assert path.latitudes[0] == paris.lat
    assert path.longitudes[-1] == pytest.approx(new_york.lon)
    assert path.metadata["central_angle_deg"] == pytest.approx(angle_deg)


def test_great_circle_samples_lie_on_the_arc(paris, new_york) -> None:
    """Summed sample-to-sample distances equal the orthodromic distance."""
    path = great_circle_path(paris, new_york, samples_per_degree=2.0)
    legs = orthodromic_distance_batch(
        path.latitudes[:-1], path.longitudes[:-1], path.latitudes[1:], path.longitudes[1:]
    )
    assert legs.sum() == pytest.approx(orthodromic_distance_km(paris, new_york), rel=1e-9)


def test_great_circle_path_is_continuous_across_seam() -> None:
    path = great_circle_path(Coordinates(10, 170), Coordinates(-10, -170))
    assert np.all(np.abs(np.diff(path.longitudes)) < 180.0)


def test_antipodal_great_circle_is_deterministic() -> None:
    """Antipodal endpoints pick the meridian plane instead of producing NaN."""
    a, b = Coordinates(0, 0), Coordinates(0, 180)
    path = great_circle_path(a, b)

    assert np.all(np.isfinite(path.latitudes))
    assert path.metadata["central_angle_deg"] == pytest.approx(180.0)
    mid = great_circle_midpoint(a, b)
    assert mid.lat == pytest.approx(90.0)
    again = great_circle_path(a, b)
    np.testing.assert_array_equal(again.latitudes, path.latitudes)


def test_great_circle_interpolate_on_equator() -> None:
    lat, lon = great_circle_interpolate(Coordinates(0, 0), Coordinates(0, 90), np.array([0.5]))
    assert lat[0] == pytest.approx(0.0, abs=1e-12)
    assert lon[0] == pytest.approx(45.0)


def test_coincident_points_give_two_sample_path(paris) -> None:
    path = great_circle_path(paris, paris)
    assert len(path) == 2
    assert path.latitudes[0] == path.latitudes[1]


def test_path_between_dispatches_on_type(paris, new_york) -> None:
    assert path_between(paris, new_york, PathType.ORTHODROMIC).path_type is PathType.ORTHODROMIC
    lox = path_between(paris, new_york, "loxodromic", loxodrome_segments=20)
    assert lox.path_type is PathType.LOXODROMIC
    assert lox.num_segments == 20


def test_geopath_is_read_only_and_copies_input() -> None:
    lats = np.array([0.0, 1.0])
    path = GeoPath(latitudes=lats, longitudes=np.array([0.0, 1.0]), path_type=PathType.ORTHODROMIC)

    lats[0] = 5.0
    assert path.latitudes[0] == 0.0
    with pytest.raises(ValueError):
        path.latitudes[0] = 3.0
    assert list(path) == [(0.0, 0.0), (1.0, 1.0)]


@pytest.mark.parametrize("path_type", list(PathType))
def test_seam_crossing_path_keeps_requested_endpoints(path_type) -> None:
    tokyo, los_angeles = Coordinates(35.6762, 139.6503), Coordinates(34.0522, -118.2437)
    path = path_between(tokyo, los_angeles, path_type)

    assert path.longitudes[-1] == pytest.approx(-118.2437 + 360.0)
    assert path.start == tokyo
    assert path.end == los_angeles


def test_geopath_endpoints_default_to_wrapped_samples() -> None:
    path = GeoPath(latitudes=[0.0, 5.0], longitudes=[175.0, 190.0], path_type=PathType.LOXODROMIC)
    assert path.start == Coordinates(0.0, 175.0)
    assert path.end.lon == pytest.approx(-170.0)


def test_split_at_antimeridian_eastbound() -> None:
    lats, lons = split_at_antimeridian(np.array([0.0, 0.0, 10.0, 10.0]), np.array([170.0, 175.0, 185.0, 190.0]))

    np.testing.assert_allclose(lons, [170.0, 175.0, 180.0, np.nan, -180.0, -175.0, -170.0])
    np.testing.assert_allclose(lats, [0.0, 0.0, 5.0, np.nan, 5.0, 10.0, 10.0])


def test_split_at_antimeridian_westbound() -> None:
    lats, lons = split_at_antimeridian(np.array([0.0, 4.0]), np.array([-170.0, -190.0]))

    np.testing.assert_allclose(lons, [-170.0, -180.0, np.nan, 180.0, 170.0])
    np.testing.assert_allclose(lats, [0.0, 2.0, np.nan, 2.0, 4.0])


def test_split_at_antimeridian_leaves_in_range_track_alone(paris, new_york) -> None:
    path = great_circle_path(paris, new_york)
    lats, lons = split_at_antimeridian(path.latitudes, path.longitudes)

    np.testing.assert_array_equal(lats, path.latitudes)
    np.testing.assert_array_equal(lons, path.longitudes)
