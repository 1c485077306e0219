"""
Path Geometry Generation for Great Circles and Rhumb Lines.

This module turns two endpoints into sampled paths on the sphere. Samples
are returned as `GeoPath` objects whose longitudes are continuous across the
antimeridian, so consecutive samples are never more than 180° apart. The
globe draws them as they are; a cylindrical map has an edge at ±180°, and
`split_at_antimeridian` cuts the track into in-range pieces for it.

Scientific Context
------------------
Domain: Spherical trigonometry, navigation
Model: Unit sphere

Great Circle
------------
Points on the great circle are generated by spherical linear interpolation
of the endpoint unit vectors: P(t) = cos(t·d)·A + sin(t·d)·U, where d is the
central angle and U the unit vector orthogonal to A in the plane of A and B.
For antipodal endpoints every meridian plane is a valid great circle; the
one through A and the North Pole (or the prime meridian when A is a pole)
is chosen so the result is deterministic.

Rhumb Line
----------
Latitude advances linearly from φ1 to φ2; longitude advances linearly in
stretched latitude, λ(φ) = λ1 + Δλ · (ψ(φ) − ψ1)/Δψ. On a due east-west line
(|Δψ| ≤ ε) longitude advances linearly instead.
"""

from typing import Tuple, Union
import numpy as np
from numpy.typing import NDArray

from common.constants import GeodesyConstants, InteractionConstants
from common.logging_config import get_logger
from common.types import Coordinates, GeoPath, PathType
from geospatial.coordinate_models import (
    angular_distance,
    cartesian_to_geographic,
    geographic_to_cartesian,
)
from geospatial.distance_calculations import (
    RHUMB_EPSILON,
    stretched_latitude,
)

logger = get_logger(__name__)

ANTIPODAL_EPSILON = GeodesyConstants.ANTIPODAL_EPSILON.value


def central_angle(p1: Coordinates, p2: Coordinates) -> float:
    """Angle subtended at the Earth's centre by two points, in radians."""
    return float(angular_distance(*p1.to_radians(), *p2.to_radians()))


def _orthogonal_basis(p1: Coordinates, p2: Coordinates):
    """Return (A, U, d): start vector, in-plane orthogonal vector, central angle."""
    a = geographic_to_cartesian(*p1.to_radians())
    b = geographic_to_cartesian(*p2.to_radians())

    d = float(np.arctan2(np.linalg.norm(np.cross(a, b)), np.dot(a, b)))
    u = b - np.dot(a, b) * a
    norm = np.linalg.norm(u)

    if norm < ANTIPODAL_EPSILON:
        if d < np.pi / 2:
            # Coincident points: the path degenerates to a single location
            return a, np.zeros(3), 0.0
        logger.debug(f"Antipodal endpoints {p1} / {p2}: routing through the meridian plane")
        north = np.array([0.0, 0.0, 1.0])
        u = north - np.dot(a, north) * a
        norm = np.linalg.norm(u)
        if norm < ANTIPODAL_EPSILON:
            u = np.array([1.0, 0.0, 0.0])
            norm = 1.0
        return a, u / norm, np.pi

    return a, u / norm, d


def great_circle_interpolate(
    p1: Coordinates,
    p2: Coordinates,
    fractions: Union[float, NDArray[np.float64]]
):
    """Points at the given fractions of the great-circle arc from p1 to p2.

    Parameters
    ----------
    p1, p2 : Coordinates
        Endpoints.
    fractions : float or ndarray
        Fractions of the arc length; 0 gives p1, 1 gives p2.

    Returns
    -------
    Tuple[ndarray, ndarray]
        (latitudes_deg, longitudes_deg); longitudes in [-180, 180].
    """
    a, u, d = _orthogonal_basis(p1, p2)
    t = np.asarray(fractions, dtype=np.float64)[..., np.newaxis]
    vectors = np.cos(t * d) * a + np.sin(t * d) * u
    lat, lon = cartesian_to_geographic(vectors)
    return np.degrees(lat), np.degrees(lon)


def great_circle_midpoint(p1: Coordinates, p2: Coordinates) -> Coordinates:
    """Point halfway along the great-circle arc."""
    lat, lon = great_circle_interpolate(p1, p2, 0.5)
    return Coordinates(lat=float(np.clip(lat, -90.0, 90.0)), lon=float(np.clip(lon, -180.0, 180.0)))


def great_circle_path(
    p1: Coordinates,
    p2: Coordinates,
    samples_per_degree: float = InteractionConstants.GREAT_CIRCLE_SAMPLES_PER_DEGREE
) -> GeoPath:
    """Sample the great-circle arc densely enough to draw it smoothly.

    Parameters
    ----------
    p1, p2 : Coordinates
        Endpoints.
    samples_per_degree : float
        Segments per degree of central angle (at least one segment overall).

    Returns
    -------
    GeoPath
        Orthodromic path with continuous longitudes. The first and last
        samples are exactly the endpoints.
    """
    d_deg = np.degrees(_orthogonal_basis(p1, p2)[2])
    num_segments = max(1, int(np.ceil(d_deg * samples_per_degree)))

    fractions = np.linspace(0.0, 1.0, num_segments + 1)
    lats, lons = great_circle_interpolate(p1, p2, fractions)
    lats[0], lons[0] = p1.lat, p1.lon
    lats[-1], lons[-1] = p2.lat, p2.lon

    lons = np.degrees(np.unwrap(np.radians(lons)))
    return GeoPath(
        latitudes=lats,
        longitudes=lons,
        path_type=PathType.ORTHODROMIC,
        metadata={"central_angle_deg": float(d_deg)},
        start=p1,
        end=p2,
    )


def loxodromic_path(
    p1: Coordinates,
    p2: Coordinates,
    num_segments: int = InteractionConstants.LOXODROME_SEGMENTS
) -> GeoPath:
    """Sample the rhumb line from p1 to p2.

    Parameters
    ----------
    p1, p2 : Coordinates
        Endpoints.
    num_segments : int
        Number of segments; the path has num_segments + 1 samples.

    Returns
    -------
    GeoPath
        Loxodromic path. The end longitude is shifted by ±360° when that is
        the shorter way round, so the samples never jump across the seam.

    Raises
    ------
    ValueError
        If num_segments < 1.
    """
    if num_segments < 1:
        raise ValueError(f"num_segments must be >= 1, got {num_segments}")

    lat1, lon1 = p1.to_radians()
    lat2, lon2 = p2.to_radians()

    if np.abs(lon2 - lon1) > np.pi:
        lon2 += -2 * np.pi if lon2 > lon1 else 2 * np.pi

    psi1 = stretched_latitude(lat1)
    d_psi = float(stretched_latitude(lat2) - psi1)

    f = np.linspace(0.0, 1.0, num_segments + 1)
    lats = lat1 + (lat2 - lat1) * f

    if np.abs(d_psi) <= RHUMB_EPSILON:
        lons = lon1 + (lon2 - lon1) * f
    else:
        lons = lon1 + (lon2 - lon1) * (stretched_latitude(lats) - psi1) / d_psi

    return GeoPath(
        latitudes=np.degrees(lats),
        longitudes=np.degrees(lons),
        path_type=PathType.LOXODROMIC,
        metadata={"east_west": bool(np.abs(d_psi) <= RHUMB_EPSILON)},
        start=p1,
        end=p2,
    )


def path_between(
    p1: Coordinates,
    p2: Coordinates,
    path_type: PathType,
    loxodrome_segments: int = InteractionConstants.LOXODROME_SEGMENTS,
    samples_per_degree: float = InteractionConstants.GREAT_CIRCLE_SAMPLES_PER_DEGREE
) -> GeoPath:
    """Sampled path of the requested type."""
    if PathType(path_type) is PathType.LOXODROMIC:
        return loxodromic_path(p1, p2, loxodrome_segments)
    return great_circle_path(p1, p2, samples_per_degree)


def split_at_antimeridian(
    lat_deg: NDArray[np.float64],
    lon_deg: NDArray[np.float64]
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Wrap a continuous track into [-180, 180], breaking it at the seam.

    Each crossing of the antimeridian inserts the crossing point on the edge
    being left, a NaN break, and the same point on the opposite edge, so a
    cylindrical map draws the track as separate pieces that meet the map
    border instead of one piece running off the map.

    Parameters
    ----------
    lat_deg, lon_deg : ndarray
        Samples in degrees with continuous longitudes (consecutive samples
        less than 180° apart).

    Returns
    -------
    Tuple[ndarray, ndarray]
        (latitudes, longitudes) with NaN rows separating the pieces.
    """
    lats = np.asarray(lat_deg, dtype=np.float64)
    lons = np.asarray(lon_deg, dtype=np.float64)

    # Offset that brings the piece being emitted into range
    shift = -360.0 * np.round(lons[0] / 360.0)
    out_lat = [lats[0]]
    out_lon = [lons[0] + shift]
    for i in range(1, lons.size):
        wrapped = lons[i] + shift
        if wrapped > 180.0 or wrapped < -180.0:
            edge = 180.0 if wrapped > 180.0 else -180.0
            boundary = edge - shift
            span = lons[i] - lons[i - 1]
            t = (boundary - lons[i - 1]) / span if span != 0 else 0.0
            lat_cross = lats[i - 1] + t * (lats[i] - lats[i - 1])
            out_lat.extend([lat_cross, np.nan, lat_cross])
            out_lon.extend([edge, np.nan, -edge])
            shift -= np.sign(edge) * 360.0
            wrapped = lons[i] + shift
        out_lat.append(lats[i])
        out_lon.append(wrapped)

    crossings = int(np.isnan(out_lon).sum())
    if crossings:
        logger.debug(f"Track split into {crossings + 1} pieces at the antimeridian")
    return np.array(out_lat), np.array(out_lon)
