"""
Coordinate Models for Spherical Earth Geometry.

This module converts between geographic coordinates and unit vectors on the
sphere, and implements the three-axis spherical rotation used by the
orthographic globe. All functions accept scalars or numpy arrays and
broadcast.

Scientific Context
------------------
Domain: Spherical trigonometry, rotation of the sphere
Model: Unit sphere, Earth-centred frame

Frame Convention
----------------
- X-axis through (lat 0°, lon 0°)
- Y-axis through (lat 0°, lon 90°E)
- Z-axis through the North Pole

Rotation Convention
-------------------
A rotation (λ, φ, γ) in degrees is applied the way cartographic libraries
such as d3-geo apply it: first a yaw of λ about the polar axis (adding λ to
longitude), then a pitch of φ about the new Y axis and a roll of γ about
the X axis. The view centre of a globe rotated by (λ, φ, 0) is the point
(lat=-φ, lon=-λ).
"""

from typing import Tuple, Union
import numpy as np
from numpy.typing import NDArray

ArrayLike = Union[float, NDArray[np.float64]]


def geographic_to_cartesian(
    lat_rad: ArrayLike,
    lon_rad: ArrayLike
) -> NDArray[np.float64]:
    """Convert latitude/longitude to unit vectors.

    Parameters
    ----------
    lat_rad, lon_rad : float or ndarray
        Coordinates in radians.

    Returns
    -------
    ndarray
        Array of shape (..., 3) with (X, Y, Z) components.
    """
    cos_lat = np.cos(lat_rad)
    return np.stack(
        [cos_lat * np.cos(lon_rad), cos_lat * np.sin(lon_rad), np.sin(lat_rad)],
        axis=-1
    )


def cartesian_to_geographic(
    vectors: NDArray[np.float64]
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Convert vectors (not necessarily unit length) to latitude/longitude.

    Parameters
    ----------
    vectors : ndarray
        Array of shape (..., 3).

    Returns
    -------
    Tuple[ndarray, ndarray]
        (lat_rad, lon_rad); longitude in [-π, π].

    Notes
    -----
    Latitude uses atan2(z, hypot(x, y)) rather than asin(z), which stays
    accurate near the poles and tolerates vectors that drifted off unit
    length.
    """
    x = vectors[..., 0]
    y = vectors[..., 1]
    z = vectors[..., 2]
    return np.arctan2(z, np.hypot(x, y)), np.arctan2(y, x)


def rotate_geographic(
    lat_rad: ArrayLike,
    lon_rad: ArrayLike,
    rotation_deg: Tuple[float, float, float]
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Apply a three-axis spherical rotation to geographic coordinates.

    Parameters
    ----------
    lat_rad, lon_rad : float or ndarray
        Coordinates in radians.
    rotation_deg : tuple of float
        (λ, φ, γ) rotation in degrees.

    Returns
    -------
    Tuple[ndarray, ndarray]
        Rotated (lat_rad, lon_rad).
    """
    d_lambda, d_phi, d_gamma = (np.radians(r) for r in rotation_deg)

    lon = np.asarray(lon_rad, dtype=np.float64) + d_lambda
    lat = np.asarray(lat_rad, dtype=np.float64)

    cos_phi = np.cos(d_phi)
    sin_phi = np.sin(d_phi)
    cos_gamma = np.cos(d_gamma)
    sin_gamma = np.sin(d_gamma)

    cos_lat = np.cos(lat)
    x = np.cos(lon) * cos_lat
    y = np.sin(lon) * cos_lat
    z = np.sin(lat)

    k = z * cos_phi + x * sin_phi
    new_lon = np.arctan2(y * cos_gamma - k * sin_gamma, x * cos_phi - z * sin_phi)
    new_lat = np.arcsin(np.clip(k * cos_gamma + y * sin_gamma, -1.0, 1.0))
    return new_lat, new_lon


def rotate_geographic_inverse(
    lat_rad: ArrayLike,
    lon_rad: ArrayLike,
    rotation_deg: Tuple[float, float, float]
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Undo `rotate_geographic` for the same rotation triple."""
    d_lambda, d_phi, d_gamma = (np.radians(r) for r in rotation_deg)

    lat = np.asarray(lat_rad, dtype=np.float64)
    lon = np.asarray(lon_rad, dtype=np.float64)

    cos_phi = np.cos(d_phi)
    sin_phi = np.sin(d_phi)
    cos_gamma = np.cos(d_gamma)
    sin_gamma = np.sin(d_gamma)

    cos_lat = np.cos(lat)
    x = np.cos(lon) * cos_lat
    y = np.sin(lon) * cos_lat
    z = np.sin(lat)

    k = z * cos_gamma - y * sin_gamma
    orig_lon = np.arctan2(y * cos_gamma + z * sin_gamma, x * cos_phi + k * sin_phi)
    orig_lat = np.arcsin(np.clip(k * cos_phi - x * sin_phi, -1.0, 1.0))
    return orig_lat, orig_lon - d_lambda


def angular_distance(
    lat1_rad: ArrayLike,
    lon1_rad: ArrayLike,
    lat2_rad: ArrayLike,
    lon2_rad: ArrayLike
) -> NDArray[np.float64]:
    """Central angle between points, in radians.

    Uses atan2(|a × b|, a · b), which is accurate for both very small and
    nearly antipodal separations.
    """
    a = geographic_to_cartesian(lat1_rad, lon1_rad)
    b = geographic_to_cartesian(lat2_rad, lon2_rad)
    cross = np.linalg.norm(np.cross(a, b), axis=-1)
    dot = np.sum(a * b, axis=-1)
    return np.arctan2(cross, dot)


def normalize_longitude_deg(lon_deg: ArrayLike) -> ArrayLike:
    """Wrap longitudes into [-180, 180)."""
    return (np.asarray(lon_deg, dtype=np.float64) + 180.0) % 360.0 - 180.0
