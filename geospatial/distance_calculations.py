"""
Orthodromic and Loxodromic Distance Calculations on a Spherical Earth.

This module computes the two navigation distances compared by the
visualizer: the great-circle (orthodromic) distance, which is the shortest
path on the sphere, and the rhumb-line (loxodromic) distance, which follows
a constant compass bearing.

Scientific Context
------------------
Domain: Spherical trigonometry, navigation
Model: Sphere of radius R = 6371 km

Numerical Stability
-------------------
1. Haversine with atan2: the textbook acos(sin φ1 sin φ2 + ...) form loses
   all precision for nearly coincident points and for nearly antipodal
   points. The haversine form evaluated with atan2(√a, √(1−a)) is well
   conditioned everywhere.

2. Stretched latitude ψ = ln(tan(π/4 + φ/2)) diverges at the poles, so
   latitudes are clamped to ±89.9999° before it is evaluated.

3. Due east-west rhumb lines have Δψ = 0 and Δφ = 0; the ratio q = Δφ/Δψ
   tends to cos φ (L'Hôpital), which is used whenever |Δψ| ≤ 1e-11.

References
----------
- Sinnott, R.W. (1984). Virtues of the Haversine. Sky and Telescope, 68(2).
- Alexander, J. (2004). Loxodromes: A Rhumb Way to Go. Mathematics Magazine, 77(5).
"""

from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import GeodesyConstants
from common.logging_config import AuditLogger, get_logger
from common.types import Coordinates

logger = get_logger(__name__)

EARTH_RADIUS_KM = GeodesyConstants.EARTH_MEAN_RADIUS_KM.value
MAX_LATITUDE_DEG = GeodesyConstants.MAX_STRETCHED_LATITUDE_DEG.value
RHUMB_EPSILON = GeodesyConstants.RHUMB_EPSILON.value


def clamp_latitude_deg(lat_deg):
    """Clamp latitude(s) away from the poles for stretched-latitude math.

    Exact poles are a boundary condition, not an error: they resolve to
    ±89.9999°.
    """
    return np.clip(lat_deg, -MAX_LATITUDE_DEG, MAX_LATITUDE_DEG)


def stretched_latitude(lat_rad):
    """Mercator (stretched) latitude ψ = ln(tan(π/4 + φ/2)).

    Parameters
    ----------
    lat_rad : float or ndarray
        Latitude in radians. Values are clamped to ±89.9999° first.

    Returns
    -------
    float or ndarray
        Stretched latitude in radians.
    """
    limit = np.radians(MAX_LATITUDE_DEG)
    lat = np.clip(lat_rad, -limit, limit)
    return np.log(np.tan(np.pi / 4 + lat / 2))


def wrap_longitude_delta(delta_lon_rad: float) -> float:
    """Reduce a longitude difference to the shorter way around.

    If |Δλ| > π the difference is replaced by its complement of the
    opposite sign, so a hop from 170° to -170° becomes +20° instead of
    -340°.
    """
    if np.abs(delta_lon_rad) > np.pi:
        if delta_lon_rad > 0:
            return -(2 * np.pi - delta_lon_rad)
        return 2 * np.pi + delta_lon_rad
    return delta_lon_rad


def orthodromic_distance_km(p1: Coordinates, p2: Coordinates) -> float:
    """Great-circle distance between two points.

    Parameters
    ----------
    p1, p2 : Coordinates
        Endpoints in degrees.

    Returns
    -------
    float
        Distance in kilometres. Symmetric; zero for identical points.

    Notes
    -----
    a = sin²(Δφ/2) + cos φ1 · cos φ2 · sin²(Δλ/2)
    c = 2 · atan2(√a, √(1−a))
    d = R · c

    Examples
    --------
    >>> paris = Coordinates(48.8566, 2.3522)
    >>> new_york = Coordinates(40.7128, -74.0060)
    >>> round(orthodromic_distance_km(paris, new_york))
    5837
    """
    phi1, lambda1 = p1.to_radians()
    phi2, lambda2 = p2.to_radians()

    d_phi = phi2 - phi1
    d_lambda = lambda2 - lambda1

    a = np.sin(d_phi / 2)**2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2)**2
    # Rounding can push a a hair outside [0, 1] for antipodal points
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return float(EARTH_RADIUS_KM * c)


def _rhumb_components(p1: Coordinates, p2: Coordinates) -> Tuple[float, float, float, float]:
    """Return (Δφ, Δλ, Δψ, q) for the rhumb line from p1 to p2."""
    for lat in (p1.lat, p2.lat):
        if abs(lat) > MAX_LATITUDE_DEG:
            AuditLogger().log_constraint_correction(
                constraint_name="stretched_latitude_clamp",
                original_value=lat,
                corrected_value=float(clamp_latitude_deg(lat)),
                context={"operation": "rhumb_line"},
            )
    phi1, lambda1 = p1.to_radians()
    phi2, lambda2 = p2.to_radians()

    d_phi = phi2 - phi1
    d_lambda = wrap_longitude_delta(lambda2 - lambda1)
    d_psi = float(stretched_latitude(phi2) - stretched_latitude(phi1))

    if np.abs(d_psi) > RHUMB_EPSILON:
        q = d_phi / d_psi
    else:
        # Due east-west line: limit of Δφ/Δψ
        q = np.cos(phi1)

    return d_phi, d_lambda, d_psi, float(q)


def loxodromic_distance_km(p1: Coordinates, p2: Coordinates) -> float:
    """Rhumb-line distance between two points.

    Parameters
    ----------
    p1, p2 : Coordinates
        Endpoints in degrees.

    Returns
    -------
    float
        Distance in kilometres along the constant-bearing path, taking the
        shorter way around in longitude.

    Notes
    -----
    d = R · √(Δφ² + q² · Δλ²), q = Δφ/Δψ (or cos φ1 on an east-west line).
    Never shorter than the orthodromic distance for the same endpoints; the
    two agree along a meridian and along the equator.
    """
    d_phi, d_lambda, _, q = _rhumb_components(p1, p2)
    return float(EARTH_RADIUS_KM * np.sqrt(d_phi * d_phi + q * q * d_lambda * d_lambda))


def rhumb_bearing_deg(p1: Coordinates, p2: Coordinates) -> float:
    """Constant compass bearing of the rhumb line, degrees clockwise from north.

    Returns
    -------
    float
        Bearing in [0, 360).
    """
    _, d_lambda, d_psi, _ = _rhumb_components(p1, p2)
    return float(np.degrees(np.arctan2(d_lambda, d_psi)) % 360.0)


def initial_bearing_deg(p1: Coordinates, p2: Coordinates) -> float:
    """Initial great-circle bearing from p1 toward p2, degrees in [0, 360)."""
    phi1, lambda1 = p1.to_radians()
    phi2, lambda2 = p2.to_radians()
    d_lambda = lambda2 - lambda1

    y = np.sin(d_lambda) * np.cos(phi2)
    x = np.cos(phi1) * np.sin(phi2) - np.sin(phi1) * np.cos(phi2) * np.cos(d_lambda)
    return float(np.degrees(np.arctan2(y, x)) % 360.0)


def orthodromic_distance_batch(
    lat1_deg: NDArray[np.float64],
    lon1_deg: NDArray[np.float64],
    lat2_deg: NDArray[np.float64],
    lon2_deg: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Vectorised haversine distance in kilometres.

    Inputs broadcast; they are not validated, so callers pass values that
    already went through `Coordinates` or come from generated paths.
    """
    phi1 = np.radians(lat1_deg)
    phi2 = np.radians(lat2_deg)
    d_phi = phi2 - phi1
    d_lambda = np.radians(np.asarray(lon2_deg) - np.asarray(lon1_deg))

    a = np.sin(d_phi / 2)**2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2)**2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
