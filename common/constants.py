"""
Constants for Path Computation, Projection and Interaction.

This module provides the numeric constants shared by the geodesy, projection
and viewport layers, together with the presentation palette consumed by the
drawing backend. Earth-model constants are recorded with their provenance so
downstream code never hard-codes a radius.

References
----------
- IUGG mean Earth radius (Moritz, 2000): 6371.0088 km, rounded to 6371 km.
- d3-zoom / d3-drag defaults for wheel delta and drag sensitivity.
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class Constant:
    """A numeric constant with unit and provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    unit : str
        The unit of the constant.
    source : str
        Reference for the constant value.
    description : str
        Human-readable description of the constant.
    """
    value: float
    unit: str
    source: str
    description: str


class GeodesyConstants:
    """Registry of Earth-model and numerical-guard constants.

    Spherical Earth
    ---------------
    All distances use a sphere of mean radius. Ellipsoidal geodesics are
    not modelled.

    Numerical Guards
    ----------------
    The stretched latitude ln(tan(π/4 + φ/2)) diverges at the poles, so
    latitudes are clamped before it is evaluated. A single epsilon decides
    when a rhumb line is treated as a due east-west line.
    """

    EARTH_MEAN_RADIUS_KM: Final[Constant] = Constant(
        value=6371.0,
        unit="km",
        source="IUGG mean radius (rounded)",
        description="Radius of the spherical Earth model"
    )

    MAX_STRETCHED_LATITUDE_DEG: Final[Constant] = Constant(
        value=89.9999,
        unit="degree",
        source="numerical guard",
        description="Latitude clamp applied before evaluating tan(π/4 + φ/2)"
    )

    RHUMB_EPSILON: Final[Constant] = Constant(
        value=1e-11,
        unit="radian",
        source="numerical guard",
        description="|Δψ| below which a rhumb line is treated as due east-west"
    )

    ANTIPODAL_EPSILON: Final[Constant] = Constant(
        value=1e-12,
        unit="dimensionless",
        source="numerical guard",
        description="sin(central angle) below which two points are antipodal or equal"
    )


class InteractionConstants:
    """Registry of viewport interaction and animation constants.

    Durations are in milliseconds. Zoom extents bound the multiplicative
    zoom factor of each view mode.
    """

    ORTHOGRAPHIC_SCALE_DIVISOR: Final[float] = 2.2
    DRAG_SENSITIVITY: Final[float] = 0.25
    DRAG_GAIN: Final[float] = 100.0
    WHEEL_DELTA_FACTOR: Final[float] = 0.002

    ORTHOGRAPHIC_ZOOM_EXTENT: Final[tuple] = (0.8, 10.0)
    MERCATOR_ZOOM_EXTENT: Final[tuple] = (0.8, 18.0)

    DEFAULT_ROTATION: Final[tuple] = (0.0, -20.0, 0.0)

    AUTO_FIT_PADDING: Final[float] = 0.9
    AUTO_FIT_DURATION_MS: Final[float] = 1250.0
    RESET_DURATION_MS: Final[float] = 750.0

    REVEAL_DURATION_MS: Final[float] = 1500.0
    MARKER_DELAY_MS: Final[float] = 1000.0
    MARKER_FADE_MS: Final[float] = 500.0

    BASE_STROKE_WIDTH: Final[float] = 2.0
    BASE_MARKER_RADIUS: Final[float] = 5.0

    LOXODROME_SEGMENTS: Final[int] = 50
    GREAT_CIRCLE_SAMPLES_PER_DEGREE: Final[float] = 1.0

    FRAME_INTERVAL_S: Final[float] = 1.0 / 60.0


class Palette:
    """Presentation colours handed to the drawing backend."""

    PATH_STROKE: Final[str] = "#06B6D4"
    MARKER_FILL: Final[str] = "#f0f9ff"
    MARKER_STROKE: Final[str] = "#0ea5e9"
    LAND_FILL: Final[str] = "#374151"
    LAND_STROKE: Final[str] = "#4b5563"
    OCEAN_FILL: Final[str] = "#111827"
    SPHERE_STROKE: Final[str] = "#4A5568"
    GRATICULE_STROKE: Final[str] = "rgba(75, 85, 99, 0.5)"


DEFAULT_BASEMAP_URL: Final[str] = (
    "https://cdn.jsdelivr.net/npm/world-atlas@2/countries-110m.json"
)
