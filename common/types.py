"""
Type Definitions for the Path Visualizer.

This module defines the value types exchanged between the geodesy,
projection, viewport and rendering layers. Geographic values are stored in
DEGREES at the interfaces (the unit the geocoding collaborator produces) and
converted to radians inside the math functions.

Design Rationale
----------------
Using frozen dataclasses instead of raw tuples/dicts provides:
1. Validation at the boundary - an invalid coordinate never reaches the math
2. Immutability - a request's inputs cannot change under an animation
3. Self-documenting field names
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple

import numpy as np
from numpy.typing import NDArray


class InvalidCoordinateError(ValueError):
    """Raised when a latitude or longitude lies outside its valid range."""


class PathType(str, Enum):
    """Navigation path model; selects distance formula and geometry."""
    ORTHODROMIC = "orthodromic"
    LOXODROMIC = "loxodromic"


class ViewMode(str, Enum):
    """Visualization mode selected by the host."""
    GLOBE = "globe"
    MAP = "map"


class ProjectionKind(str, Enum):
    """Projection variant backing a view mode."""
    ORTHOGRAPHIC = "orthographic"
    MERCATOR = "mercator"

    @classmethod
    def for_view_mode(cls, mode: ViewMode) -> "ProjectionKind":
        return cls.ORTHOGRAPHIC if mode is ViewMode.GLOBE else cls.MERCATOR


@dataclass(frozen=True)
class Coordinates:
    """A geographic position on the spherical Earth.

    Attributes
    ----------
    lat : float
        Latitude in DEGREES. Range: [-90, 90].
    lon : float
        Longitude in DEGREES. Range: [-180, 180].

    Notes
    -----
    Longitude is not normalised. Wrapping values into range is the caller's
    responsibility; every function consuming Coordinates handles the ±180°
    seam on its own.

    Examples
    --------
    >>> paris = Coordinates(lat=48.8566, lon=2.3522)
    >>> paris.as_lon_lat()
    (2.3522, 48.8566)
    """
    lat: float
    lon: float

    def __post_init__(self):
        """Validate coordinate ranges."""
        lat = float(self.lat)
        lon = float(self.lon)
        if not (np.isfinite(lat) and np.isfinite(lon)):
            raise InvalidCoordinateError(
                f"Coordinates must be finite, got lat={self.lat}, lon={self.lon}"
            )
        if not -90.0 <= lat <= 90.0:
            raise InvalidCoordinateError(
                f"Latitude {lat}° out of range [-90, 90]. "
                f"Did you swap latitude and longitude?"
            )
        if not -180.0 <= lon <= 180.0:
            raise InvalidCoordinateError(
                f"Longitude {lon}° out of range [-180, 180]."
            )
        object.__setattr__(self, "lat", lat)
        object.__setattr__(self, "lon", lon)

    def to_radians(self) -> Tuple[float, float]:
        """Return (latitude_rad, longitude_rad)."""
        return float(np.radians(self.lat)), float(np.radians(self.lon))

    def as_lon_lat(self) -> Tuple[float, float]:
        """Return the (lon, lat) ordering used by GeoJSON."""
        return self.lon, self.lat


@dataclass(frozen=True)
class Viewport:
    """Canvas size in screen pixels."""
    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Viewport must have a positive size, got {self.width}x{self.height}"
            )

    @property
    def center(self) -> Tuple[float, float]:
        return self.width / 2.0, self.height / 2.0


@dataclass(frozen=True, eq=False)
class GeoPath:
    """An ordered sequence of samples along a path on the sphere.

    Attributes
    ----------
    latitudes : ndarray
        Sample latitudes in DEGREES, shape (N,).
    longitudes : ndarray
        Sample longitudes in DEGREES, shape (N,). CONTINUOUS: a path crossing
        the antimeridian keeps increasing (or decreasing) past ±180 instead of
        jumping, so consecutive samples never differ by more than 180°.
    path_type : PathType
        The path model the samples were generated from.
    start, end : Coordinates
        The endpoints as requested, with longitudes in [-180, 180]. When not
        given they are taken from the first and last samples, wrapped back
        into range.
    """
    latitudes: NDArray[np.float64]
    longitudes: NDArray[np.float64]
    path_type: PathType
    metadata: dict = field(default_factory=dict, compare=False)
    start: Optional[Coordinates] = None
    end: Optional[Coordinates] = None

    def __post_init__(self):
        lats = np.array(self.latitudes, dtype=np.float64)
        lons = np.array(self.longitudes, dtype=np.float64)
        if lats.shape != lons.shape or lats.ndim != 1:
            raise ValueError(
                f"GeoPath needs matching 1-D arrays, got {lats.shape} and {lons.shape}"
            )
        if lats.size < 2:
            raise ValueError("GeoPath needs at least two samples")
        lats.setflags(write=False)
        lons.setflags(write=False)
        object.__setattr__(self, "latitudes", lats)
        object.__setattr__(self, "longitudes", lons)
        if self.start is None:
            object.__setattr__(self, "start", _sample_coordinates(lats[0], lons[0]))
        if self.end is None:
            object.__setattr__(self, "end", _sample_coordinates(lats[-1], lons[-1]))

    def __len__(self) -> int:
        return int(self.latitudes.size)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        """Iterate (lat, lon) pairs in degrees."""
        for lat, lon in zip(self.latitudes, self.longitudes):
            yield float(lat), float(lon)

    @property
    def num_segments(self) -> int:
        return len(self) - 1


def _sample_coordinates(lat: float, lon: float) -> Coordinates:
    if not -180.0 <= lon <= 180.0:
        lon = (lon + 180.0) % 360.0 - 180.0
    return Coordinates(lat=float(np.clip(lat, -90.0, 90.0)), lon=float(lon))


ScreenPoint = Tuple[float, float]
