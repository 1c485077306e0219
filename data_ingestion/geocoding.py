"""
Geocoding: Place Names to Coordinates.

The visualizer core never guesses coordinates from text itself; it asks a
`LocationResolver`. Two resolvers are provided:

1. `GazetteerResolver` - a static, case-insensitive name table. Offline and
   deterministic; used by the CLI and the tests.
2. `NominatimResolver` - an OpenStreetMap Nominatim-compatible HTTP search
   endpoint queried with `requests` on a worker thread.

Failure Semantics
-----------------
- Unknown place → `LocationNotFoundError`
- Network, HTTP or payload problems → `UpstreamGeocodingError`
Both derive from `GeocodingError`. There are no retries; the caller decides
whether to ask again.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from common.logging_config import get_logger
from common.types import Coordinates, InvalidCoordinateError

logger = get_logger(__name__)


class GeocodingError(RuntimeError):
    """Base class for geocoding failures."""


class LocationNotFoundError(GeocodingError):
    """The resolver has no match for the requested name."""

    def __init__(self, name: str):
        super().__init__(f'location not found: "{name}"')
        self.name = name


class UpstreamGeocodingError(GeocodingError):
    """The upstream service failed or answered with an unusable payload."""


@dataclass(frozen=True)
class LocationPoint:
    """A named, resolved endpoint."""
    name: str
    coords: Coordinates


class LocationResolver(ABC):
    """Abstract base class for place-name resolvers."""

    @abstractmethod
    async def resolve_location(self, name: str) -> Coordinates:
        """Resolve a free-text place name.

        Raises
        ------
        LocationNotFoundError
            If the name has no match.
        UpstreamGeocodingError
            If the lookup itself failed.
        """
        pass

    async def resolve_pair(self, start: str, end: str) -> Tuple[LocationPoint, LocationPoint]:
        """Resolve two names concurrently; the first failure propagates."""
        start_coords, end_coords = await asyncio.gather(
            self.resolve_location(start),
            self.resolve_location(end),
        )
        return LocationPoint(start, start_coords), LocationPoint(end, end_coords)


DEFAULT_GAZETTEER: Dict[str, Tuple[float, float]] = {
    "paris": (48.8566, 2.3522),
    "london": (51.5074, -0.1278),
    "new york": (40.7128, -74.0060),
    "tokyo": (35.6762, 139.6503),
    "sydney": (-33.8688, 151.2093),
    "los angeles": (34.0522, -118.2437),
    "cape town": (-33.9249, 18.4241),
    "rio de janeiro": (-22.9068, -43.1729),
    "anchorage": (61.2181, -149.9003),
    "singapore": (1.3521, 103.8198),
    "reykjavik": (64.1466, -21.9426),
    "auckland": (-36.8485, 174.7633),
    "suva": (-18.1416, 178.4419),
    "honolulu": (21.3069, -157.8583),
    "quito": (-0.1807, -78.4678),
}


class GazetteerResolver(LocationResolver):
    """Resolve names from a static table, ignoring case and outer spaces.

    Parameters
    ----------
    entries : mapping, optional
        Name → (lat, lon) in degrees. Defaults to `DEFAULT_GAZETTEER`.
    """

    def __init__(self, entries: Optional[Mapping[str, Tuple[float, float]]] = None):
        source = DEFAULT_GAZETTEER if entries is None else entries
        self._entries = {
            self._key(name): Coordinates(lat=lat, lon=lon)
            for name, (lat, lon) in source.items()
        }

    @staticmethod
    def _key(name: str) -> str:
        return " ".join(name.split()).lower()

    def __contains__(self, name: str) -> bool:
        return self._key(name) in self._entries

    async def resolve_location(self, name: str) -> Coordinates:
        try:
            return self._entries[self._key(name)]
        except KeyError:
            raise LocationNotFoundError(name) from None


class NominatimResolver(LocationResolver):
    """Resolve names with a Nominatim-compatible search endpoint.

    Parameters
    ----------
    base_url : str
        Search endpoint returning a JSON list of `{"lat": ..., "lon": ...}`.
    timeout : float
        Request timeout in seconds.
    user_agent : str
        User-Agent header; public Nominatim instances require one.
    session : requests.Session, optional
        Session to reuse connections across lookups.
    """

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/search",
        timeout: float = 10.0,
        user_agent: str = "navpath-visualizer",
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session or requests.Session()

    def _fetch(self, name: str) -> Any:
        params = {"q": name, "format": "json", "limit": 1}
        headers = {"User-Agent": self.user_agent}
        logger.info(f"Geocoding '{name}' via {self.base_url}")
        try:
            response = self._session.get(self.base_url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise UpstreamGeocodingError(f"upstream error: {e}") from e
        except ValueError as e:
            raise UpstreamGeocodingError(f"upstream error: invalid JSON ({e})") from e

    async def resolve_location(self, name: str) -> Coordinates:
        payload = await asyncio.to_thread(self._fetch, name)
        if not isinstance(payload, list):
            raise UpstreamGeocodingError(f"upstream error: unexpected payload {payload!r}")
        if not payload:
            raise LocationNotFoundError(name)
        first = payload[0]
        try:
            return Coordinates(lat=float(first["lat"]), lon=float(first["lon"]))
        except (KeyError, TypeError, ValueError, InvalidCoordinateError) as e:
            raise UpstreamGeocodingError(f"upstream error: bad coordinates {first!r}") from e
