"""
Data Ingestion Module for the Path Visualizer.

This module provides the external collaborators of the visualizer core:
the world basemap and the place-name geocoders.
"""

from data_ingestion.basemap import (
    BasemapUnavailableError,
    BasemapPolygonSet,
    BasemapProvenance,
    BasemapStore,
    LandPolygon,
    decode_basemap,
    decode_geojson,
    decode_topojson,
    load_basemap,
)

from data_ingestion.geocoding import (
    GeocodingError,
    LocationNotFoundError,
    UpstreamGeocodingError,
    LocationPoint,
    LocationResolver,
    GazetteerResolver,
    NominatimResolver,
    DEFAULT_GAZETTEER,
)

__all__ = [
    # Basemap
    "BasemapUnavailableError",
    "BasemapPolygonSet",
    "BasemapProvenance",
    "BasemapStore",
    "LandPolygon",
    "decode_basemap",
    "decode_geojson",
    "decode_topojson",
    "load_basemap",
    # Geocoding
    "GeocodingError",
    "LocationNotFoundError",
    "UpstreamGeocodingError",
    "LocationPoint",
    "LocationResolver",
    "GazetteerResolver",
    "NominatimResolver",
    "DEFAULT_GAZETTEER",
]
