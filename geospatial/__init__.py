"""
Geospatial Module for the Path Visualizer.

All Earth-surface calculations system-wide originate from this module. No
downstream module implements spherical geometry independently.

This module provides:
- Spherical coordinate models and rotations
- Orthodromic and loxodromic distances
- Great-circle and rhumb-line path sampling
- Orthographic and Mercator screen projections
"""

from geospatial.coordinate_models import (
    geographic_to_cartesian,
    cartesian_to_geographic,
    rotate_geographic,
    rotate_geographic_inverse,
    angular_distance,
    normalize_longitude_deg,
)

from geospatial.distance_calculations import (
    orthodromic_distance_km,
    loxodromic_distance_km,
    rhumb_bearing_deg,
    initial_bearing_deg,
    stretched_latitude,
    clamp_latitude_deg,
)

from geospatial.path_generation import (
    central_angle,
    great_circle_interpolate,
    great_circle_midpoint,
    great_circle_path,
    loxodromic_path,
    path_between,
    split_at_antimeridian,
)

from geospatial.projections import (
    ProjectionAdapter,
    OrthographicProjection,
    MercatorProjection,
    projection_for,
)

__all__ = [
    # Coordinate models
    "geographic_to_cartesian",
    "cartesian_to_geographic",
    "rotate_geographic",
    "rotate_geographic_inverse",
    "angular_distance",
    "normalize_longitude_deg",
    # Distance calculations
    "orthodromic_distance_km",
    "loxodromic_distance_km",
    "rhumb_bearing_deg",
    "initial_bearing_deg",
    "stretched_latitude",
    "clamp_latitude_deg",
    # Path generation
    "central_angle",
    "great_circle_interpolate",
    "great_circle_midpoint",
    "great_circle_path",
    "loxodromic_path",
    "path_between",
    "split_at_antimeridian",
    # Projections
    "ProjectionAdapter",
    "OrthographicProjection",
    "MercatorProjection",
    "projection_for",
]
