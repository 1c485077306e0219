"""
Rendering Module for the Path Visualizer.

Produces backend-agnostic screen primitives (polylines, polygons, circles)
for one frame. Nothing here draws; a host hands the primitives to SVG,
canvas or any other backend.

This module provides:
- Render primitives and run splitting
- Path and endpoint-marker rendering with the reveal animation
- Basemap rendering with hemisphere clipping, graticule and background
"""

from rendering.primitives import (
    Style,
    Polyline,
    Polygon,
    Circle,
    RenderPrimitive,
    ProjectedPath,
    polyline_length,
    truncate_runs,
)

from rendering.path_renderer import (
    PathRenderer,
    RevealTiming,
    project_path,
)

from rendering.graticule import graticule_lines, render_graticule

from rendering.basemap_renderer import (
    BasemapRenderer,
    clip_ring_to_hemisphere,
)

__all__ = [
    # Primitives
    "Style",
    "Polyline",
    "Polygon",
    "Circle",
    "RenderPrimitive",
    "ProjectedPath",
    "polyline_length",
    "truncate_runs",
    # Paths
    "PathRenderer",
    "RevealTiming",
    "project_path",
    # Basemap
    "graticule_lines",
    "render_graticule",
    "BasemapRenderer",
    "clip_ring_to_hemisphere",
]
