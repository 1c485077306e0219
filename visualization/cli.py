"""
Command-line entry point: `navpath`.

Compares the orthodromic and loxodromic distance between two endpoints and
optionally writes one fully settled frame of render primitives as JSON.

Endpoints are either "LAT,LON" pairs or place names. Put `--` before a pair
that starts with a minus sign so it is not read as an option:

    navpath Paris "New York"
    navpath --path-type loxodromic --frame frame.json -- -33.87,151.21 51.51,-0.13
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence

from common.config import VisualizerConfig
from common.logging_config import AuditLogger, get_logger
from common.types import Coordinates, PathType, ViewMode
from data_ingestion.geocoding import GazetteerResolver, LocationResolver, NominatimResolver
from rendering.primitives import RenderPrimitive
from visualization.session import PathVisualizer

log = get_logger("navpath.cli")


def parse_coordinates(text: str) -> Optional[Coordinates]:
    """Parse 'LAT,LON'; None when the text is not a numeric pair.

    Raises
    ------
    InvalidCoordinateError
        If the pair is numeric but out of range.
    """
    parts = text.split(",")
    if len(parts) != 2:
        return None
    try:
        lat, lon = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    return Coordinates(lat=lat, lon=lon)


def primitive_to_dict(primitive: RenderPrimitive) -> dict:
    data = asdict(primitive)
    data["type"] = type(primitive).__name__.lower()
    return data


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="navpath",
        description="Compare great-circle and rhumb-line paths between two places",
    )
    parser.add_argument("start", help="Start as 'LAT,LON' or a place name")
    parser.add_argument("end", help="End as 'LAT,LON' or a place name")
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    parser.add_argument("--path-type", choices=[p.value for p in PathType], help="Path model to draw")
    parser.add_argument("--view-mode", choices=[m.value for m in ViewMode], help="Globe or map view")
    parser.add_argument(
        "--geocoder", choices=("gazetteer", "nominatim"), default="gazetteer",
        help="Resolver used for place names",
    )
    parser.add_argument("--frame", type=Path, help="Write the settled frame's primitives to this JSON file")
    parser.add_argument("--basemap", help="Basemap file or URL (overrides the configuration)")
    parser.add_argument("--no-basemap", action="store_true", help="Do not load land outlines for --frame")
    parser.add_argument("--audit", type=Path, help="Export the session's audit trail to this JSON file")
    parser.add_argument("--check", action="store_true", help="Run the geometric consistency checks")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _load_config(args: argparse.Namespace) -> VisualizerConfig:
    data = VisualizerConfig.from_json(args.config).to_dict() if args.config else {}
    if args.path_type:
        data["path_type"] = args.path_type
    if args.view_mode:
        data["view_mode"] = args.view_mode
    if args.basemap:
        data["basemap_source"] = args.basemap
    return VisualizerConfig.from_dict(data)


def _resolver(name: str, config: VisualizerConfig) -> LocationResolver:
    if name == "nominatim":
        return NominatimResolver(timeout=config.request_timeout_s)
    return GazetteerResolver()


def _print_report(viz: PathVisualizer) -> None:
    start, end = viz.endpoints
    print(f"{start.name}: {start.coords.lat:.4f}, {start.coords.lon:.4f}")
    print(f"{end.name}: {end.coords.lat:.4f}, {end.coords.lon:.4f}")
    for path_type, quantities in viz.distance_report().items():
        marker = "*" if path_type == viz.path_type.value else " "
        values = "  ".join(f"{q.magnitude:,.1f} {unit}" for unit, q in quantities.items())
        print(f"{marker} {path_type:<12} {values}")
    courses = viz.courses()
    print(
        f"  course: great circle departs {courses[PathType.ORTHODROMIC.value]:.1f}°, "
        f"rhumb line holds {courses[PathType.LOXODROMIC.value]:.1f}°"
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        for name in ("navpath.cli", "visualization.session", "audit"):
            logging.getLogger(name).setLevel(logging.DEBUG)

    try:
        config = _load_config(args)
        start = parse_coordinates(args.start)
        end = parse_coordinates(args.end)
    except (OSError, ValueError) as e:
        log.error(f"Invalid input: {e}")
        return 1

    with PathVisualizer(config) as viz:
        if start is not None and end is not None:
            viz.visualize(start, end, now_ms=0.0, names=(args.start, args.end))
        else:
            resolver = _resolver(args.geocoder, config)
            if start is not None or end is not None:
                resolver = _MixedResolver(resolver, {args.start: start, args.end: end})
            asyncio.run(viz.visualize_names(resolver, args.start, args.end, now_ms=0.0))
            if viz.error:
                print(viz.error, file=sys.stderr)
                return 1

        _print_report(viz)

        if args.check:
            results = viz.check_consistency()
            failed = [r for r in results if not r.passed]
            for result in failed:
                print(f"check failed: {result.test_name}: {result.message}", file=sys.stderr)
            print(f"checks: {len(results) - len(failed)}/{len(results)} passed")
            if failed:
                return 1

        if args.frame:
            if not args.no_basemap:
                viz.load_basemap()
            settle_ms = max(
                config.auto_fit_duration_ms,
                config.reveal_duration_ms,
                config.marker_delay_ms + config.marker_fade_ms,
            )
            primitives: List[dict] = [primitive_to_dict(p) for p in viz.frame(now_ms=settle_ms)]
            with open(args.frame, "w") as f:
                json.dump({"view_mode": viz.view_mode.value, "primitives": primitives}, f)
            log.info(f"Wrote {len(primitives)} primitives to {args.frame}")

    if args.audit:
        AuditLogger().export_session_artifacts(viz.session_id, args.audit)
    return 0


class _MixedResolver(LocationResolver):
    """Serve already parsed pairs and defer names to another resolver."""

    def __init__(self, inner: LocationResolver, known: dict):
        self._inner = inner
        self._known = {name: coords for name, coords in known.items() if coords is not None}

    async def resolve_location(self, name: str) -> Coordinates:
        if name in self._known:
            return self._known[name]
        return await self._inner.resolve_location(name)


if __name__ == "__main__":
    sys.exit(main())
