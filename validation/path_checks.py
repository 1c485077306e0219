"""
Consistency Checks for Computed Paths and View States.

This module verifies that distances, sampled paths and view states obey the
geometric relationships they must satisfy, independently of how they were
computed.

Check Categories
----------------
1. Distance ordering (a rhumb line is never shorter than the great circle)
2. Independent cross-check of the haversine against `pyproj.Geod` on the
   same sphere
3. Path continuity (no seam jump between consecutive samples) and the
   summed length of the sampled legs
4. Degenerate-case shape (due east-west rhumb lines keep their latitude)
5. Endpoint fidelity and zoom-range bounds of view states
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
from pyproj import Geod

from common.constants import GeodesyConstants
from common.logging_config import get_logger
from common.types import Coordinates, GeoPath, PathType
from geospatial.distance_calculations import (
    loxodromic_distance_km,
    orthodromic_distance_batch,
    orthodromic_distance_km,
)
from viewport.view_state import ViewState

logger = get_logger(__name__)

_sphere_geod = Geod(
    a=GeodesyConstants.EARTH_MEAN_RADIUS_KM.value * 1000.0,
    b=GeodesyConstants.EARTH_MEAN_RADIUS_KM.value * 1000.0,
)


class ConsistencyViolation(RuntimeError):
    """Raised in strict mode when a check fails."""


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes
    ----------
    test_name : str
        Name of the check.
    passed : bool
        Whether the check passed.
    message : str
        Description of result.
    details : dict
        Additional details.
    """
    test_name: str
    passed: bool
    message: str
    details: Dict[str, Any]


class PathConsistencyChecker:
    """Checker for geometric consistency of paths and views.

    Parameters
    ----------
    strict_mode : bool
        If True, raise `ConsistencyViolation` on the first failed check.
    log_violations : bool
        Whether to log failed checks.
    distance_tolerance_km : float
        Absolute slack for distance comparisons.
    """

    def __init__(
        self,
        strict_mode: bool = False,
        log_violations: bool = True,
        distance_tolerance_km: float = 1e-6
    ):
        self.strict_mode = strict_mode
        self.log_violations = log_violations
        self.distance_tolerance_km = distance_tolerance_km
        self._logger = get_logger("PathConsistencyChecker")

    def _finish(self, result: ValidationResult) -> ValidationResult:
        if not result.passed:
            if self.log_violations:
                self._logger.warning(f"{result.test_name} failed: {result.message}")
            if self.strict_mode:
                raise ConsistencyViolation(f"{result.test_name}: {result.message}")
        return result

    def check_all(
        self,
        p1: Coordinates,
        p2: Coordinates,
        path: Optional[GeoPath] = None,
        states: Iterable[ViewState] = ()
    ) -> List[ValidationResult]:
        """Run every applicable check.

        Parameters
        ----------
        p1, p2 : Coordinates
            Endpoints of the request.
        path : GeoPath, optional
            Sampled path between the endpoints.
        states : iterable of ViewState
            View states to bound-check.

        Returns
        -------
        List[ValidationResult]
            Results of all checks.
        """
        results = [
            self.check_distance_ordering(p1, p2),
            self.check_geod_agreement(p1, p2),
        ]
        if path is not None:
            results.append(self.check_seam_continuity(path))
            results.append(self.check_endpoints(path, p1, p2))
            results.append(self.check_path_length(path, p1, p2))
            if path.path_type is PathType.LOXODROMIC:
                results.append(self.check_east_west_latitude(path))
        for state in states:
            results.append(self.check_zoom_range(state))
        return results

    def check_distance_ordering(self, p1: Coordinates, p2: Coordinates) -> ValidationResult:
        """Loxodromic distance must not be shorter than orthodromic distance."""
        ortho = orthodromic_distance_km(p1, p2)
        lox = loxodromic_distance_km(p1, p2)
        slack = self.distance_tolerance_km + 1e-9 * ortho
        return self._finish(ValidationResult(
            test_name="distance_ordering",
            passed=bool(lox >= ortho - slack),
            message=f"loxodromic {lox:.6f} km vs orthodromic {ortho:.6f} km",
            details={"orthodromic_km": ortho, "loxodromic_km": lox, "excess_km": lox - ortho},
        ))

    def check_geod_agreement(
        self,
        p1: Coordinates,
        p2: Coordinates,
        rel_tolerance: float = 1e-6
    ) -> ValidationResult:
        """Haversine distance must match pyproj's geodesic on the same sphere."""
        _, _, geod_m = _sphere_geod.inv(p1.lon, p1.lat, p2.lon, p2.lat)
        geod_km = float(geod_m) / 1000.0
        ortho = orthodromic_distance_km(p1, p2)
        error = abs(ortho - geod_km)
        passed = error <= rel_tolerance * max(geod_km, 1.0) + self.distance_tolerance_km
        return self._finish(ValidationResult(
            test_name="geod_agreement",
            passed=bool(passed),
            message=f"haversine {ortho:.6f} km vs pyproj {geod_km:.6f} km",
            details={"haversine_km": ortho, "geod_km": geod_km, "abs_error_km": error},
        ))

    def check_seam_continuity(self, path: GeoPath) -> ValidationResult:
        """No two consecutive samples may be more than 180° of longitude apart."""
        jumps = np.abs(np.diff(path.longitudes))
        max_jump = float(jumps.max()) if len(jumps) else 0.0
        return self._finish(ValidationResult(
            test_name="seam_continuity",
            passed=max_jump <= 180.0,
            message=f"largest longitude step {max_jump:.4f}°",
            details={"max_step_deg": max_jump, "num_samples": len(path)},
        ))

    def check_path_length(
        self,
        path: GeoPath,
        p1: Coordinates,
        p2: Coordinates,
        rel_tolerance: float = 1e-6
    ) -> ValidationResult:
        """Summed great-circle legs between samples must fit the path model.

        Orthodromic samples lie on one great circle, so their legs add up to
        the orthodromic distance. Legs between rhumb-line samples add up to
        at least the orthodromic and at most the loxodromic distance.
        """
        legs = orthodromic_distance_batch(
            path.latitudes[:-1], path.longitudes[:-1], path.latitudes[1:], path.longitudes[1:]
        )
        total = float(np.sum(legs))
        ortho = orthodromic_distance_km(p1, p2)
        slack = rel_tolerance * max(ortho, 1.0) + self.distance_tolerance_km
        if path.path_type is PathType.ORTHODROMIC:
            upper = ortho
            passed = abs(total - ortho) <= slack
        else:
            upper = loxodromic_distance_km(p1, p2)
            passed = ortho - slack <= total <= upper + slack
        return self._finish(ValidationResult(
            test_name="path_length",
            passed=bool(passed),
            message=f"sampled length {total:.6f} km within [{ortho:.6f}, {upper:.6f}] km",
            details={"sampled_km": total, "orthodromic_km": ortho, "upper_km": upper, "legs": int(legs.size)},
        ))

    def check_east_west_latitude(self, path: GeoPath, tolerance_deg: float = 1e-9) -> ValidationResult:
        """A due east-west rhumb line must keep a constant latitude."""
        if not path.metadata.get("east_west", False):
            return ValidationResult(
                test_name="east_west_latitude",
                passed=True,
                message="not an east-west rhumb line",
                details={},
            )
        spread = float(np.ptp(path.latitudes))
        return self._finish(ValidationResult(
            test_name="east_west_latitude",
            passed=spread <= tolerance_deg,
            message=f"latitude spread {spread:.3e}°",
            details={"latitude_spread_deg": spread},
        ))

    def check_endpoints(
        self,
        path: GeoPath,
        p1: Coordinates,
        p2: Coordinates,
        tolerance_deg: float = 1e-9
    ) -> ValidationResult:
        """First and last samples must coincide with the endpoints (mod 360° in longitude)."""
        def offset(lat, lon, target: Coordinates) -> float:
            dlon = (lon - target.lon + 180.0) % 360.0 - 180.0
            return max(abs(lat - target.lat), abs(dlon))

        start_err = offset(path.latitudes[0], path.longitudes[0], p1)
        end_err = offset(path.latitudes[-1], path.longitudes[-1], p2)
        return self._finish(ValidationResult(
            test_name="endpoints",
            passed=max(start_err, end_err) <= tolerance_deg,
            message=f"start offset {start_err:.3e}°, end offset {end_err:.3e}°",
            details={"start_offset_deg": start_err, "end_offset_deg": end_err},
        ))

    def check_zoom_range(self, state: ViewState) -> ValidationResult:
        """The zoom factor of a view state must lie inside its extent."""
        lo, hi = state.zoom_extent
        k = state.zoom_factor
        return self._finish(ValidationResult(
            test_name=f"zoom_range_{state.kind.value}",
            passed=bool(lo <= k <= hi),
            message=f"zoom {k:.4f} within [{lo}, {hi}]",
            details={"zoom": k, "extent": (lo, hi)},
        ))
