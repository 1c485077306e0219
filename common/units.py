"""
Unit Registry for Distance Reporting.

This module provides a centralized unit system using the `pint` library. The
geodesy layer works in bare kilometres for speed; values leaving the core
for display are tagged with units here so that conversions to nautical and
statute miles cannot silently use the wrong factor.

Example Usage
-------------
>>> from common.units import Q_
>>> leg = Q_(5837, 'km')
>>> round(leg.to('nautical_mile').magnitude, 1)
3151.7
"""

from typing import Union
import warnings

import pint
from pint import UnitRegistry as PintUnitRegistry

# Create the global unit registry
ureg = PintUnitRegistry()

# Convenience alias for creating quantities
Q_ = ureg.Quantity


class UnitRegistry:
    """Wrapper around pint UnitRegistry with navigation extensions.

    Attributes
    ----------
    registry : pint.UnitRegistry
        The underlying pint unit registry.

    Examples
    --------
    >>> units = UnitRegistry()
    >>> round(units.quantity(1, 'nmi').to('km').magnitude, 3)
    1.852
    """

    def __init__(self):
        """Initialize the unit registry with navigation aliases."""
        self._registry = ureg
        self._setup_navigation_units()

    def _setup_navigation_units(self) -> None:
        """Define short aliases used in navigation."""
        # Recent pint releases already ship nmi
        if "nmi" not in self._registry:
            self._registry.define("@alias nautical_mile = nmi")

    @property
    def registry(self) -> PintUnitRegistry:
        """Access the underlying pint registry."""
        return self._registry

    def quantity(self, value: float, unit: str) -> pint.Quantity:
        """Create a quantity with units.

        Parameters
        ----------
        value : float
            The numerical value.
        unit : str
            The unit string (e.g., 'km', 'nautical_mile').

        Returns
        -------
        pint.Quantity
            A quantity object with associated units.
        """
        return self._registry.Quantity(value, unit)

    def validate_dimensionality(
        self,
        quantity: pint.Quantity,
        expected_dim: str
    ) -> bool:
        """Check if a quantity has the expected dimensionality.

        Raises
        ------
        pint.DimensionalityError
            If dimensionality does not match.
        """
        expected = self._registry.parse_expression(expected_dim).dimensionality
        if quantity.dimensionality != expected:
            raise pint.DimensionalityError(
                quantity.units,
                expected,
                quantity.dimensionality,
                expected
            )
        return True


def ensure_quantity(value: Union[float, pint.Quantity], default_unit: str) -> pint.Quantity:
    """Ensure a value is a pint Quantity, applying default unit if necessary.

    Warnings
    --------
    Issues a warning if a bare number is provided without units.
    """
    if isinstance(value, pint.Quantity):
        return value
    warnings.warn(
        f"Bare number {value} provided without units. "
        f"Assuming {default_unit}. Consider using explicit units.",
        UserWarning,
        stacklevel=2
    )
    return ureg.Quantity(value, default_unit)


def distance_in_units(distance_km: float, units=("km", "nautical_mile", "mile")) -> dict:
    """Express a kilometre distance in several length units.

    Parameters
    ----------
    distance_km : float
        Distance in kilometres.
    units : iterable of str
        Target pint unit names.

    Returns
    -------
    dict
        Mapping unit name -> pint.Quantity.
    """
    base = ureg.Quantity(distance_km, "km")
    return {unit: base.to(unit) for unit in units}


# Standard unit definitions for the system
STANDARD_UNITS = {
    "latitude": "degree",
    "longitude": "degree",
    "distance": "kilometer",
    "duration": "millisecond",
    "screen": "pixel",
}
