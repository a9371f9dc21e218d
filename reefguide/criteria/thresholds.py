"""
Criteria Thresholds
===================

Parse, validate and apply per-criterion lower/upper bounds.

Queries take the form ``Depth=-9.0:0.0&Slope=0.0:40.0&Rugosity=0.0:0.0``.
Any problem with the bounds is a ConfigurationError and is raised before a
search starts.

Example:
    from reefguide.criteria import parse_criteria_query, within_thresholds

    bounds = parse_criteria_query("Depth=-9.0:0.0&Slope=0.0:40.0")
    grid = within_thresholds(criteria_stack, bounds)
"""

import math
import warnings
from typing import NamedTuple
from urllib.parse import parse_qsl

import numpy as np

from ..config import CRITERIA_DATA_MAP, DEFAULT_CRS, RUGOSITY_REGION
from ..exceptions import ConfigurationError
from .grid import SuitabilityGrid


class CriteriaBounds(NamedTuple):
    """Inclusive bounds for one criterion layer."""
    name: str
    lower: float
    upper: float


def _parse_bound(value, name, which):
    try:
        bound = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid {which} bound '{value}' for criterion '{name}'") from None
    if math.isnan(bound):
        raise ConfigurationError(f"{which.capitalize()} bound for criterion '{name}' is NaN")
    return bound


def parse_criteria_query(query, criteria_names=None):
    """
    Parse criteria bounds from a request query.

    Keys that are not criteria names are ignored, so a full query string
    (with region or other parameters) can be passed as-is.

    Args:
        query: Query string or already-parsed dict of ``name -> "lb:ub"``
        criteria_names: Recognised criterion names (default: CRITERIA_DATA_MAP keys)

    Returns:
        List of CriteriaBounds, in ``criteria_names`` order

    Raises:
        ConfigurationError: If a value is not of the form ``lb:ub`` with
            numeric bounds
    """
    if criteria_names is None:
        criteria_names = list(CRITERIA_DATA_MAP)
    if isinstance(query, str):
        query = dict(parse_qsl(query.lstrip("?")))

    bounds = []
    for name in criteria_names:
        if name not in query:
            continue

        parts = str(query[name]).split(":")
        if len(parts) != 2:
            raise ConfigurationError(
                f"Criterion '{name}' must be given as 'lower:upper', got '{query[name]}'"
            )
        lb = _parse_bound(parts[0], name, "lower")
        ub = _parse_bound(parts[1], name, "upper")
        bounds.append(CriteriaBounds(name, lb, ub))

    return bounds


def remove_rugosity(region, bounds):
    """
    Remove the rugosity criterion if the region has no rugosity layer.

    Rugosity data currently only exists for the Townsville region.
    """
    if RUGOSITY_REGION in region:
        return list(bounds)
    return [b for b in bounds if b.name.lower() != "rugosity"]


def validate_bounds(bounds, available):
    """
    Check bounds against the available criteria layers.

    Args:
        bounds: Sequence of CriteriaBounds
        available: Names of the criteria layers that can be assessed

    Raises:
        ConfigurationError: If no bounds are given, a criterion is unknown,
            or a lower bound exceeds its upper bound
    """
    if not bounds:
        raise ConfigurationError("No criteria bounds given")

    available = set(available)
    for b in bounds:
        if b.name not in available:
            raise ConfigurationError(
                f"Unknown criterion '{b.name}'. Available: {sorted(available)}"
            )
        if b.lower > b.upper:
            raise ConfigurationError(
                f"Lower bound {b.lower} exceeds upper bound {b.upper} for criterion '{b.name}'"
            )


def within_thresholds(stack, bounds, crs=None):
    """
    Build the suitability grid: cells where every criterion is within bounds.

    Args:
        stack: xarray Dataset with one (y, x) variable per criterion
        bounds: Sequence of CriteriaBounds
        crs: CRS of the stack (default: ``stack.attrs["crs"]`` or EPSG:4326)

    Returns:
        SuitabilityGrid

    Raises:
        ConfigurationError: If the bounds are invalid for this stack
    """
    validate_bounds(bounds, stack.data_vars)
    if crs is None:
        crs = stack.attrs.get("crs", DEFAULT_CRS)

    mask = None
    for b in bounds:
        layer = stack[b.name]
        if np.all(np.isnan(layer.values)):
            warnings.warn(f"Criterion layer '{b.name}' holds no data", stacklevel=2)
        # NaN compares False, so missing data is never suitable
        layer_mask = (layer >= b.lower) & (layer <= b.upper)
        mask = layer_mask if mask is None else mask & layer_mask

    return SuitabilityGrid(mask.transpose("y", "x"), crs=crs, res=stack.attrs.get("res"))
