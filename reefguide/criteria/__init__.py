"""
Criteria Module
===============

Criteria thresholds → suitability grid → candidate search pixels.

Pipeline:
    1. parse_criteria_query()  → per-criterion bounds
    2. within_thresholds()     → SuitabilityGrid
    3. identify_search_pixels() → DataFrame of (indices, lon, lat)

Example:
    from reefguide.criteria import (
        parse_criteria_query, within_thresholds, identify_search_pixels,
    )

    bounds = parse_criteria_query("Depth=-9.0:0.0&Slope=0.0:40.0")
    grid = within_thresholds(regional_data.criteria, bounds)
    pixels = identify_search_pixels(grid)
"""

from .grid import SuitabilityGrid

from .thresholds import (
    CriteriaBounds,
    parse_criteria_query,
    remove_rugosity,
    validate_bounds,
    within_thresholds,
)

from .pixels import (
    identify_search_pixels,
    trim_bounds,
)

__all__ = [
    "SuitabilityGrid",
    "CriteriaBounds",
    "parse_criteria_query",
    "remove_rugosity",
    "validate_bounds",
    "within_thresholds",
    "identify_search_pixels",
    "trim_bounds",
]
