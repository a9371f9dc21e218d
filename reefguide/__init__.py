"""
Reef Deployment Site Search Package
===================================

Finds non-overlapping, reef-edge-aligned deployment sites on suitable reef
habitat.

Modules:
    - geometry: Points, lines, polygons and the pure operations on them
    - criteria: Criteria thresholds → suitability grid → search pixels
    - site_assessment: Edge alignment, box scoring and overlap filtering
    - site_processing: Regional data loading and result export

Example:
    from reefguide import (
        load_regional_data, parse_criteria_query, within_thresholds,
        identify_potential_sites_edges,
    )

    data = load_regional_data("Townsville-Whitsunday")
    bounds = parse_criteria_query("Depth=-9.0:-2.0&Slope=0.0:40.0")
    grid = within_thresholds(data.criteria, bounds)

    sites = identify_potential_sites_edges(grid, data.outlines, n_jobs=4)
    print(f"Sites: {len(sites)}, best score: {sites['score'].max():.2f}")
"""

__version__ = "1.0.0"
__author__ = "Reef Restoration Project"

# Errors
from .exceptions import ConfigurationError, GeometryError, NoNearbyReefError

# Geometry
from .geometry import (
    Point,
    Line,
    Polygon,
    create_bbox,
    create_poly,
    rotate_polygon,
    move_geom,
    line_angle,
)

# Criteria
from .criteria import (
    SuitabilityGrid,
    CriteriaBounds,
    parse_criteria_query,
    within_thresholds,
    identify_search_pixels,
)

# Site search
from .site_assessment import (
    ReefOutlineStore,
    initial_search_rotation,
    assess_reef_site,
    find_sites,
    filter_sites,
    identify_potential_sites,
    identify_potential_sites_edges,
)

# Data loading and export
from .site_processing import (
    RegionalData,
    load_regional_data,
    save_site_results,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "GeometryError",
    "NoNearbyReefError",
    # Geometry
    "Point",
    "Line",
    "Polygon",
    "create_bbox",
    "create_poly",
    "rotate_polygon",
    "move_geom",
    "line_angle",
    # Criteria
    "SuitabilityGrid",
    "CriteriaBounds",
    "parse_criteria_query",
    "within_thresholds",
    "identify_search_pixels",
    # Site search
    "ReefOutlineStore",
    "initial_search_rotation",
    "assess_reef_site",
    "find_sites",
    "filter_sites",
    "identify_potential_sites",
    "identify_potential_sites_edges",
    # Data loading and export
    "RegionalData",
    "load_regional_data",
    "save_site_results",
]
