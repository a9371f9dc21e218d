"""
Site Processing Module
======================

Load regional inputs and save search results.

Pipeline:
    1. load_regional_data() → criteria stack + reef outlines
    2. [criteria / site_assessment] → filtered sites
    3. save_site_results()  → GeoJSON + CSV

Example:
    from reefguide.site_processing import load_regional_data, save_site_results

    data = load_regional_data("Townsville-Whitsunday")
    ...
    save_site_results(sites, data.region, "outputs/Townsville-Whitsunday/sites")
"""

from .loaders import (
    RegionalData,
    load_criteria_stack,
    load_reef_outlines,
    load_regional_data,
)

from .save_results import (
    output_geojson,
    save_sites_csv,
    save_site_results,
)

__all__ = [
    "RegionalData",
    "load_criteria_stack",
    "load_reef_outlines",
    "load_regional_data",
    "output_geojson",
    "save_sites_csv",
    "save_site_results",
]
