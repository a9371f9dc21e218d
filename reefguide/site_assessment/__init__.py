"""
Site Assessment Module
======================

Locate, align, score and de-overlap deployment sites.

Pipeline:
    1. find_sites()   → one scored (optionally edge-aligned) box per pixel
    2. filter_sites() → non-overlapping, highest scoring boxes
    3. apply_score_threshold() → drop sites below the usable score

Example:
    from reefguide.site_assessment import ReefOutlineStore, find_sites, filter_sites

    outlines = ReefOutlineStore.from_geodataframe(reef_gdf)
    candidates = find_sites(pixels, grid, outlines, align_to_edges=True)
    sites = filter_sites(candidates)
"""

from .outlines import (
    ReefOutline,
    ReefOutlineStore,
)

from .edges import (
    filter_far_polygons,
    closest_reef_edge,
    orient_rotation,
    initial_search_rotation,
)

from .filtering import (
    filter_sites,
    apply_score_threshold,
)

from .search import (
    SearchCandidate,
    initial_search_box,
    assess_reef_site,
    assess_pixel,
    candidates_to_frame,
    find_sites,
    identify_potential_sites,
    identify_potential_sites_edges,
)

__all__ = [
    # Reef outlines
    "ReefOutline",
    "ReefOutlineStore",
    # Edge alignment
    "filter_far_polygons",
    "closest_reef_edge",
    "orient_rotation",
    "initial_search_rotation",
    # Filtering
    "filter_sites",
    "apply_score_threshold",
    # Search
    "SearchCandidate",
    "initial_search_box",
    "assess_reef_site",
    "assess_pixel",
    "candidates_to_frame",
    "find_sites",
    "identify_potential_sites",
    "identify_potential_sites_edges",
]
