#!/usr/bin/env python3
"""
Reef Deployment Site Search
===========================

Finds non-overlapping, edge-aligned deployment sites on suitable reef
habitat for one region.

Loads the prepared criteria layers and reef outlines for the region,
thresholds the criteria into a suitability grid, searches a box around
every suitable pixel, then keeps the best non-overlapping boxes.

Usage:
    python -m reefguide.scripts.run_site_search
"""

import warnings
from pathlib import Path

from reefguide.config import SURR_THRESHOLD, X_DIST_M, Y_DIST_M, get_region_paths
from reefguide.criteria import (
    parse_criteria_query, remove_rugosity,
    within_thresholds, identify_search_pixels,
)
from reefguide.site_assessment import identify_potential_sites_edges
from reefguide.site_processing import load_regional_data, save_site_results
from reefguide.visualization import plot_all

# =============================================================================
# CONFIGURATION - Modify these parameters as needed
# =============================================================================

# Region name, must match a folder under data/regions/
REGION = "Townsville-Whitsunday"

# Resolve all data paths for this region
_region = get_region_paths(REGION)

# Criteria bounds as "Name=lower:upper" pairs joined with "&"
CRITERIA_QUERY = (
    "Depth=-9.0:-2.0&Slope=0.0:40.0&Turbidity=0.0:58.0"
    "&WavesHs=0.0:1.0&WavesTp=0.0:6.0&Rugosity=0.0:6.0"
)

# Deployment site size (meters)
X_DIST = X_DIST_M
Y_DIST = Y_DIST_M

# Minimum usable coverage score
MIN_SCORE = SURR_THRESHOLD

# Worker threads for the pixel search (1 = serial)
N_JOBS = 4

# Output
OUTPUT_DIR = Path(_region["sites_dir"])
PLOTS_DIR = Path(_region["plots_dir"])

# =============================================================================
# MAIN EXECUTION
# =============================================================================


def main():
    print("=" * 70)
    print("REEF DEPLOYMENT SITE SEARCH")
    print("=" * 70)

    # -------------------------------------------------------------------------
    # Step 1: Load Regional Data
    # -------------------------------------------------------------------------
    print(f"\n[1/5] Loading regional data for {REGION}...")
    data = load_regional_data(REGION, paths=_region)

    # -------------------------------------------------------------------------
    # Step 2: Suitability Grid
    # -------------------------------------------------------------------------
    print("\n[2/5] Applying criteria thresholds...")
    bounds = parse_criteria_query(CRITERIA_QUERY)
    bounds = remove_rugosity(REGION, bounds)
    bounds = [b for b in bounds if b.name in data.criteria.data_vars]

    grid = within_thresholds(data.criteria, bounds, crs=data.crs)
    print(f"      Suitable cells: {int(grid.values.sum())} of {grid.values.size}")

    # -------------------------------------------------------------------------
    # Step 3: Candidate Pixels
    # -------------------------------------------------------------------------
    print("\n[3/5] Identifying search pixels...")
    pixels = identify_search_pixels(grid)
    print(f"      Search pixels: {len(pixels)}")

    if len(pixels) == 0:
        warnings.warn("No suitable pixels found; nothing to search.")
        return

    # -------------------------------------------------------------------------
    # Step 4: Edge-Aligned Site Search
    # -------------------------------------------------------------------------
    print("\n[4/5] Searching for edge-aligned sites...")
    sites = identify_potential_sites_edges(
        grid, data.outlines, pixels=pixels,
        x_dist=X_DIST, y_dist=Y_DIST,
        surr_threshold=MIN_SCORE, n_jobs=N_JOBS,
    )

    print(f"\n      Sites found: {len(sites)}")
    if len(sites) > 0:
        print(f"      Best score: {sites['score'].max():.3f}")
        print(f"      Mean score: {sites['score'].mean():.3f}")

    # -------------------------------------------------------------------------
    # Step 5: Save Results
    # -------------------------------------------------------------------------
    print("\n[5/5] Saving results...")
    save_site_results(sites, REGION, OUTPUT_DIR)
    plot_all(sites, grid=grid, outlines=data.outlines, threshold=MIN_SCORE,
             save_dir=str(PLOTS_DIR))

    print("\n" + "=" * 70)
    print("SITE SEARCH COMPLETE")
    print("=" * 70)


if __name__ == "__main__":
    main()
