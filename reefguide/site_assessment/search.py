"""
Site Search
===========

Build, align and score a search box for every candidate pixel.

For each pixel:
    1. initial_search_box()       → box centred on the pixel, buffered by
                                    the grid resolution
    2. initial_search_rotation()  → angle to the nearest reef edge
                                    (only when aligning to edges)
    3. assess_reef_site()         → coverage score of each rotation tried
                                    about that angle; the best pose is kept
    4. SearchCandidate            → polygon, rotation, score and qc_flag

Pixels are independent, so they are evaluated with a joblib worker pool;
per-pixel geometry problems become ``qc_flag = 1`` instead of aborting the
search.

Example:
    from reefguide.criteria import identify_search_pixels
    from reefguide.site_assessment import find_sites, filter_sites

    pixels = identify_search_pixels(grid)
    candidates = find_sites(pixels, grid, outlines, align_to_edges=True)
    sites = filter_sites(candidates)
"""

import math
from dataclasses import dataclass
from typing import Any

import geopandas as gpd
import numpy as np
from joblib import Parallel, delayed

from ..config import (
    DEGREE_STEP,
    N_ROT_PER_SIDE,
    SEARCH_BUFFER_M,
    SURR_THRESHOLD,
    X_DIST_M,
    Y_DIST_M,
)
from ..criteria import identify_search_pixels
from ..exceptions import ConfigurationError, GeometryError, NoNearbyReefError
from ..geometry import (
    Point,
    Polygon,
    create_bbox,
    create_poly,
    crs_equal,
    meters_to_degrees,
    rotate_polygon,
)
from .edges import initial_search_rotation
from .filtering import apply_score_threshold, filter_sites

RESULT_COLUMNS = ["score", "rotation", "qc_flag", "poly"]


@dataclass
class SearchCandidate:
    """Best search box found for one pixel."""
    index: Any
    pixel: Point
    poly: Polygon
    rotation: float = 0.0
    score: float = 0.0
    qc_flag: int = 0


def initial_search_box(pixel, x_dist, y_dist, res):
    """
    Create an unrotated search box centred on ``pixel``.

    Args:
        pixel: Centre Point (its CRS is used for the box)
        x_dist: Longitude extent of the box in meters
        y_dist: Latitude extent of the box in meters
        res: Outward buffer in CRS units (the grid resolution), so cells on
            the box boundary are not under-counted

    Returns:
        Polygon
    """
    # Buffering an axis-aligned box with mitred joins is the same as
    # widening each side by res
    pad = max(float(res), 0.0)
    lon_half = meters_to_degrees(x_dist, pixel.lat) / 2 + pad
    lat_half = meters_to_degrees(y_dist, pixel.lat) / 2 + pad
    xs = (pixel.lon - lon_half, pixel.lon + lon_half)
    ys = (pixel.lat - lat_half, pixel.lat + lat_half)

    return create_poly(create_bbox(xs, ys), pixel.crs)


def assess_reef_site(grid, geom, pivot, start_rot=0.0, degree_step=DEGREE_STEP,
                     n_per_side=N_ROT_PER_SIDE):
    """
    Score rotations of a search box and keep the best one.

    Rotations tried are ``start_rot + k * degree_step`` for ``k`` in
    ``[-n_per_side, n_per_side]``, in that order. Ties keep the first pose.

    Args:
        grid: SuitabilityGrid
        geom: Unrotated search box
        pivot: Point to rotate about
        start_rot: Central rotation in degrees
        degree_step: Rotation step in degrees
        n_per_side: Number of rotations either side of ``start_rot``

    Returns:
        (score, rotation, polygon) of the best pose. Score is NaN when no
        pose covers any grid cell, with the polygon left at ``start_rot``.
    """
    best_score, best_rot = float("nan"), start_rot
    best_poly = rotate_polygon(geom, start_rot, pivot)
    for k in range(-n_per_side, n_per_side + 1):
        rotation = start_rot + k * degree_step
        rot_geom = rotate_polygon(geom, rotation, pivot)
        score = grid.coverage(rot_geom)
        if math.isnan(score):
            continue
        if math.isnan(best_score) or score > best_score:
            best_score, best_rot, best_poly = score, rotation, rot_geom

    return best_score, best_rot, best_poly


def assess_pixel(index, lon, lat, grid, outlines=None, align_to_edges=True,
                 x_dist=X_DIST_M, y_dist=Y_DIST_M, search_buffer=SEARCH_BUFFER_M,
                 degree_step=DEGREE_STEP, n_per_side=N_ROT_PER_SIDE, surr_threshold=None):
    """
    Build, align and score the search box for a single pixel.

    Failures specific to this pixel (no reef in range, degenerate geometry,
    no grid cells under the box, best score below ``surr_threshold``) are
    recorded as ``qc_flag = 1`` rather than raised.

    Returns:
        SearchCandidate
    """
    pixel = Point(float(lon), float(lat), grid.crs)
    geom = initial_search_box(pixel, x_dist, y_dist, grid.res)

    start_rot = 0.0
    try:
        if align_to_edges:
            start_rot = initial_search_rotation(pixel, geom, outlines, search_buffer)
        score, rotation, poly = assess_reef_site(
            grid, geom, pixel, start_rot=start_rot,
            degree_step=degree_step, n_per_side=n_per_side,
        )
    except (GeometryError, NoNearbyReefError):
        return SearchCandidate(index, pixel, geom, 0.0, 0.0, 1)

    if math.isnan(score):
        return SearchCandidate(index, pixel, poly, rotation, 0.0, 1)

    qc_flag = 0
    if surr_threshold is not None and score < surr_threshold:
        qc_flag = 1
    return SearchCandidate(index, pixel, poly, rotation, score, qc_flag)


def candidates_to_frame(candidates, crs):
    """
    Collect search candidates into a GeoDataFrame.

    Columns are ``score, rotation, qc_flag, poly`` with ``poly`` as the
    active geometry, in candidate order.
    """
    return gpd.GeoDataFrame(
        {
            "score": np.array([c.score for c in candidates], dtype=float),
            "rotation": np.array([c.rotation for c in candidates], dtype=float),
            "qc_flag": np.array([c.qc_flag for c in candidates], dtype=int),
            "poly": gpd.GeoSeries([c.poly.shape for c in candidates], crs=crs),
        },
        geometry="poly",
        crs=crs,
    )


def _validate_search_inputs(pixels, grid, outlines, align_to_edges, x_dist, y_dist,
                            search_buffer, degree_step, n_per_side):
    """Fail fast on inputs that make the whole search meaningless."""
    missing = {"lon", "lat"} - set(pixels.columns)
    if missing:
        raise ConfigurationError(f"Pixel table missing required columns: {sorted(missing)}")
    if x_dist <= 0 or y_dist <= 0:
        raise ConfigurationError(f"Search box dimensions must be positive, got {x_dist} x {y_dist}")
    if n_per_side < 0:
        raise ConfigurationError(f"n_per_side must be >= 0, got {n_per_side}")
    if n_per_side > 0 and degree_step == 0:
        raise ConfigurationError("degree_step must be non-zero when sweeping rotations")
    if align_to_edges:
        if outlines is None:
            raise ConfigurationError("Edge alignment requested but no reef outlines given")
        if search_buffer <= 0:
            raise ConfigurationError(f"Search buffer must be positive, got {search_buffer}")
        if not crs_equal(outlines.crs, grid.crs):
            raise ConfigurationError(
                f"Reef outline CRS {outlines.crs} does not match grid CRS {grid.crs}"
            )


def find_sites(pixels, grid, outlines=None, align_to_edges=True,
               x_dist=X_DIST_M, y_dist=Y_DIST_M, search_buffer=SEARCH_BUFFER_M,
               degree_step=DEGREE_STEP, n_per_side=N_ROT_PER_SIDE,
               surr_threshold=None, n_jobs=1, verbose=True):
    """
    Assess a search box for every candidate pixel.

    Args:
        pixels: DataFrame with ``lon`` and ``lat`` columns (and optionally
            ``indices``), e.g. from identify_search_pixels()
        grid: SuitabilityGrid used for scoring
        outlines: ReefOutlineStore (required when ``align_to_edges``)
        align_to_edges: Rotate each box to the nearest reef edge
        x_dist: Box longitude extent (m)
        y_dist: Box latitude extent (m)
        search_buffer: Reef search radius (m)
        degree_step: Rotation step (degrees) for the pose sweep
        n_per_side: Rotations tried either side of the starting angle
        surr_threshold: Flag candidates whose best score is below this
            (default: no flagging on score)
        n_jobs: joblib worker count (1 runs serially, -1 uses all cores)
        verbose: Print progress messages (default: True)

    Returns:
        GeoDataFrame with columns ``score, rotation, qc_flag, poly``, one
        row per pixel, in pixel order

    Raises:
        ConfigurationError: If the inputs are unusable (raised before any
            pixel is assessed)
    """
    _validate_search_inputs(pixels, grid, outlines, align_to_edges, x_dist, y_dist,
                            search_buffer, degree_step, n_per_side)

    n_pixels = len(pixels)
    if verbose:
        mode = "edge-aligned" if align_to_edges else "unaligned"
        print(f"Assessing {n_pixels} candidate pixels ({mode})...")

    indices = pixels["indices"] if "indices" in pixels.columns else pixels.index
    candidates = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(assess_pixel)(
            idx, lon, lat, grid, outlines=outlines, align_to_edges=align_to_edges,
            x_dist=x_dist, y_dist=y_dist, search_buffer=search_buffer,
            degree_step=degree_step, n_per_side=n_per_side, surr_threshold=surr_threshold,
        )
        for idx, lon, lat in zip(indices, pixels["lon"], pixels["lat"])
    )

    if verbose:
        n_flagged = sum(c.qc_flag for c in candidates)
        print(f"  Assessed {n_pixels} pixels, {n_flagged} flagged (qc_flag=1)")

    return candidates_to_frame(candidates, grid.crs)


def identify_potential_sites_edges(grid, outlines, pixels=None, x_dist=X_DIST_M,
                                   y_dist=Y_DIST_M, search_buffer=SEARCH_BUFFER_M,
                                   degree_step=DEGREE_STEP, n_per_side=N_ROT_PER_SIDE,
                                   surr_threshold=SURR_THRESHOLD, n_jobs=1, verbose=True):
    """
    Full edge-aligned search: pixels → aligned candidates → non-overlapping sites.

    Args:
        grid: SuitabilityGrid
        outlines: ReefOutlineStore
        pixels: Candidate pixels (default: every suitable pixel of ``grid``)
        surr_threshold: Minimum usable score; lower-scoring candidates are
            flagged during the search and dropped from the result
        Remaining args: see find_sites()

    Returns:
        GeoDataFrame with columns ``geometry, score, rotation``
    """
    if pixels is None:
        pixels = identify_search_pixels(grid)

    candidates = find_sites(
        pixels, grid, outlines, align_to_edges=True, x_dist=x_dist, y_dist=y_dist,
        search_buffer=search_buffer, degree_step=degree_step, n_per_side=n_per_side,
        surr_threshold=surr_threshold, n_jobs=n_jobs, verbose=verbose,
    )
    sites = filter_sites(candidates)
    if surr_threshold is not None:
        sites = apply_score_threshold(sites, surr_threshold)

    if verbose:
        print(f"  Kept {len(sites)} non-overlapping sites")
    return sites


def identify_potential_sites(grid, pixels=None, x_dist=X_DIST_M, y_dist=Y_DIST_M,
                             degree_step=DEGREE_STEP, n_per_side=2,
                             surr_threshold=SURR_THRESHOLD, n_jobs=1, verbose=True):
    """
    Full search without reef edges: each box is swept through
    ``2 * n_per_side + 1`` rotations about north and the best pose kept.

    Returns:
        GeoDataFrame with columns ``geometry, score, rotation``
    """
    if pixels is None:
        pixels = identify_search_pixels(grid)

    candidates = find_sites(
        pixels, grid, align_to_edges=False, x_dist=x_dist, y_dist=y_dist,
        degree_step=degree_step, n_per_side=n_per_side,
        surr_threshold=surr_threshold, n_jobs=n_jobs, verbose=verbose,
    )
    sites = filter_sites(candidates)
    if surr_threshold is not None:
        sites = apply_score_threshold(sites, surr_threshold)

    if verbose:
        print(f"  Kept {len(sites)} non-overlapping sites")
    return sites
