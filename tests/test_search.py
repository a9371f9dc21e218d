import math

import numpy as np
import pandas as pd
import pytest
from geopandas.testing import assert_geodataframe_equal

from reefguide.criteria import SuitabilityGrid, identify_search_pixels
from reefguide.exceptions import ConfigurationError
from reefguide.geometry import Point, create_poly, find_horizontal, rotate_polygon
from reefguide.site_assessment import (
    ReefOutline,
    ReefOutlineStore,
    assess_pixel,
    assess_reef_site,
    find_sites,
    identify_potential_sites,
    identify_potential_sites_edges,
    initial_search_box,
)

CRS = "EPSG:4326"
RES = 0.001
LONS = 146.000 + RES * np.arange(5)
LATS = -19.000 - RES * np.arange(5)


def _grid(mask):
    return SuitabilityGrid.from_arrays(np.asarray(mask, dtype=bool), LONS, LATS, crs=CRS)


def _centre_block():
    mask = np.zeros((5, 5), dtype=bool)
    mask[1:4, 1:4] = True
    return mask


def _centre_pixel():
    return Point(float(LONS[2]), float(LATS[2]), CRS)


def _pixels(*points):
    return pd.DataFrame({"lon": [p.lon for p in points], "lat": [p.lat for p in points]})


def _reef_along_grid(angle=30.0, c=None):
    """Reef rotated by ``angle`` whose lower edge runs just south of ``c``."""
    c = c or _centre_pixel()
    shell = [(c.lon - 0.02, c.lat - 0.004), (c.lon + 0.02, c.lat - 0.004),
             (c.lon + 0.02, c.lat + 0.02), (c.lon - 0.02, c.lat + 0.02)]
    reef = rotate_polygon(create_poly(shell, CRS), angle, c)
    return ReefOutlineStore([ReefOutline.from_polygon(reef)])


def _assert_pairwise_disjoint(sites):
    geoms = list(sites.geometry)
    for i, a in enumerate(geoms):
        for b in geoms[i + 1:]:
            assert not a.intersects(b)


def test_initial_search_box_size_and_buffer():
    pixel = _centre_pixel()
    box = initial_search_box(pixel, 100.0, 100.0, 0.0)
    minx, miny, maxx, maxy = box.shape.bounds
    assert maxx - minx == pytest.approx(100.0 / (111_100.0 * math.cos(math.radians(pixel.lat))))
    assert box.shape.centroid.x == pytest.approx(pixel.lon)

    buffered = initial_search_box(pixel, 100.0, 100.0, RES)
    bminx, _, bmaxx, _ = buffered.shape.bounds
    assert bmaxx - bminx == pytest.approx(maxx - minx + 2 * RES)
    assert len(buffered.coords) == 5
    find_horizontal(buffered)


def test_assess_pixel_fully_suitable_box():
    candidate = assess_pixel(7, LONS[2], LATS[2], _grid(_centre_block()),
                             align_to_edges=False, x_dist=10.0, y_dist=10.0)
    assert candidate.index == 7
    assert candidate.score == 1.0
    assert candidate.rotation == 0.0
    assert candidate.qc_flag == 0
    assert candidate.poly.crs == CRS


def test_assess_pixel_below_threshold_is_flagged():
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 2] = True
    candidate = assess_pixel(0, LONS[2], LATS[2], _grid(mask), align_to_edges=False,
                             x_dist=10.0, y_dist=10.0, surr_threshold=0.33)
    assert candidate.score == pytest.approx(1 / 9)
    assert candidate.qc_flag == 1


def test_assess_pixel_off_grid_is_flagged_with_zero_score():
    candidate = assess_pixel(0, 150.0, -10.0, _grid(_centre_block()), align_to_edges=False)
    assert candidate.score == 0.0
    assert candidate.qc_flag == 1


def test_assess_pixel_off_grid_keeps_rotation_and_pose_together():
    pixel = Point(150.0, -10.0, CRS)
    candidate = assess_pixel(0, pixel.lon, pixel.lat, _grid(_centre_block()),
                             outlines=_reef_along_grid(30.0, pixel), x_dist=10.0, y_dist=10.0)
    assert candidate.qc_flag == 1
    assert candidate.rotation == pytest.approx(30.0)

    box = initial_search_box(pixel, 10.0, 10.0, RES)
    expected = rotate_polygon(box, candidate.rotation, pixel)
    assert candidate.poly.shape.equals_exact(expected.shape, 1e-9)


def test_rotation_sweep_without_coverage_returns_start_pose():
    pixel = Point(150.0, -10.0, CRS)
    box = initial_search_box(pixel, 10.0, 10.0, RES)
    score, rotation, poly = assess_reef_site(_grid(_centre_block()), box, pixel,
                                             start_rot=30.0, n_per_side=2)
    assert math.isnan(score)
    assert rotation == 30.0
    assert poly == rotate_polygon(box, 30.0, pixel)


def test_assess_pixel_without_nearby_reef_is_flagged():
    far_reef = create_poly([(150.0, -10.0), (150.1, -10.0), (150.1, -9.9)], CRS)
    store = ReefOutlineStore([ReefOutline.from_polygon(far_reef)])
    candidate = assess_pixel(0, LONS[2], LATS[2], _grid(_centre_block()), outlines=store)
    assert candidate.qc_flag == 1
    assert candidate.score == 0.0


def test_assess_pixel_aligns_to_reef_edge():
    candidate = assess_pixel(0, LONS[2], LATS[2], _grid(np.ones((5, 5))),
                             outlines=_reef_along_grid(30.0), x_dist=10.0, y_dist=10.0)
    assert candidate.rotation == pytest.approx(30.0)
    assert candidate.score == 1.0
    assert candidate.qc_flag == 0


def test_rotation_sweep_keeps_best_pose():
    # Suitable cells on the diagonals favour the unrotated box
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 2] = mask[1, 1] = mask[1, 3] = mask[3, 1] = mask[3, 3] = True
    pixel = _centre_pixel()
    box = initial_search_box(pixel, 10.0, 10.0, RES)

    score, rotation, poly = assess_reef_site(_grid(mask), box, pixel,
                                             degree_step=45.0, n_per_side=1)
    assert score == pytest.approx(5 / 9)
    assert rotation == 0.0
    assert poly is box


def test_rotation_sweep_ties_keep_first_pose():
    # Suitable cells on the cross score 1.0 at both +45 and -45
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 1:4] = True
    mask[1:4, 2] = True
    pixel = _centre_pixel()
    box = initial_search_box(pixel, 10.0, 10.0, RES)

    score, rotation, _ = assess_reef_site(_grid(mask), box, pixel,
                                          degree_step=45.0, n_per_side=1)
    assert score == pytest.approx(1.0)
    assert rotation == -45.0


def test_find_sites_result_frame():
    grid = _grid(_centre_block())
    pixels = identify_search_pixels(grid)
    res = find_sites(pixels, grid, align_to_edges=False, x_dist=10.0, y_dist=10.0,
                     verbose=False)

    assert list(res.columns) == ["score", "rotation", "qc_flag", "poly"]
    assert res.geometry.name == "poly"
    assert res.crs == CRS
    assert len(res) == len(pixels) == 9
    assert res["score"].between(0.0, 1.0).all()


def test_find_sites_threads_match_serial():
    grid = _grid(np.ones((5, 5)))
    pixels = identify_search_pixels(grid)
    kwargs = dict(outlines=_reef_along_grid(30.0), x_dist=10.0, y_dist=10.0,
                  n_per_side=1, verbose=False)

    serial = find_sites(pixels, grid, n_jobs=1, **kwargs)
    threaded = find_sites(pixels, grid, n_jobs=2, **kwargs)
    assert_geodataframe_equal(serial, threaded)


def test_find_sites_empty_pixels():
    grid = _grid(np.zeros((5, 5)))
    res = find_sites(identify_search_pixels(grid), grid, align_to_edges=False, verbose=False)
    assert len(res) == 0


@pytest.mark.parametrize("kwargs", [
    dict(x_dist=0.0),
    dict(y_dist=-5.0),
    dict(n_per_side=-1),
    dict(n_per_side=1, degree_step=0.0),
])
def test_find_sites_rejects_bad_parameters(kwargs):
    grid = _grid(_centre_block())
    with pytest.raises(ConfigurationError):
        find_sites(_pixels(_centre_pixel()), grid, align_to_edges=False, verbose=False, **kwargs)


def test_find_sites_requires_lon_lat_columns():
    grid = _grid(_centre_block())
    with pytest.raises(ConfigurationError):
        find_sites(pd.DataFrame({"lon": [146.0]}), grid, align_to_edges=False, verbose=False)


def test_find_sites_alignment_needs_outlines():
    grid = _grid(_centre_block())
    with pytest.raises(ConfigurationError):
        find_sites(_pixels(_centre_pixel()), grid, outlines=None, verbose=False)


def test_find_sites_rejects_outline_crs_mismatch():
    grid = _grid(_centre_block())
    store = ReefOutlineStore([], crs="EPSG:3857")
    with pytest.raises(ConfigurationError):
        find_sites(_pixels(_centre_pixel()), grid, outlines=store, verbose=False)


def test_find_sites_accepts_equivalent_crs_spelling():
    grid = _grid(np.ones((5, 5)))
    pixels = identify_search_pixels(grid)
    store = _reef_along_grid(30.0)
    lower = ReefOutlineStore(store.outlines, crs="epsg:4326")
    kwargs = dict(x_dist=10.0, y_dist=10.0, n_per_side=1, verbose=False)

    assert_geodataframe_equal(find_sites(pixels, grid, outlines=lower, **kwargs),
                              find_sites(pixels, grid, outlines=store, **kwargs))


def test_identify_potential_sites_edges():
    grid = _grid(np.ones((5, 5)))
    sites = identify_potential_sites_edges(grid, _reef_along_grid(30.0),
                                           x_dist=10.0, y_dist=10.0, verbose=False)

    assert len(sites) > 0
    assert list(sites.columns) == ["geometry", "score", "rotation"]
    assert sites["rotation"].to_numpy() == pytest.approx(30.0)
    assert (sites["score"] >= 0.33).all()
    _assert_pairwise_disjoint(sites)


def test_identify_potential_sites_edges_drops_flagged_candidates():
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 2] = True
    sites = identify_potential_sites_edges(_grid(mask), _reef_along_grid(30.0),
                                           x_dist=10.0, y_dist=10.0, verbose=False)
    assert len(sites) == 0


def test_identify_potential_sites_without_edges():
    grid = _grid(_centre_block())
    sites = identify_potential_sites(grid, x_dist=10.0, y_dist=10.0, verbose=False)

    assert len(sites) > 0
    assert sites["score"].max() == 1.0
    _assert_pairwise_disjoint(sites)
