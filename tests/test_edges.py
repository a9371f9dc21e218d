import math

import geopandas as gpd
import pytest
import shapely.geometry

from reefguide.exceptions import ConfigurationError, GeometryError, NoNearbyReefError
from reefguide.geometry import Point, create_bbox, create_poly, rotate_polygon
from reefguide.site_assessment import (
    ReefOutline,
    ReefOutlineStore,
    closest_reef_edge,
    filter_far_polygons,
    initial_search_box,
    initial_search_rotation,
    orient_rotation,
)

CRS = "EPSG:4326"
CENTRE = (146.0, -19.0)


def _square(cx, cy, half, crs=CRS):
    return create_poly(create_bbox((cx - half, cx + half), (cy - half, cy + half)), crs)


def _turned_reef(angle, half=0.005):
    """Square reef centred on CENTRE, rotated by ``angle`` degrees."""
    return rotate_polygon(_square(*CENTRE, half), angle, Point(*CENTRE, CRS))


def _local_to_world(angle, dx, dy):
    """Offset (dx, dy) in a reef frame rotated by ``angle`` from CENTRE."""
    t = math.radians(angle)
    return Point(
        CENTRE[0] + dx * math.cos(t) - dy * math.sin(t),
        CENTRE[1] + dx * math.sin(t) + dy * math.cos(t),
        CRS,
    )


def _store(*polygons):
    return ReefOutlineStore([ReefOutline.from_polygon(p) for p in polygons])


def _rotation_for(pixel, store):
    box = initial_search_box(pixel, 100.0, 100.0, 0.001)
    return initial_search_rotation(pixel, box, store, search_buffer=20_000.0)


def test_rotation_aligns_with_edge_rising_to_the_east():
    # Pixel just inside the reef, closest to its bottom edge
    pixel = _local_to_world(30.0, 0.0, -0.004)
    assert _rotation_for(pixel, _store(_turned_reef(30.0))) == pytest.approx(30.0)


def test_rotation_is_negative_for_edge_falling_to_the_east():
    pixel = _local_to_world(-30.0, 0.0, -0.004)
    assert _rotation_for(pixel, _store(_turned_reef(-30.0))) == pytest.approx(-30.0)


def test_rotation_for_axis_aligned_reef_is_zero():
    pixel = _local_to_world(0.0, 0.0, -0.004)
    assert _rotation_for(pixel, _store(_turned_reef(0.0))) == pytest.approx(0.0, abs=1e-6)


def test_pixel_outside_reefs_uses_nearest_reef():
    pixel = _local_to_world(30.0, 0.0, -0.007)
    far_reef = _square(CENTRE[0] + 0.03, CENTRE[1], 0.005)
    store = _store(far_reef, _turned_reef(30.0))
    assert _rotation_for(pixel, store) == pytest.approx(30.0)


def test_containing_reef_preferred_over_closer_edge():
    reef = _turned_reef(30.0, half=0.01)
    pixel = _local_to_world(30.0, 0.0, -0.007)
    # Small patch just north of the pixel, not containing it
    patch = create_poly(
        create_bbox((pixel.lon - 0.001, pixel.lon + 0.001),
                    (pixel.lat + 0.0005, pixel.lat + 0.0015)),
        CRS,
    )
    assert _rotation_for(pixel, _store(patch, reef)) == pytest.approx(30.0)


def test_no_reef_within_radius():
    pixel = Point(*CENTRE, CRS)
    store = _store(_square(CENTRE[0] + 1.0, CENTRE[1], 0.005))
    with pytest.raises(NoNearbyReefError):
        _rotation_for(pixel, store)


def test_empty_store_has_no_nearby_reef():
    with pytest.raises(NoNearbyReefError):
        _rotation_for(Point(*CENTRE, CRS), ReefOutlineStore([]))


def test_rotated_search_box_has_no_horizontal_edge():
    pixel = _local_to_world(30.0, 0.0, -0.004)
    box = rotate_polygon(initial_search_box(pixel, 100.0, 100.0, 0.0), 20.0)
    with pytest.raises(GeometryError):
        initial_search_rotation(pixel, box, _store(_turned_reef(30.0)))


def test_orient_rotation_negates_only_past_ninety():
    assert orient_rotation(45.0, 15.0) == 15.0
    assert orient_rotation(90.0, 15.0) == 15.0
    assert orient_rotation(90.0001, 15.0) == -15.0


def test_closest_reef_edge():
    reef = ReefOutline.from_polygon(_square(0.0, 0.0, 1.0))
    edge = closest_reef_edge(Point(0.0, -0.9, CRS), reef.lines)
    assert edge.start.lat == edge.end.lat == -1.0

    with pytest.raises(GeometryError):
        closest_reef_edge(Point(0.0, 0.0, CRS), [])


def test_filter_far_polygons_by_centroid_distance():
    near = _square(CENTRE[0] + 0.05, CENTRE[1], 0.005)
    far = _square(CENTRE[0] + 0.5, CENTRE[1], 0.005)
    nearby = filter_far_polygons(_store(near, far), Point(*CENTRE, CRS), 20_000.0)
    assert [o.polygon for o in nearby] == [near]


def test_candidates_near_rejects_crs_mismatch():
    store = _store(_square(*CENTRE, 0.005))
    with pytest.raises(GeometryError):
        store.candidates_near(Point(*CENTRE, "EPSG:3857"), 1000.0)


def test_store_rejects_mixed_crs():
    with pytest.raises(ConfigurationError):
        _store(_square(0, 0, 1), _square(5, 5, 1, crs="EPSG:3857"))


def test_store_from_geodataframe_explodes_multipolygons():
    a = shapely.geometry.box(0.0, 0.0, 1.0, 1.0)
    b = shapely.geometry.box(2.0, 0.0, 3.0, 1.0)
    c = shapely.geometry.box(5.0, 5.0, 6.0, 6.0)
    gdf = gpd.GeoDataFrame(
        geometry=[shapely.geometry.MultiPolygon([a, b]), c], crs=CRS
    )
    store = ReefOutlineStore.from_geodataframe(gdf, simplify_tolerance=0.0, buffer_m=0.0)

    assert len(store) == 3
    assert store.crs == CRS
    assert all(len(o.lines) == 4 for o in store)


def test_store_from_geodataframe_buffers_outlines():
    gdf = gpd.GeoDataFrame(geometry=[shapely.geometry.box(0.0, 0.0, 1.0, 1.0)], crs=CRS)
    store = ReefOutlineStore.from_geodataframe(gdf, simplify_tolerance=0.0, buffer_m=1000.0)
    (outline,) = list(store)
    minx, miny, maxx, maxy = outline.polygon.shape.bounds
    # 1 km is about 0.009 degrees at the equator
    assert maxx - minx == pytest.approx(1.018, abs=1e-3)
    assert maxy - miny == pytest.approx(1.018, abs=1e-3)


def test_store_from_geodataframe_default_buffer_grows_outlines():
    reef = shapely.geometry.box(146.0, -19.01, 146.01, -19.0)
    store = ReefOutlineStore.from_geodataframe(gpd.GeoDataFrame(geometry=[reef], crs=CRS))
    (outline,) = list(store)
    assert outline.polygon.shape.area > reef.area
    assert outline.polygon.shape.contains(reef)


def test_store_from_geodataframe_buffer_uses_meters_in_projected_crs():
    gdf = gpd.GeoDataFrame(
        geometry=[shapely.geometry.box(0.0, 0.0, 100.0, 100.0)], crs="EPSG:3857"
    )
    store = ReefOutlineStore.from_geodataframe(gdf, simplify_tolerance=0.0, buffer_m=10.0)
    (outline,) = list(store)
    assert outline.polygon.shape.bounds == pytest.approx((-10.0, -10.0, 110.0, 110.0))


def test_store_from_geodataframe_drops_z_values():
    reef = shapely.geometry.Polygon(
        [(146.0, -19.0, -3.0), (146.01, -19.0, -4.0), (146.01, -19.01, -5.0),
         (146.0, -19.01, -4.0), (146.0, -19.0, -3.0)]
    )
    gdf = gpd.GeoDataFrame(geometry=[reef], crs=CRS)
    store = ReefOutlineStore.from_geodataframe(gdf, simplify_tolerance=0.0, buffer_m=0.0)

    (outline,) = list(store)
    assert not outline.polygon.shape.has_z
    assert all(len(c) == 2 for c in outline.polygon.coords)
    assert len(outline.lines) == 4


def test_outline_line_shapes_match_lines():
    outline = ReefOutline.from_polygon(_square(0.0, 0.0, 1.0))
    assert len(outline.line_shapes) == len(outline.lines)
    for line, shape in zip(outline.lines, outline.line_shapes):
        assert shape.equals(line.shape)


def test_closest_reef_edge_with_precomputed_shapes():
    reef = ReefOutline.from_polygon(_square(0.0, 0.0, 1.0))
    pixel = Point(0.9, 0.0, CRS)
    assert closest_reef_edge(pixel, reef.lines, reef.line_shapes) == closest_reef_edge(pixel, reef.lines)
    edge = closest_reef_edge(pixel, reef.lines, reef.line_shapes)
    assert edge.start.lon == edge.end.lon == 1.0


def test_store_accepts_equivalent_crs_spellings():
    store = ReefOutlineStore([ReefOutline.from_polygon(_square(*CENTRE, 0.005))], crs="epsg:4326")
    assert len(store.candidates_near(Point(*CENTRE, CRS), 1000.0)) == 1
