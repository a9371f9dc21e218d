"""
Geometry Module
===============

Value types and pure operations for search boxes and reef outlines.

Example:
    from reefguide.geometry import Point, create_poly, create_bbox, rotate_polygon

    box = create_poly(create_bbox((146.0, 146.01), (-19.01, -19.0)), "EPSG:4326")
    turned = rotate_polygon(box, 30.0, Point(146.005, -19.005))
"""

from .primitives import (
    Point,
    Line,
    Polygon,
    crs_equal,
)

from .ops import (
    meters_to_degrees,
    degrees_to_meters,
    create_bbox,
    create_poly,
    centroid,
    rotate_polygon,
    translate,
    move_geom,
    polygon_to_lines,
    find_horizontal,
    from_zero,
    line_angle,
)

__all__ = [
    # Value types
    "Point",
    "Line",
    "Polygon",
    "crs_equal",
    # Operations
    "meters_to_degrees",
    "degrees_to_meters",
    "create_bbox",
    "create_poly",
    "centroid",
    "rotate_polygon",
    "translate",
    "move_geom",
    "polygon_to_lines",
    "find_horizontal",
    "from_zero",
    "line_angle",
]
