"""
Geometry Operations
===================

Pure functions over the geometry value types: construction, centroid,
rotation, translation, boundary decomposition and line angles.

None of these functions modify their inputs; rotated or translated
geometries are always new objects.

Example:
    from reefguide.geometry import create_poly, create_bbox, rotate_polygon

    box = create_poly(create_bbox((0.0, 2.0), (0.0, 1.0)), "EPSG:4326")
    turned = rotate_polygon(box, 90.0)
"""

import math

import numpy as np

from ..config import METERS_PER_DEGREE
from ..exceptions import GeometryError
from .primitives import Line, Point, Polygon, crs_equal


# =============================================================================
# UNIT CONVERSION
# =============================================================================

def meters_to_degrees(x, lat):
    """
    Convert meters to degrees at target latitude.

    Args:
        x: Distance in meters (scalar or array)
        lat: Latitude in degrees

    Returns:
        Distance in degrees
    """
    return x / (METERS_PER_DEGREE * np.cos(np.radians(lat)))


def degrees_to_meters(x, lat):
    """
    Convert degrees to meters at target latitude.

    Args:
        x: Distance in degrees (scalar or array)
        lat: Latitude in degrees

    Returns:
        Distance in meters
    """
    return x * (METERS_PER_DEGREE * np.cos(np.radians(lat)))


# =============================================================================
# CONSTRUCTION
# =============================================================================

def create_bbox(xs, ys):
    """
    Create bounding box coordinates from x and y extents.

    Args:
        xs: (min_x, max_x)
        ys: (min_y, max_y)

    Returns:
        Closed list of coordinates in order of top left, top right,
        bottom right, bottom left, top left.
    """
    return [
        (xs[0], ys[1]),
        (xs[1], ys[1]),
        (xs[1], ys[0]),
        (xs[0], ys[0]),
        (xs[0], ys[1]),
    ]


def create_poly(verts, crs):
    """
    Create a Polygon from a sequence of vertices, closing the ring if needed.

    Raises:
        GeometryError: If fewer than three distinct vertices are given
    """
    verts = [(float(x), float(y)) for x, y in verts]
    if len(set(verts)) < 3:
        raise GeometryError(f"Need at least 3 distinct vertices, got {len(set(verts))}")
    if verts[0] != verts[-1]:
        verts.append(verts[0])
    return Polygon(tuple(verts), crs)


def _check_crs(a, b):
    if not crs_equal(a.crs, b.crs):
        raise GeometryError(f"CRS mismatch: {a.crs} vs {b.crs}")


# =============================================================================
# TRANSFORMS
# =============================================================================

def centroid(polygon):
    """Area-weighted centroid of a polygon."""
    c = polygon.shape.centroid
    return Point(c.x, c.y, polygon.crs)


def rotate_polygon(polygon, degrees, pivot=None):
    """
    Rotate a polygon counter-clockwise about a pivot point.

    Args:
        polygon: Polygon to rotate
        degrees: Rotation angle in degrees (0 returns ``polygon`` unchanged)
        pivot: Point to rotate about (default: the polygon centroid)

    Returns:
        Rotated Polygon

    Raises:
        GeometryError: If the pivot is in a different CRS
    """
    if degrees == 0.0:
        return polygon

    if pivot is None:
        pivot = centroid(polygon)
    _check_crs(polygon, pivot)

    theta = math.radians(degrees)
    sinang, cosang = math.sin(theta), math.cos(theta)
    cx, cy = pivot.lon, pivot.lat

    pts = np.asarray(polygon.coords) - (cx, cy)
    new_x = pts[:, 0] * cosang - pts[:, 1] * sinang + cx
    new_y = pts[:, 0] * sinang + pts[:, 1] * cosang + cy

    # Keep the ring closed exactly despite rounding
    new_coords = list(zip(new_x.tolist(), new_y.tolist()))
    new_coords[-1] = new_coords[0]
    return polygon.with_coords(new_coords)


def translate(geom, dx, dy):
    """
    Shift a Point, Line or Polygon by (dx, dy) in its own CRS units.

    Raises:
        GeometryError: If ``geom`` is not one of the geometry value types
    """
    if isinstance(geom, Point):
        return Point(geom.lon + dx, geom.lat + dy, geom.crs)
    if isinstance(geom, Line):
        return Line(translate(geom.start, dx, dy), translate(geom.end, dx, dy))
    if isinstance(geom, Polygon):
        return geom.with_coords([(x + dx, y + dy) for x, y in geom.coords])
    raise GeometryError(f"Cannot translate object of type {type(geom).__name__}")


def move_geom(polygon, new_centroid):
    """
    Move a polygon so its centroid lands on ``new_centroid``.

    Raises:
        GeometryError: If ``new_centroid`` is in a different CRS
    """
    _check_crs(polygon, new_centroid)
    current = centroid(polygon)
    return translate(polygon, new_centroid.lon - current.lon, new_centroid.lat - current.lat)


# =============================================================================
# BOUNDARY LINES
# =============================================================================

def polygon_to_lines(polygon):
    """
    Extract the individual lines between vertices that make up the outline
    of a polygon. Repeated vertices (zero-length edges) are skipped.
    """
    pts = polygon.points
    return tuple(
        Line(a, b) for a, b in zip(pts[:-1], pts[1:])
        if a.coords != b.coords
    )


def find_horizontal(polygon):
    """
    Find the first boundary edge whose two endpoints share a latitude.

    Raises:
        GeometryError: If the polygon has no horizontal edge
    """
    for line in polygon_to_lines(polygon):
        if line.start.lat == line.end.lat:
            return line
    raise GeometryError("Polygon has no horizontal edge")


# =============================================================================
# ANGLES
# =============================================================================

def from_zero(line):
    """
    Re-express a line relative to its lexicographically largest endpoint.

    The returned line runs from ``max - min`` to the origin, so its length
    and orientation are kept while the absolute position is dropped.
    """
    v = [line.start.coords, line.end.coords]
    max_coord = max(v)
    if v[0] == max_coord:
        v = v[::-1]

    new_coords = [
        (max_coord[0] - p[0], max_coord[1] - p[1])
        for p in v
    ]
    return Line(Point(*new_coords[0], line.crs), Point(*new_coords[1], line.crs))


def line_angle(a, b):
    """
    Calculate the angle between two lines.

    Uses the normalized dot product of the direction vectors, clamped to
    [-1, 1] before the inverse cosine.

    Args:
        a: Line
        b: Line

    Returns:
        Angle in degrees, in [0, 180]

    Raises:
        GeometryError: If either line has zero length
    """
    va = np.subtract(a.coords[1], a.coords[0])
    vb = np.subtract(b.coords[1], b.coords[0])

    denom = np.sqrt(np.dot(va, va) * np.dot(vb, vb))
    if denom == 0.0:
        raise GeometryError("Cannot compute the angle of a zero-length line")

    cos_angle = np.clip(np.dot(va, vb) / denom, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))
