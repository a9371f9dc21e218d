"""
Edge Alignment
==============

Find the reef edge nearest to a candidate pixel and the rotation that lines
a search box's horizontal axis up with it.

Steps (``initial_search_rotation``):
    1. Keep reefs whose centroid is within the search radius of the pixel
    2. Prefer reefs containing the pixel, else the single nearest reef
    3. Pick the closest edge line of those reefs
    4. Measure the edge against a vertical reference and the box's
       horizontal edge, both expressed from the origin
    5. Negate the rotation when the edge bearing is past 90 degrees
"""

import numpy as np
import shapely

from ..config import SEARCH_BUFFER_M
from ..exceptions import GeometryError, NoNearbyReefError
from ..geometry import Line, Point, find_horizontal, from_zero, line_angle

VERTICAL_REFERENCE = Line(Point(0.0, 5.0), Point(0.0, 0.0))


def filter_far_polygons(outlines, pixel, dist):
    """
    Reef outlines whose centroid is within ``dist`` meters of ``pixel``.

    Args:
        outlines: ReefOutlineStore
        pixel: Target Point
        dist: Search radius in meters

    Returns:
        List of ReefOutline
    """
    return outlines.candidates_near(pixel, dist)


def closest_reef_edge(pixel, reef_lines, line_shapes=None):
    """
    Find the line in ``reef_lines`` nearest to ``pixel``.

    Ties go to the first line. ``line_shapes`` may hold the lines already
    converted to shapely, in the same order.

    Raises:
        GeometryError: If ``reef_lines`` is empty
    """
    if not reef_lines:
        raise GeometryError("No reef edge lines to compare against")
    if line_shapes is None:
        line_shapes = [line.shape for line in reef_lines]
    distances = shapely.distance(pixel.shape, line_shapes)
    return reef_lines[int(np.argmin(distances))]


def orient_rotation(edge_bearing, rot_angle):
    """
    Sign the rotation angle by which side of north the edge points.

    Edges bearing more than 90 degrees from the vertical reference point
    below the horizontal, so the box must turn clockwise. A bearing of
    exactly 90 degrees keeps the angle as-is.
    """
    if edge_bearing > 90:
        return -rot_angle
    return rot_angle


def initial_search_rotation(pixel, geom_buff, outlines, search_buffer=SEARCH_BUFFER_M):
    """
    Rotation needed to align ``geom_buff`` with the closest reef edge.

    Args:
        pixel: Target point at the centre of the search box
        geom_buff: Initial (unrotated) search box
        outlines: ReefOutlineStore to search
        search_buffer: Distance (meters) from ``pixel`` to look for reefs

    Returns:
        Rotation angle in degrees, counter-clockwise positive

    Raises:
        NoNearbyReefError: If no reef lies within ``search_buffer``
        GeometryError: If the search box has no horizontal edge, or the
            pixel CRS differs from the outlines CRS
    """
    nearby = filter_far_polygons(outlines, pixel, search_buffer)
    if not nearby:
        raise NoNearbyReefError(
            f"No reef within {search_buffer} m of ({pixel.lon:.5f}, {pixel.lat:.5f})"
        )

    point = pixel.shape
    chosen = [o for o in nearby if o.polygon.shape.contains(point)]
    if not chosen:
        # Pixel is outside every reef, use the closest one instead
        chosen = [min(nearby, key=lambda o: o.polygon.shape.distance(point))]
    reef_lines = [line for o in chosen for line in o.lines]
    line_shapes = np.concatenate([o.line_shapes for o in chosen])

    edge_line = from_zero(closest_reef_edge(pixel, reef_lines, line_shapes))

    edge_bearing = line_angle(from_zero(VERTICAL_REFERENCE), edge_line)
    rot_angle = line_angle(from_zero(find_horizontal(geom_buff)), edge_line)
    return orient_rotation(edge_bearing, rot_angle)
