"""
Geometry Value Types
====================

Immutable Point, Line and Polygon types used throughout the site search.

Every geometry carries a CRS tag. Conversion to and from shapely happens
only at the edges of the system (``Polygon.from_shapely`` when reef data is
ingested, the ``shape`` properties when a spatial predicate is needed), so
the search code never has to guess which representation it was handed.

Example:
    from reefguide.geometry import Point, Polygon

    box = Polygon([(0, 0), (1, 0), (1, 1), (0, 1), (0, 0)], crs="EPSG:4326")
    box.shape.area  # 1.0
"""

from dataclasses import dataclass
from functools import cached_property, lru_cache
from typing import Sequence, Tuple

import pyproj
import shapely
import shapely.geometry

from ..config import DEFAULT_CRS
from ..exceptions import GeometryError

Coord = Tuple[float, float]


@lru_cache(maxsize=32)
def _parse_crs(crs):
    try:
        return pyproj.CRS.from_user_input(crs)
    except pyproj.exceptions.CRSError:
        return None


def crs_equal(a, b) -> bool:
    """
    Whether two CRS tags name the same reference system.

    Tags may be any form pyproj accepts (``"EPSG:4326"``, ``"epsg:4326"``,
    WKT, ...). Tags pyproj cannot parse only match themselves.
    """
    if a == b:
        return True
    crs_a, crs_b = _parse_crs(a), _parse_crs(b)
    if crs_a is None or crs_b is None:
        return False
    return crs_a == crs_b


@dataclass(frozen=True)
class Point:
    """A (longitude, latitude) pair in ``crs``."""
    lon: float
    lat: float
    crs: str = DEFAULT_CRS

    @property
    def coords(self) -> Coord:
        return (self.lon, self.lat)

    @property
    def shape(self):
        return shapely.geometry.Point(self.lon, self.lat)


@dataclass(frozen=True)
class Line:
    """An ordered pair of points sharing one CRS."""
    start: Point
    end: Point

    def __post_init__(self):
        if not crs_equal(self.start.crs, self.end.crs):
            raise GeometryError(
                f"Line endpoints are in different CRS: {self.start.crs} vs {self.end.crs}"
            )

    @property
    def crs(self) -> str:
        return self.start.crs

    @property
    def coords(self) -> Tuple[Coord, Coord]:
        return (self.start.coords, self.end.coords)

    @property
    def shape(self):
        return shapely.geometry.LineString(self.coords)


@dataclass(frozen=True)
class Polygon:
    """
    A closed ring of coordinates (first == last) tagged with a CRS.

    The ring must hold at least four coordinates, i.e. a triangle.
    """
    coords: Tuple[Coord, ...]
    crs: str = DEFAULT_CRS

    def __post_init__(self):
        coords = tuple((float(x), float(y)) for x, y in self.coords)
        if len(coords) < 4:
            raise GeometryError(f"Polygon ring needs at least 4 coordinates, got {len(coords)}")
        if coords[0] != coords[-1]:
            raise GeometryError("Polygon ring is not closed (first != last coordinate)")
        object.__setattr__(self, "coords", coords)

    @classmethod
    def from_shapely(cls, geom, crs: str = DEFAULT_CRS) -> "Polygon":
        """
        Build from a shapely Polygon's exterior ring.

        Interior rings and Z values are dropped.
        """
        if geom.geom_type != "Polygon":
            raise GeometryError(f"Expected a Polygon, got {geom.geom_type}")
        if geom.is_empty:
            raise GeometryError("Cannot build a Polygon from an empty geometry")
        return cls(tuple(shapely.force_2d(geom).exterior.coords), crs)

    @cached_property
    def shape(self):
        return shapely.geometry.Polygon(self.coords)

    @property
    def points(self) -> Tuple[Point, ...]:
        return tuple(Point(x, y, self.crs) for x, y in self.coords)

    def with_coords(self, coords: Sequence[Coord]) -> "Polygon":
        """Return a new polygon in the same CRS with different coordinates."""
        return Polygon(tuple(coords), self.crs)
