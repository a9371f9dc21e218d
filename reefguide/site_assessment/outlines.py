"""
Reef Outlines
=============

Reef boundary polygons paired with their edge lines, built once per region
and borrowed read-only by the search.

Example:
    import geopandas as gpd
    from reefguide.site_assessment import ReefOutlineStore

    store = ReefOutlineStore.from_geodataframe(gpd.read_file("reefs.gpkg"))
    nearby = store.candidates_near(pixel, radius_m=20_000)
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
import shapely

from ..config import DEFAULT_CRS, REEF_BUFFER_M, REEF_SIMPLIFY_TOLERANCE
from ..exceptions import ConfigurationError, GeometryError
from ..geometry import Line, Polygon, crs_equal, meters_to_degrees, polygon_to_lines


@dataclass(frozen=True)
class ReefOutline:
    """
    A reef boundary polygon and the lines making up its outline.

    ``line_shapes`` holds the lines as a shapely LineString array, built
    once so distance queries do not rebuild them per pixel.
    """
    polygon: Polygon
    lines: Tuple[Line, ...]
    line_shapes: np.ndarray = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.line_shapes is None:
            if self.lines:
                shapes = shapely.linestrings(np.array([line.coords for line in self.lines]))
            else:
                shapes = np.empty(0, dtype=object)
            object.__setattr__(self, "line_shapes", shapes)

    @classmethod
    def from_polygon(cls, polygon):
        return cls(polygon, polygon_to_lines(polygon))

    @property
    def crs(self):
        return self.polygon.crs


class ReefOutlineStore:
    """
    Read-only collection of reef outlines in a single CRS.

    Args:
        outlines: Iterable of ReefOutline
        crs: CRS of the store. Taken from the outlines when not given;
            required for an empty store.
    """

    def __init__(self, outlines, crs=None):
        self.outlines = tuple(outlines)

        if self.outlines:
            first = self.outlines[0].crs
            others = {o.crs for o in self.outlines if not crs_equal(o.crs, first)}
            if others:
                raise ConfigurationError(
                    f"Reef outlines use more than one CRS: {sorted(others | {first})}"
                )
            if crs is None:
                crs = first
            elif not crs_equal(crs, first):
                raise ConfigurationError(f"Reef outlines are in {first}, expected {crs}")
        elif crs is None:
            crs = DEFAULT_CRS
        self.crs = crs

        centroids = [o.polygon.shape.centroid for o in self.outlines]
        self._centroid_x = np.array([c.x for c in centroids], dtype=float)
        self._centroid_y = np.array([c.y for c in centroids], dtype=float)

    @classmethod
    def from_geodataframe(cls, gdf, simplify_tolerance=REEF_SIMPLIFY_TOLERANCE,
                          buffer_m=REEF_BUFFER_M):
        """
        Build outlines from reef polygons.

        Multi-part reefs are split into single polygons, flattened to 2D,
        simplified, then buffered outward by ``buffer_m`` meters. In a
        geographic CRS the buffer is converted to degrees at each reef's
        centroid latitude. Interior rings are dropped.

        Args:
            gdf: GeoDataFrame of reef polygons
            simplify_tolerance: Simplification tolerance in CRS units (0 disables)
            buffer_m: Outward buffer distance in meters (0 disables)

        Returns:
            ReefOutlineStore
        """
        crs = gdf.crs.to_string() if gdf.crs is not None else DEFAULT_CRS
        geographic = gdf.crs is None or gdf.crs.is_geographic

        geoms = np.asarray(gdf.geometry.explode(index_parts=False).values)
        geoms = geoms[~(shapely.is_missing(geoms) | shapely.is_empty(geoms))]
        geoms = shapely.force_2d(geoms)

        if simplify_tolerance > 0:
            geoms = shapely.simplify(geoms, simplify_tolerance)
        if buffer_m > 0:
            dist = buffer_m
            if geographic:
                dist = meters_to_degrees(buffer_m, shapely.get_y(shapely.centroid(geoms)))
            geoms = shapely.buffer(geoms, dist)
        geoms = shapely.get_parts(geoms)

        outlines = []
        for geom in geoms:
            if geom.is_empty or geom.geom_type != "Polygon":
                continue
            outlines.append(ReefOutline.from_polygon(Polygon.from_shapely(geom, crs)))

        return cls(outlines, crs=crs)

    def __len__(self):
        return len(self.outlines)

    def __iter__(self):
        return iter(self.outlines)

    def candidates_near(self, point, radius_m):
        """
        Outlines whose centroid lies within ``radius_m`` of ``point``.

        The radius is converted to degrees at the point's latitude, and the
        comparison is made in CRS units.

        Raises:
            GeometryError: If the point CRS differs from the store CRS
        """
        if not crs_equal(point.crs, self.crs):
            raise GeometryError(f"Point CRS {point.crs} does not match reef outline CRS {self.crs}")
        if not self.outlines:
            return []

        dist = meters_to_degrees(radius_m, point.lat)
        d = np.hypot(self._centroid_x - point.lon, self._centroid_y - point.lat)
        return [self.outlines[i] for i in np.flatnonzero(d < dist)]
