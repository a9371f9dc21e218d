"""
Suitability Grid
================

Boolean grid of criteria-satisfying cells with a CRS and resolution.

The search engine reads the grid only through ``coverage()`` (fraction of
suitable cells under a polygon footprint) and the cell coordinate arrays
used by the pixel selector.

Example:
    import numpy as np
    from reefguide.criteria import SuitabilityGrid

    grid = SuitabilityGrid.from_arrays(
        mask=np.ones((3, 3), dtype=bool),
        lons=[146.000, 146.001, 146.002],
        lats=[-19.000, -19.001, -19.002],
    )
    grid.res  # 0.001
"""

import numpy as np
import shapely
import xarray as xr

from ..config import DEFAULT_CRS
from ..exceptions import ConfigurationError, GeometryError
from ..geometry import crs_equal


class SuitabilityGrid:
    """
    A 2D suitability mask over (y, x) cell centres.

    Args:
        data: xarray DataArray with dims ("y", "x") and matching coordinates.
            Truthy cells are suitable; NaN is treated as unsuitable.
        crs: CRS of the cell coordinates
        res: Cell size in CRS units. Inferred from the x coordinate spacing
            when not given.
    """

    def __init__(self, data, crs=DEFAULT_CRS, res=None):
        if tuple(data.dims) != ("y", "x"):
            raise ConfigurationError(f"Grid dims must be ('y', 'x'), got {tuple(data.dims)}")

        values = np.asarray(data.values)
        if values.dtype != bool:
            values = np.nan_to_num(values.astype(float), nan=0.0) != 0.0

        self.data = xr.DataArray(values, coords={"y": data["y"].values, "x": data["x"].values},
                                 dims=("y", "x"))
        self.crs = crs
        self.res = float(res) if res is not None else self._infer_resolution()

    @classmethod
    def from_arrays(cls, mask, lons, lats, crs=DEFAULT_CRS, res=None):
        """Build a grid from a (n_lat, n_lon) mask and 1D coordinate arrays."""
        mask = np.asarray(mask)
        data = xr.DataArray(mask, coords={"y": np.asarray(lats, dtype=float),
                                          "x": np.asarray(lons, dtype=float)},
                            dims=("y", "x"))
        return cls(data, crs=crs, res=res)

    def _infer_resolution(self):
        for dim in ("x", "y"):
            coords = self.data[dim].values
            if len(coords) > 1:
                return float(abs(coords[1] - coords[0]))
        raise ConfigurationError("Cannot infer resolution of a single-cell grid; pass res")

    @property
    def lons(self):
        return self.data["x"].values

    @property
    def lats(self):
        return self.data["y"].values

    @property
    def values(self):
        return self.data.values

    @property
    def shape(self):
        return self.data.shape

    def cell_centres(self):
        """(lon, lat) arrays of cell centres, each shaped like the grid."""
        return np.meshgrid(self.lons, self.lats)

    def coverage(self, polygon):
        """
        Fraction of cells under ``polygon`` that are suitable.

        A cell is under the polygon when its centre intersects it
        (boundary included).

        Returns:
            Score in [0, 1], or NaN when no cell centre falls under the polygon

        Raises:
            GeometryError: If the polygon CRS differs from the grid CRS
        """
        if not crs_equal(polygon.crs, self.crs):
            raise GeometryError(f"Polygon CRS {polygon.crs} does not match grid CRS {self.crs}")

        minx, miny, maxx, maxy = polygon.shape.bounds
        col_mask = (self.lons >= minx) & (self.lons <= maxx)
        row_mask = (self.lats >= miny) & (self.lats <= maxy)
        if not col_mask.any() or not row_mask.any():
            return float("nan")

        lon_grid, lat_grid = np.meshgrid(self.lons[col_mask], self.lats[row_mask])
        inside = shapely.intersects_xy(polygon.shape, lon_grid, lat_grid)
        n_cells = int(inside.sum())
        if n_cells == 0:
            return float("nan")

        window = self.values[np.ix_(row_mask, col_mask)]
        return float(window[inside].sum()) / n_cells
