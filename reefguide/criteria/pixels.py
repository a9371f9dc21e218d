"""
Search Pixel Selection
======================

Turn a suitability grid into the list of candidate pixels that seed the
site search.
"""

import numpy as np
import pandas as pd


def trim_bounds(values):
    """
    Find the smallest (row, col) window holding every True cell.

    Returns:
        (row_slice, col_slice), or None when no cell is True
    """
    rows = np.flatnonzero(values.any(axis=1))
    cols = np.flatnonzero(values.any(axis=0))
    if len(rows) == 0:
        return None
    return slice(rows[0], rows[-1] + 1), slice(cols[0], cols[-1] + 1)


def identify_search_pixels(grid):
    """
    Identify all suitable pixels of a grid.

    Empty border rows and columns are trimmed first; reported indices still
    refer to the full grid.

    Args:
        grid: SuitabilityGrid

    Returns:
        DataFrame with columns:
            - indices: (row, col) tuple into the grid
            - lon: Cell centre longitude
            - lat: Cell centre latitude
        in row-major order. Empty when no cell is suitable.
    """
    window = trim_bounds(grid.values)
    if window is None:
        return pd.DataFrame({
            "indices": pd.Series([], dtype=object),
            "lon": pd.Series([], dtype=float),
            "lat": pd.Series([], dtype=float),
        })

    row_slice, col_slice = window
    trimmed = grid.values[row_slice, col_slice]
    local = np.argwhere(trimmed)
    rows = local[:, 0] + row_slice.start
    cols = local[:, 1] + col_slice.start

    return pd.DataFrame({
        "indices": [(int(r), int(c)) for r, c in zip(rows, cols)],
        "lon": grid.lons[cols].astype(float),
        "lat": grid.lats[rows].astype(float),
    })
