"""
Site Filtering
==============

Reduce overlapping candidate sites to a non-overlapping set.

``filter_sites`` walks the candidates once, in row order, keeping a set of
discarded rows:

    - flagged rows (``qc_flag == 1``) are discarded
    - a row whose score is the highest (ties included) among every row its
      polygon intersects, itself included, discards all of those other rows
    - otherwise the row discards itself

Because rows are visited in input order, the earliest of several tied,
intersecting rows is the one kept. Row order is part of the result.
"""

import numpy as np
import shapely

OUTPUT_COLUMNS = ["geometry", "score", "rotation"]


def _order_columns(df):
    leading = [c for c in OUTPUT_COLUMNS if c in df.columns]
    return df[leading + [c for c in df.columns if c not in leading]]


def filter_sites(res_df):
    """
    Keep only the highest scoring site where site polygons intersect.

    Args:
        res_df: GeoDataFrame of candidates with ``score`` and a polygon
            column (``poly`` from find_sites(), or the active geometry).
            ``qc_flag`` is optional; when absent no row is flagged.

    Returns:
        GeoDataFrame of surviving rows with the polygon column named
        ``geometry``, ``qc_flag`` dropped, and columns led by
        ``geometry, score, rotation``.
    """
    df = res_df.reset_index(drop=True)
    if "poly" in df.columns and df.geometry.name != "poly":
        df = df.set_geometry("poly")
    if df.geometry.name != "geometry":
        df = df.rename_geometry("geometry")

    n_rows = len(df)
    geoms = np.asarray(df.geometry.values)
    scores = df["score"].to_numpy(dtype=float)
    if "qc_flag" in df.columns:
        qc_flags = df["qc_flag"].to_numpy(dtype=int)
    else:
        qc_flags = np.zeros(n_rows, dtype=int)

    tree = shapely.STRtree(geoms)
    ignore = set()
    for row_id in range(n_rows):
        if row_id in ignore:
            continue

        if qc_flags[row_id] == 1:
            ignore.add(row_id)
            continue

        # Always includes the row itself
        intersecting = tree.query(geoms[row_id], predicate="intersects")
        if len(intersecting) == 0:
            continue

        if np.max(scores[intersecting]) <= scores[row_id]:
            ignore.update(int(i) for i in intersecting if i != row_id)
        else:
            ignore.add(row_id)

    keep = np.array([i not in ignore for i in range(n_rows)], dtype=bool)
    out = df.loc[keep].drop(columns=["qc_flag"], errors="ignore").reset_index(drop=True)
    return _order_columns(out)


def apply_score_threshold(sites, threshold):
    """Keep sites scoring at least ``threshold``."""
    return sites.loc[sites["score"] >= threshold].reset_index(drop=True)
