"""
Save Site Results
=================

Exports filtered deployment sites.

- GeoJSON: site polygons with score and rotation
- CSV: flat table with one row per site (centroid, score, rotation)
"""

import csv
from pathlib import Path


def output_geojson(df, region, output_dir):
    """
    Write sites to ``<output_dir>/output_sites_<region>.geojson``.

    Parameters
    ----------
    df : GeoDataFrame
        Output of ``filter_sites()``.
    region : str
        Region name used in the file name.
    output_dir : str or Path
        Destination directory (created if missing).

    Returns
    -------
    Path
        Path of the written file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"output_sites_{region}.geojson"

    df.to_file(output_path, driver="GeoJSON")

    print(f"      Saved GeoJSON: {output_path}")
    return output_path


def save_sites_csv(df, output_path):
    """
    Save a flat summary table of sites to CSV.

    Parameters
    ----------
    df : GeoDataFrame
        Output of ``filter_sites()``.
    output_path : str or Path
        Destination CSV file path.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = ["site", "centroid_lon", "centroid_lat", "score", "rotation"]

    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for i, (geom, score, rotation) in enumerate(
            zip(df.geometry, df["score"], df["rotation"])
        ):
            c = geom.centroid
            writer.writerow({
                "site": i,
                "centroid_lon": f"{c.x:.6f}",
                "centroid_lat": f"{c.y:.6f}",
                "score": f"{score:.4f}",
                "rotation": f"{rotation:.2f}",
            })

    print(f"      Saved CSV:  {output_path}")


def save_site_results(df, region, output_dir):
    """
    Save both GeoJSON and CSV site results.

    Files are written to ``output_dir``:

    - ``output_sites_<region>.geojson``
    - ``output_sites_<region>_summary.csv``
    """
    output_dir = Path(output_dir)
    output_geojson(df, region, output_dir)
    save_sites_csv(df, output_dir / f"output_sites_{region}_summary.csv")
