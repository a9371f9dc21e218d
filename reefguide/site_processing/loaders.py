"""
Data Loaders
============

Functions for loading regional criteria layers (NetCDF) and reef outlines
(vector files) into an explicit, read-only ``RegionalData`` context.

The context is built once by the caller and passed into the search; nothing
is cached at module level.

Main functions:
    - load_criteria_stack: Load criteria layers onto one (y, x) grid
    - load_reef_outlines: Load, simplify and buffer reef polygons
    - load_regional_data: Load both for a region

Example:
    from reefguide.site_processing import load_regional_data

    data = load_regional_data("Townsville-Whitsunday")
    data.criteria["Depth"]
    len(data.outlines)
"""

import warnings
from dataclasses import dataclass
from pathlib import Path

import geopandas as gpd
import numpy as np
import xarray as xr

from ..config import (
    DEFAULT_CRS,
    REEF_BUFFER_M,
    REEF_SIMPLIFY_TOLERANCE,
    get_region_paths,
)
from ..geometry import crs_equal
from ..site_assessment import ReefOutlineStore

# Coordinate names seen in prepared layers, mapped to grid dims
_DIM_ALIASES = {"lon": "x", "longitude": "x", "lat": "y", "latitude": "y"}


@dataclass(frozen=True)
class RegionalData:
    """Read-only inputs for searching one region."""
    region: str
    criteria: xr.Dataset
    outlines: ReefOutlineStore
    crs: str


# =============================================================================
# CRITERIA LOADER
# =============================================================================

def _load_layer(path):
    """Load the first data variable of a NetCDF file as a (y, x) DataArray."""
    ds = xr.open_dataset(path)
    try:
        if not ds.data_vars:
            raise ValueError(f"No data variables in criteria layer: {path}")
        layer = ds[next(iter(ds.data_vars))]
        renames = {d: _DIM_ALIASES[d] for d in layer.dims if d in _DIM_ALIASES}
        layer = layer.rename(renames).squeeze(drop=True)
        if set(layer.dims) != {"x", "y"}:
            raise ValueError(f"Criteria layer {path} must be 2D (y, x), got dims {layer.dims}")
        return layer.transpose("y", "x").load(), ds.attrs.get("crs", DEFAULT_CRS)
    finally:
        ds.close()


def load_criteria_stack(criteria_paths, verbose=True):
    """
    Load criteria layers and combine them on the grid of the first layer.

    Layers whose file does not exist are skipped with a warning (e.g.
    rugosity, which is only prepared for some regions). Other layers are
    reindexed onto the first layer's grid using the nearest cell.

    Args:
        criteria_paths: Dict of criterion name -> NetCDF path
        verbose: Print progress messages (default: True)

    Returns:
        xarray Dataset with one (y, x) variable per criterion and
        ``attrs["crs"]``

    Raises:
        FileNotFoundError: If none of the layers exist
        ValueError: If a layer is not 2D or layers disagree on CRS
    """
    layers = {}
    crs = None
    target = None

    for name, path in criteria_paths.items():
        if not Path(path).exists():
            warnings.warn(f"Criteria layer '{name}' not found: {path}", stacklevel=2)
            continue

        layer, layer_crs = _load_layer(path)
        if crs is None:
            crs = layer_crs
        elif not crs_equal(layer_crs, crs):
            raise ValueError(f"Criteria layer '{name}' is in {layer_crs}, expected {crs}")

        if target is None:
            target = layer
        elif layer.shape != target.shape or not (
            np.array_equal(layer["x"].values, target["x"].values)
            and np.array_equal(layer["y"].values, target["y"].values)
        ):
            layer = layer.reindex(x=target["x"].values, y=target["y"].values, method="nearest")

        layers[name] = layer
        if verbose:
            print(f"  Loaded {name}: {layer.shape} grid")

    if not layers:
        raise FileNotFoundError(
            f"No criteria layers found. Looked for: {list(criteria_paths.values())}"
        )

    return xr.Dataset(layers, attrs={"crs": crs})


# =============================================================================
# REEF OUTLINE LOADER
# =============================================================================

def load_reef_outlines(path, crs=None, simplify_tolerance=REEF_SIMPLIFY_TOLERANCE,
                       buffer_m=REEF_BUFFER_M):
    """
    Load reef polygons and build their outlines.

    Args:
        path: Path to a vector file of reef polygons
        crs: Reproject to this CRS first (default: keep the file CRS)
        simplify_tolerance: Simplification tolerance in CRS units
        buffer_m: Outward buffer in meters

    Returns:
        ReefOutlineStore

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Reef outline file not found: {path}")

    reefs = gpd.read_file(path)
    if crs is not None and reefs.crs is not None and reefs.crs != crs:
        reefs = reefs.to_crs(crs)

    return ReefOutlineStore.from_geodataframe(
        reefs, simplify_tolerance=simplify_tolerance, buffer_m=buffer_m,
    )


# =============================================================================
# ORCHESTRATOR
# =============================================================================

def load_regional_data(region=None, paths=None, verbose=True):
    """
    Load all search inputs for a region.

    Args:
        region: Region name (default: config.DEFAULT_REGION)
        paths: Path dict as returned by get_region_paths() (default: derived
            from ``region``)
        verbose: Print progress messages (default: True)

    Returns:
        RegionalData
    """
    if paths is None:
        paths = get_region_paths(region)
    region = paths["region_name"]

    if verbose:
        print(f"Loading criteria layers for {region}...")
    criteria = load_criteria_stack(paths["criteria_paths"], verbose=verbose)

    if verbose:
        print("Loading reef outlines...")
    outlines = load_reef_outlines(paths["reef_outline_path"], crs=criteria.attrs["crs"])

    if verbose:
        print(f"  Loaded: {len(outlines)} reef outlines")

    return RegionalData(
        region=region,
        criteria=criteria,
        outlines=outlines,
        crs=criteria.attrs["crs"],
    )
