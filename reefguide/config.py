"""
Configuration Constants
========================

Central location for all configuration parameters and constants used
throughout the reef site search system.

Module-level constants plus a ``get_region_paths()`` helper that returns
all data paths for a given region.
"""

from pathlib import Path


# =============================================================================
# DATA PATHS
# =============================================================================

_PACKAGE_DIR = Path(__file__).parent
DATA_DIR = _PACKAGE_DIR / "data"
OUTPUTS_DIR = _PACKAGE_DIR / "outputs"

REGIONS_DIR = DATA_DIR / "regions"
DEFAULT_REGION = "Townsville-Whitsunday"

REGIONS = [
    "Townsville-Whitsunday",
    "Cairns-Cooktown",
    "Mackay-Capricorn",
    "FarNorthern",
]


# =============================================================================
# CRITERIA LAYERS
# =============================================================================

# Criterion name -> file suffix of the prepared layer for a region.
CRITERIA_DATA_MAP = {
    "Depth": "_bathy",
    "Slope": "_slope",
    "Turbidity": "_turbid",
    "WavesHs": "_waves_Hs",
    "WavesTp": "_waves_Tp",
    "Rugosity": "_rugosity",
}

# Rugosity is only prepared for this region.
RUGOSITY_REGION = "Townsville"


# =============================================================================
# REGION PATH HELPERS
# =============================================================================


def _find_layer(region_dir, region, suffix):
    """Find the first NetCDF criteria layer for a region and suffix."""
    region_dir = Path(region_dir)
    matches = sorted(region_dir.glob(f"{region}*{suffix}.nc"))
    if matches:
        return str(matches[0])
    return str(region_dir / f"{region}*{suffix}.nc")  # fallback pattern for error messages


def _find_reef_outlines(shp_dir):
    """Find the first vector file holding reef outlines."""
    shp_dir = Path(shp_dir)
    matches = sorted(shp_dir.glob("*.gpkg")) + sorted(shp_dir.glob("*.shp"))
    if matches:
        return str(matches[0])
    return str(shp_dir / "*.gpkg")  # fallback pattern for error messages


def get_region_paths(region_name=None):
    """
    Return a dict of all data and output paths for a given region.

    Input data lives under ``data/regions/<region>/``, while generated
    outputs (site files, plots) live under ``outputs/<region>/``.

    Parameters
    ----------
    region_name : str or None
        Name of the region folder under ``data/regions/``.
        Defaults to ``DEFAULT_REGION`` ("Townsville-Whitsunday").

    Returns
    -------
    dict
        Input paths: region_name, region_dir, criteria_paths (criterion
        name -> layer path), reef_outline_path.
        Output paths: output_dir, sites_dir, plots_dir.
    """
    region = region_name or DEFAULT_REGION
    region_dir = REGIONS_DIR / region
    output_dir = OUTPUTS_DIR / region
    return {
        # Input data paths
        "region_name": region,
        "region_dir": str(region_dir),
        "criteria_paths": {
            name: _find_layer(region_dir / "criteria", region, suffix)
            for name, suffix in CRITERIA_DATA_MAP.items()
        },
        "reef_outline_path": _find_reef_outlines(region_dir / "reefs"),
        # Output paths
        "output_dir": str(output_dir),
        "sites_dir": str(output_dir / "sites"),
        "plots_dir": str(output_dir / "plots"),
    }


# =============================================================================
# PHYSICAL CONSTANTS
# =============================================================================

METERS_PER_DEGREE = 111_100.0  # At the equator, scaled by cos(latitude)
DEFAULT_CRS = "EPSG:4326"


# =============================================================================
# SEARCH BOX
# =============================================================================

X_DIST_M = 100.0  # Longitude extent of a deployment site
Y_DIST_M = 100.0  # Latitude extent of a deployment site


# =============================================================================
# EDGE ALIGNMENT
# =============================================================================

SEARCH_BUFFER_M = 20_000.0  # Radius to look for reef outlines around a pixel
REEF_SIMPLIFY_TOLERANCE = 0.0001  # Degrees, applied before buffering outlines
REEF_BUFFER_M = 10.0  # Outward buffer on reef outlines, converted at each reef's latitude


# =============================================================================
# SCORING
# =============================================================================

SURR_THRESHOLD = 0.33  # Minimum usable coverage score
DEGREE_STEP = 15.0  # Rotation step for the pose sweep
N_ROT_PER_SIDE = 0  # Rotations tried either side of the starting angle
