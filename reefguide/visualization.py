"""
Visualization Module for Site Search Results
=============================================

Generates plots to check and communicate site search results.

  1. Site map: suitable cells, reef outlines and site polygons coloured by score
  2. Score distribution: histogram of site scores against the usable threshold
"""

import os

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from typing import Optional


def _overlay_reef_outlines(ax, outlines):
    """Plot reef outline edges as a background layer."""
    if outlines is None:
        return
    for outline in outlines:
        xs, ys = zip(*outline.polygon.coords)
        ax.plot(xs, ys, color='tan', linewidth=1.0, alpha=0.8, zorder=1)


def plot_site_map(results, grid=None, outlines=None, title: Optional[str] = None,
                  save_path: Optional[str] = None):
    """
    Plot site polygons over the suitability grid and reef outlines.

    Args:
        results: GeoDataFrame from filter_sites() (geometry, score, rotation)
        grid: Optional SuitabilityGrid shown as background cells
        outlines: Optional ReefOutlineStore drawn as reef edges
        title: Optional figure title
        save_path: Optional path to save figure
    """
    if len(results) == 0:
        print("No sites to plot.")
        return

    fig, ax = plt.subplots(figsize=(12, 10))

    # Suitable cells (light background)
    if grid is not None:
        lon_grid, lat_grid = grid.cell_centres()
        suitable = grid.values
        ax.scatter(lon_grid[suitable], lat_grid[suitable],
                   c='lightblue', s=4, marker='s', alpha=0.5, zorder=0)

    _overlay_reef_outlines(ax, outlines)

    # Site polygons coloured by score
    cmap = plt.get_cmap('viridis')
    for geom, score in zip(results.geometry, results['score']):
        xs, ys = geom.exterior.xy
        ax.fill(xs, ys, facecolor=cmap(score), edgecolor='black',
                linewidth=0.8, alpha=0.8, zorder=3)

    sm = plt.cm.ScalarMappable(cmap=cmap, norm=plt.Normalize(vmin=0, vmax=1))
    plt.colorbar(sm, ax=ax, label='Coverage Score')

    # Labels
    ax.set_xlabel('Longitude (°)', fontsize=12)
    ax.set_ylabel('Latitude (°)', fontsize=12)
    ax.set_title(title or f'Deployment Sites (n={len(results)})',
                 fontsize=14, fontweight='bold')

    # Legend
    legend_elements = [
        mpatches.Patch(facecolor='lightblue', label='Suitable Cells'),
        plt.Line2D([0], [0], color='tan', linewidth=1.5, label='Reef Outline'),
        mpatches.Patch(facecolor=cmap(0.8), edgecolor='black', label='Site'),
    ]
    ax.legend(handles=legend_elements, loc='upper left', fontsize=10)

    ax.set_aspect('equal', adjustable='datalim')
    ax.grid(True, alpha=0.3)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved: {save_path}")

    plt.show()


def plot_score_distribution(results, threshold: Optional[float] = None,
                            save_path: Optional[str] = None):
    """
    Plot a histogram of site scores.

    Args:
        results: GeoDataFrame with a ``score`` column
        threshold: Optional usable-score threshold drawn as a vertical line
        save_path: Optional path to save figure
    """
    scores = np.asarray(results['score'], dtype=float)
    scores = scores[~np.isnan(scores)]

    if len(scores) == 0:
        print("No scores to plot.")
        return

    fig, ax = plt.subplots(figsize=(10, 6))

    ax.hist(scores, bins=np.linspace(0, 1, 21), color='#3498db',
            edgecolor='black', alpha=0.8)

    if threshold is not None:
        ax.axvline(threshold, color='#e74c3c', linestyle='--', linewidth=2,
                   label=f'Threshold ({threshold:.2f})')
        ax.legend(loc='upper left')

    # Labels
    ax.set_xlabel('Coverage Score', fontsize=12)
    ax.set_ylabel('Number of Sites', fontsize=12)
    ax.set_title('Site Score Distribution', fontsize=14, fontweight='bold')

    ax.grid(True, alpha=0.3, axis='y')
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved: {save_path}")

    plt.show()


def plot_all(results, grid=None, outlines=None, threshold: Optional[float] = None,
             save_dir: Optional[str] = None):
    """
    Generate all visualization plots.

    Args:
        results: GeoDataFrame from filter_sites()
        grid: Optional SuitabilityGrid for the map background
        outlines: Optional ReefOutlineStore for the map background
        threshold: Optional usable-score threshold
        save_dir: Optional directory to save all figures
    """
    if save_dir:
        os.makedirs(save_dir, exist_ok=True)

    print("\n" + "=" * 60)
    print("GENERATING VISUALIZATION PLOTS")
    print("=" * 60)

    print("\n[1/2] Site Map...")
    save_path = f"{save_dir}/site_map.png" if save_dir else None
    plot_site_map(results, grid=grid, outlines=outlines, save_path=save_path)

    print("\n[2/2] Score Distribution...")
    save_path = f"{save_dir}/score_distribution.png" if save_dir else None
    plot_score_distribution(results, threshold=threshold, save_path=save_path)

    print("\n" + "=" * 60)
    print("All plots generated!")
    if save_dir:
        print(f"Figures saved to: {save_dir}/")
    print("=" * 60)
