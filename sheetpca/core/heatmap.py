"""
Split-and-cluster heatmap layout and its matplotlib rendering.

Variables become rows and observations columns. Columns are split by
treatment and ordered within each treatment by hierarchical clustering;
rows are split by method and organ and keep their input order.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import LinearSegmentedColormap, Normalize
from matplotlib.figure import Figure
from matplotlib.gridspec import GridSpec
from matplotlib.patches import Patch
from scipy.cluster.hierarchy import dendrogram, leaves_list, linkage, optimal_leaf_ordering
from scipy.spatial.distance import pdist

from .annotation import display_label
from .config import PlotConfig
from .errors import SchemaMismatchError

logger = logging.getLogger(__name__)


@dataclass
class HeatmapLayout:
    """Everything needed to draw a split heatmap, already in display order."""

    matrix: pd.DataFrame
    row_groups: "OrderedDict[str, List[str]]"
    column_groups: "OrderedDict[str, List]"
    annotations: pd.DataFrame
    row_labels: Dict[str, str]
    column_linkages: Dict[str, Optional[np.ndarray]] = field(default_factory=dict)

    @property
    def row_order(self) -> List[str]:
        return [v for variables in self.row_groups.values() for v in variables]

    @property
    def column_order(self) -> List:
        return [o for observations in self.column_groups.values() for o in observations]


def cluster_order(data: np.ndarray, method: str = "complete") -> Tuple[List[int], Optional[np.ndarray]]:
    """
    Order the rows of ``data`` by agglomerative clustering on Euclidean distance.

    Leaves are reordered with optimal leaf ordering. A single row has no
    linkage; two rows get a one-merge linkage so the block still carries a
    dendrogram.
    """
    n = data.shape[0]
    if n < 2:
        return list(range(n)), None
    distances = pdist(data, metric="euclidean")
    Z = linkage(distances, method=method)
    if n > 2:
        Z = optimal_leaf_ordering(Z, distances)
    return leaves_list(Z).tolist(), Z


def build_heatmap_layout(
    matrix: pd.DataFrame,
    metadata: pd.DataFrame,
    annotations: pd.DataFrame,
    treatment_column: str,
    treatment_levels: Sequence[str],
    linkage_method: str = "complete",
) -> HeatmapLayout:
    """
    Lay out a split heatmap for an observations x variables ``matrix``.

    Args:
        matrix: standardized measurements, PC score columns included
        metadata: row-aligned metadata holding ``treatment_column``
        annotations: output of ``annotate_columns`` for ``matrix.columns``
        treatment_column: column split key
        treatment_levels: display order of the column groups
        linkage_method: scipy linkage method for column clustering

    Returns:
        HeatmapLayout with variables as rows and observations as columns
    """
    if len(annotations) != matrix.shape[1] or list(annotations["variable"]) != [str(c) for c in matrix.columns]:
        raise SchemaMismatchError(
            f"Annotations describe {len(annotations)} variables, matrix has {matrix.shape[1]} columns"
        )
    if not metadata.index.equals(matrix.index):
        raise SchemaMismatchError("Heatmap metadata and matrix rows are not aligned")
    if treatment_column not in metadata.columns:
        raise SchemaMismatchError(f"Heatmap metadata has no '{treatment_column}' column")

    transposed = matrix.T
    transposed.index = [str(c) for c in transposed.index]
    annotations = annotations.set_index("variable", drop=False)

    row_groups = OrderedDict()
    for key in sorted(annotations["group"].unique()):
        row_groups[key] = annotations.index[annotations["group"] == key].tolist()

    treatments = metadata[treatment_column].astype(object)
    column_groups = OrderedDict()
    column_linkages = {}
    for level in treatment_levels:
        members = metadata.index[treatments == level]
        if len(members) == 0:
            continue
        order, Z = cluster_order(matrix.loc[members].to_numpy(dtype=float), linkage_method)
        column_groups[level] = [members[i] for i in order]
        column_linkages[level] = Z

    layout = HeatmapLayout(
        matrix=transposed,
        row_groups=row_groups,
        column_groups=column_groups,
        annotations=annotations,
        row_labels={v: display_label(v) for v in transposed.index},
        column_linkages=column_linkages,
    )
    layout.matrix = transposed.loc[layout.row_order, layout.column_order]
    logger.debug(
        "Heatmap layout: %d row group(s), %d column group(s)",
        len(row_groups), len(column_groups),
    )
    return layout


def heatmap_colormap(plot_config: PlotConfig) -> Tuple[LinearSegmentedColormap, Normalize]:
    """Three-point diverging colormap anchored at the configured breaks."""
    low, mid, high = plot_config.heatmap_breaks
    norm = Normalize(vmin=low, vmax=high, clip=True)
    anchors = [
        ((value - low) / (high - low), color)
        for value, color in zip((low, mid, high), plot_config.heatmap_colors)
    ]
    cmap = LinearSegmentedColormap.from_list("standardized", anchors)
    return cmap, norm


def _color_strip(ax, colors: List[str], vertical: bool) -> None:
    n = len(colors)
    for i, color in enumerate(colors):
        if vertical:
            ax.add_patch(plt.Rectangle((0, i), 1, 1, color=color, linewidth=0))
        else:
            ax.add_patch(plt.Rectangle((i, 0), 1, 1, color=color, linewidth=0))
    if vertical:
        ax.set_xlim(0, 1)
        ax.set_ylim(n, 0)
    else:
        ax.set_xlim(0, n)
        ax.set_ylim(0, 1)
    ax.set_xticks([])
    ax.set_yticks([])
    for spine in ax.spines.values():
        spine.set_visible(False)


def render_heatmap(layout: HeatmapLayout, plot_config: PlotConfig, title: str = "") -> Figure:
    """
    Draw the split heatmap with method/organ row strips, a treatment strip
    and a column dendrogram above every treatment block.
    """
    row_keys = list(layout.row_groups)
    col_keys = list(layout.column_groups)
    row_sizes = [len(layout.row_groups[k]) for k in row_keys]
    col_sizes = [len(layout.column_groups[k]) for k in col_keys]
    n_rows = sum(row_sizes)
    n_cols = sum(col_sizes)

    fig_width = max(8, 3 + n_cols * 0.25)
    fig_height = max(6, 2 + n_rows * 0.25)
    fig = plt.figure(figsize=(fig_width, fig_height))

    grid = GridSpec(
        2 + len(row_keys),
        2 + len(col_keys),
        figure=fig,
        height_ratios=[max(1.5, n_rows * 0.08), 0.6] + row_sizes,
        width_ratios=[0.6, 0.6] + col_sizes,
        hspace=0.08,
        wspace=0.05,
        left=0.05, right=0.72, top=0.92, bottom=0.08,
    )
    cmap, norm = heatmap_colormap(plot_config)
    annotations = layout.annotations
    image = None

    for j, level in enumerate(col_keys):
        observations = layout.column_groups[level]

        ax_dend = fig.add_subplot(grid[0, 2 + j])
        Z = layout.column_linkages.get(level)
        if Z is not None:
            dendrogram(Z, ax=ax_dend, color_threshold=0, above_threshold_color="black", no_labels=True)
        ax_dend.set_axis_off()
        ax_dend.set_title(level, fontsize=10, fontweight="bold")

        ax_treat = fig.add_subplot(grid[1, 2 + j])
        _color_strip(ax_treat, [plot_config.color_for("treatment", level)] * len(observations), vertical=False)

        for i, key in enumerate(row_keys):
            variables = layout.row_groups[key]
            ax = fig.add_subplot(grid[2 + i, 2 + j])
            block = layout.matrix.loc[variables, observations].to_numpy(dtype=float)
            image = ax.imshow(block, aspect="auto", cmap=cmap, norm=norm, interpolation="nearest")
            ax.set_xticks([])
            if j == len(col_keys) - 1:
                ax.yaxis.tick_right()
                ax.set_yticks(range(len(variables)))
                ax.set_yticklabels([layout.row_labels[v] for v in variables], fontsize=8)
            else:
                ax.set_yticks([])

    for i, key in enumerate(row_keys):
        variables = layout.row_groups[key]
        rows = annotations.loc[variables]
        ax_method = fig.add_subplot(grid[2 + i, 0])
        _color_strip(ax_method, [plot_config.color_for("method", m) for m in rows["method"]], vertical=True)
        ax_organ = fig.add_subplot(grid[2 + i, 1])
        _color_strip(ax_organ, [plot_config.color_for("organ", o) for o in rows["organ"]], vertical=True)
        ax_method.set_ylabel(key, rotation=0, ha="right", va="center", fontsize=8)

    if image is not None:
        cax = fig.add_axes([0.9, 0.1, 0.015, 0.2])
        cbar = fig.colorbar(image, cax=cax)
        cbar.set_ticks(list(plot_config.heatmap_breaks))
        cbar.set_label("z-score", fontsize=9)

    handles = [Patch(color=plot_config.color_for("treatment", t), label=t) for t in col_keys]
    handles += [Patch(color=plot_config.color_for("method", m), label=m)
                for m in pd.unique(annotations["method"])]
    handles += [Patch(color=plot_config.color_for("organ", o), label=o)
                for o in pd.unique(annotations["organ"].dropna())]
    fig.legend(handles=handles, loc="upper left", bbox_to_anchor=(0.86, 0.92), fontsize=8, frameon=False)

    if title:
        fig.suptitle(title, fontsize=14, fontweight="bold")
    return fig
