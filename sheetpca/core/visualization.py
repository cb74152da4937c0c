"""
PC1 vs PC2 scatter plot of a sheet's observations.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.figure import Figure

from .analysis import PCAResult
from .config import PlotConfig

logger = logging.getLogger(__name__)


@dataclass
class ScatterSpec:
    """Points, axis labels and per-treatment styling of a PCA scatter plot."""

    data: pd.DataFrame
    x_label: str
    y_label: str
    colors: Dict[str, str]
    markers: Dict[str, str]


def get_axis_labels(variance_explained: pd.Series) -> Tuple[str, str]:
    """Axis labels carrying each component's explained variance."""
    return tuple(
        f"{name} ({variance_explained[name]:.1f}%)" for name in ("PC1", "PC2")
    )


def build_scatter(
    pca: Optional[PCAResult],
    metadata: pd.DataFrame,
    treatment_column: str,
    plot_config: PlotConfig,
) -> Optional[ScatterSpec]:
    """Build the PC1/PC2 scatter spec, or None when fewer than two components exist."""
    if pca is None or pca.k < 2:
        logger.debug("Scatter plot needs two components, got %d", 0 if pca is None else pca.k)
        return None

    data = pca.scores[["PC1", "PC2"]].copy()
    data[treatment_column] = metadata.loc[data.index, treatment_column].astype(object).values
    treatments = [t for t in pd.unique(data[treatment_column]) if pd.notna(t)]
    if isinstance(metadata[treatment_column].dtype, pd.CategoricalDtype):
        treatments = [t for t in metadata[treatment_column].cat.categories if t in treatments]

    x_label, y_label = get_axis_labels(pca.variance_explained)
    return ScatterSpec(
        data=data,
        x_label=x_label,
        y_label=y_label,
        colors={t: plot_config.color_for("treatment", t) for t in treatments},
        markers={t: plot_config.marker_for(t) for t in treatments},
    )


def render_scatter(spec: ScatterSpec, title: str = "", treatment_column: str = "treatment") -> Figure:
    """Draw the scatter plot with one color and marker per treatment."""
    fig, ax = plt.subplots(figsize=(8, 6))

    for treatment, color in spec.colors.items():
        subset = spec.data[spec.data[treatment_column] == treatment]
        ax.scatter(
            subset["PC1"], subset["PC2"],
            label=str(treatment), color=color, marker=spec.markers[treatment],
            alpha=0.8, s=60, edgecolors="black", linewidths=0.5,
        )

    ax.set_xlabel(spec.x_label, fontsize=14, fontweight="bold")
    ax.set_ylabel(spec.y_label, fontsize=14, fontweight="bold")
    ax.tick_params(axis="both", which="major", labelsize=10, width=2)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.spines["left"].set_linewidth(2)
    ax.spines["bottom"].set_linewidth(2)
    ax.grid(False)
    ax.legend(bbox_to_anchor=(1.05, 1), loc="upper left", fontsize=10, title=treatment_column)
    if title:
        ax.set_title(title, fontsize=16, fontweight="bold", pad=20)
    fig.tight_layout()
    return fig
