"""
Configuration constants and explicit configuration values for the pipeline.
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

# Treatment labels in display order
TREATMENT_LEVELS = ["PBS", "FTY 720", "anti-CD20"]
TREATMENT_COLUMN = "treatment"

# Recognized metadata columns (only those present in a sheet are used)
METADATA_COLUMNS = [
    "experiment",
    "experiment_id",
    "mouse",
    "mouse_id",
    "organ",
    "group",
    "condition",
    "treatment",
]

TREATMENT_COLORS = {
    "PBS": "#7f7f7f",
    "FTY 720": "#1f77b4",
    "anti-CD20": "#d62728",
}

TREATMENT_MARKERS = {
    "PBS": "o",
    "FTY 720": "^",
    "anti-CD20": "s",
}

METHOD_COLORS = {
    "PC": "#000000",
    "Ex Vivo Restimulation": "#e377c2",
    "Homogenate": "#8c564b",
    "Flow Cytometry": "#2ca02c",
    "Clinical Score": "#ff7f0e",
    "other": "#c7c7c7",
}

ORGAN_COLORS = {
    "PC": "#000000",
    "scdLN": "#9467bd",
    "SC": "#17becf",
    "Spleen": "#bcbd22",
    "other": "#c7c7c7",
}

NA_COLOR = "#f0f0f0"

# Diverging scale for standardized values
HEATMAP_BREAKS = (-2.0, 0.0, 2.0)
HEATMAP_COLORS = ("#2166ac", "#f7f7f7", "#b2182b")

LINKAGE_METHOD = "complete"

# Fallback palette for categories without an assigned color
COLOR_PALETTE = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
    "#aec7e8", "#ffbb78", "#98df8a", "#ff9896", "#c5b0d5",
    "#c49c94", "#f7b6d3", "#c7c7c7", "#dbdb8d", "#9edae5"
]

# Output file suffixes
COLUMNS_SUFFIX = "_columns.csv"
PC_VALUES_SUFFIX = "_PCvalues.csv"
HEATMAP_SUFFIX = "_heatmap_split.svg"
SCATTER_SUFFIX = "_PCA.svg"
SUMMARY_FILE = "run_summary.json"


@dataclass(frozen=True)
class PlotConfig:
    """Colors, markers and the heatmap scale used by the renderers."""

    treatment_colors: Dict[str, str] = field(default_factory=lambda: dict(TREATMENT_COLORS))
    treatment_markers: Dict[str, str] = field(default_factory=lambda: dict(TREATMENT_MARKERS))
    method_colors: Dict[str, str] = field(default_factory=lambda: dict(METHOD_COLORS))
    organ_colors: Dict[str, str] = field(default_factory=lambda: dict(ORGAN_COLORS))
    na_color: str = NA_COLOR
    heatmap_breaks: Tuple[float, float, float] = HEATMAP_BREAKS
    heatmap_colors: Tuple[str, str, str] = HEATMAP_COLORS
    palette: Tuple[str, ...] = tuple(COLOR_PALETTE)

    def color_for(self, kind: str, value: Optional[str]) -> str:
        """Resolve the color of a ``treatment``, ``method`` or ``organ`` category."""
        tables = {
            "treatment": self.treatment_colors,
            "method": self.method_colors,
            "organ": self.organ_colors,
        }
        if kind not in tables:
            raise ValueError(f"Unknown annotation kind: {kind}")
        if value is None or pd.isna(value):
            return self.na_color
        table = tables[kind]
        if value in table:
            return table[value]
        # Stable fallback for categories nobody assigned a color to
        return self.palette[sum(map(ord, str(value))) % len(self.palette)]

    def marker_for(self, treatment: str) -> str:
        return self.treatment_markers.get(treatment, "o")


@dataclass(frozen=True)
class PipelineConfig:
    """Everything a per-sheet run consumes besides the sheet itself."""

    treatment_levels: Tuple[str, ...] = tuple(TREATMENT_LEVELS)
    treatment_column: str = TREATMENT_COLUMN
    metadata_columns: Tuple[str, ...] = tuple(METADATA_COLUMNS)
    linkage_method: str = LINKAGE_METHOD
    max_components: int = 2
    plot: PlotConfig = field(default_factory=PlotConfig)

    @classmethod
    def from_dict(cls, data: Dict) -> "PipelineConfig":
        data = dict(data)
        plot_data = data.pop("plot", {}) or {}
        _reject_unknown(cls, data)
        _reject_unknown(PlotConfig, plot_data)
        for key in ("treatment_levels", "metadata_columns"):
            if key in data:
                data[key] = tuple(data[key])
        for key in ("heatmap_breaks", "heatmap_colors", "palette"):
            if key in plot_data:
                plot_data[key] = tuple(plot_data[key])
        return cls(plot=PlotConfig(**plot_data), **data)

    @classmethod
    def from_json(cls, path: Path) -> "PipelineConfig":
        """Load overrides from a JSON file; missing keys keep their defaults."""
        return cls.from_dict(json.loads(Path(path).read_text()))


def _reject_unknown(cls, data: Dict) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {', '.join(unknown)}")
