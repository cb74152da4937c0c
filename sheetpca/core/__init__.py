"""
Core analysis logic for sheet-by-sheet PCA and split heatmaps.

This module contains all analysis that is independent of the command line
shell: standardization, quality filtering, variable annotation, PCA,
heatmap layout and the scatter plot.
"""

from .config import (
    TREATMENT_LEVELS, TREATMENT_COLUMN, METADATA_COLUMNS, COLOR_PALETTE,
    PlotConfig, PipelineConfig,
)
from .errors import (
    SchemaMismatchError, DegenerateInputWarning, MissingDataNotice,
)
from .preprocessing import (
    StandardizedSheet, FilterResult, standardize_sheet, filter_quality, check_alignment,
)
from .annotation import (
    VariableAnnotation, annotate_variable, annotate_columns, display_label,
)
from .analysis import (
    PCAResult, run_pca, merge_scores,
)
from .heatmap import (
    HeatmapLayout, build_heatmap_layout, cluster_order, heatmap_colormap, render_heatmap,
)
from .visualization import (
    ScatterSpec, get_axis_labels, build_scatter, render_scatter,
)
from .file_handling import (
    safe_sheet_name, get_output_paths, load_workbook, load_annotation_table,
    write_sheet_outputs, write_summary,
)
from .pipeline import (
    SheetResult, process_sheet, run_workbook,
)

__all__ = [
    "TREATMENT_LEVELS", "TREATMENT_COLUMN", "METADATA_COLUMNS", "COLOR_PALETTE",
    "PlotConfig", "PipelineConfig",
    "SchemaMismatchError", "DegenerateInputWarning", "MissingDataNotice",
    "StandardizedSheet", "FilterResult", "standardize_sheet", "filter_quality", "check_alignment",
    "VariableAnnotation", "annotate_variable", "annotate_columns", "display_label",
    "PCAResult", "run_pca", "merge_scores",
    "HeatmapLayout", "build_heatmap_layout", "cluster_order", "heatmap_colormap", "render_heatmap",
    "ScatterSpec", "get_axis_labels", "build_scatter", "render_scatter",
    "safe_sheet_name", "get_output_paths", "load_workbook", "load_annotation_table",
    "write_sheet_outputs", "write_summary",
    "SheetResult", "process_sheet", "run_workbook",
]
