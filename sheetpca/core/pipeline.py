"""
Per-sheet pipeline: standardize, filter, annotate, PCA, heatmap layout, scatter.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import pandas as pd

from .analysis import PCAResult, merge_scores, run_pca
from .annotation import annotate_columns
from .config import PipelineConfig
from .errors import DegenerateInputWarning, MissingDataNotice
from .heatmap import HeatmapLayout, build_heatmap_layout
from .preprocessing import check_alignment, filter_quality, standardize_sheet
from .visualization import ScatterSpec, build_scatter

logger = logging.getLogger(__name__)


@dataclass
class SheetResult:
    """Everything one sheet produced, including why stages were skipped."""

    name: str
    metadata: Optional[pd.DataFrame] = None
    numeric: Optional[pd.DataFrame] = None
    annotations: Optional[pd.DataFrame] = None
    pca: Optional[PCAResult] = None
    layout: Optional[HeatmapLayout] = None
    scatter: Optional[ScatterSpec] = None
    missing: Optional[MissingDataNotice] = None
    dropped_columns: List[str] = field(default_factory=list)
    non_numeric_columns: List[str] = field(default_factory=list)
    warnings: List[DegenerateInputWarning] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def warn(self, message: str) -> None:
        warning = DegenerateInputWarning(f"{self.name}: {message}")
        logger.warning(str(warning))
        self.warnings.append(warning)

    def summary(self) -> Dict:
        return {
            "sheet": self.name,
            "rows": None if self.numeric is None else int(self.numeric.shape[0]),
            "numeric_columns": None if self.numeric is None else int(self.numeric.shape[1]),
            "dropped_rows": None if self.missing is None else self.missing.dropped_rows,
            "dropped_columns": list(map(str, self.dropped_columns)),
            "non_numeric_columns": list(self.non_numeric_columns),
            "components": 0 if self.pca is None else self.pca.k,
            "variance_explained": {} if self.pca is None else {
                name: round(float(value), 3)
                for name, value in self.pca.variance_explained.iloc[:self.pca.k].items()
            },
            "warnings": [str(w) for w in self.warnings],
            "error": None if self.error is None else f"{type(self.error).__name__}: {self.error}",
        }


def process_sheet(
    name: str,
    sheet: pd.DataFrame,
    config: Optional[PipelineConfig] = None,
    reference_annotations: Optional[pd.DataFrame] = None,
) -> SheetResult:
    """
    Run the full pipeline on one sheet.

    Degenerate input never raises: the affected stage is skipped and a
    DegenerateInputWarning is recorded on the result. A SchemaMismatchError
    propagates to the caller.
    """
    config = config or PipelineConfig()
    result = SheetResult(name=name)

    standardized = standardize_sheet(name, sheet, config)
    result.non_numeric_columns = standardized.non_numeric_columns
    if standardized.numeric.shape[1] == 0:
        result.warn("no numeric columns")
    if standardized.numeric.shape[0] == 0:
        result.warn("no rows with a recognized treatment")

    filtered = filter_quality(standardized.metadata, standardized.numeric, name)
    result.metadata = filtered.metadata
    result.numeric = filtered.numeric
    result.missing = filtered.notice
    result.dropped_columns = filtered.dropped_columns

    n_rows, n_cols = filtered.numeric.shape
    if n_rows < 2 or n_cols < 2:
        result.warn(f"PCA skipped, {n_rows} row(s) x {n_cols} column(s) after cleaning")
    else:
        result.pca = run_pca(filtered.numeric, config.max_components)
        if result.pca is None:
            result.warn("PCA skipped, matrix has no variance")

    matrix = merge_scores(filtered.numeric, result.pca)
    check_alignment(filtered.metadata, matrix, f"{name} PCA merge")
    result.annotations = annotate_columns(matrix.columns, reference=reference_annotations)

    if matrix.shape[0] == 0 or matrix.shape[1] == 0:
        result.warn(f"heatmap skipped, {matrix.shape[0]} row(s) x {matrix.shape[1]} column(s)")
    else:
        result.layout = build_heatmap_layout(
            matrix,
            filtered.metadata,
            result.annotations,
            config.treatment_column,
            config.treatment_levels,
            config.linkage_method,
        )

    result.scatter = build_scatter(result.pca, filtered.metadata, config.treatment_column, config.plot)
    if result.scatter is None and result.pca is not None:
        result.warn(f"scatter plot skipped, only {result.pca.k} component(s)")

    return result


def _process_isolated(name, sheet, config, reference_annotations) -> SheetResult:
    try:
        return process_sheet(name, sheet, config, reference_annotations)
    except Exception as e:
        logger.exception("Sheet %s failed: %s", name, e)
        return SheetResult(name=name, error=e)


def run_workbook(
    sheets: Mapping[str, pd.DataFrame],
    config: Optional[PipelineConfig] = None,
    reference_annotations: Optional[pd.DataFrame] = None,
    max_workers: int = 1,
) -> Dict[str, SheetResult]:
    """
    Process every sheet independently.

    A failing sheet is recorded with its error and does not stop the rest.
    Results come back in input order whether or not sheets ran concurrently.
    """
    config = config or PipelineConfig()
    names = list(sheets)

    if max_workers > 1 and len(names) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(_process_isolated, name, sheets[name], config, reference_annotations)
                for name in names
            ]
            results = [f.result() for f in futures]
    else:
        results = [_process_isolated(name, sheets[name], config, reference_annotations) for name in names]

    return dict(zip(names, results))
