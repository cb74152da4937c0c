"""
Standardization and quality filtering of a single sheet.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from .config import PipelineConfig
from .errors import MissingDataNotice, SchemaMismatchError

logger = logging.getLogger(__name__)


@dataclass
class StandardizedSheet:
    """Metadata and z-scored measurements of one sheet, row-aligned."""

    name: str
    metadata: pd.DataFrame
    numeric: pd.DataFrame
    means: pd.Series
    scales: pd.Series
    non_numeric_columns: List[str] = field(default_factory=list)


@dataclass
class FilterResult:
    """Output of the quality filter plus what it removed."""

    metadata: pd.DataFrame
    numeric: pd.DataFrame
    notice: MissingDataNotice
    dropped_columns: List[str] = field(default_factory=list)


def check_alignment(metadata: pd.DataFrame, numeric: pd.DataFrame, stage: str) -> None:
    """Raise SchemaMismatchError unless metadata and numeric rows line up one to one."""
    if len(metadata) != len(numeric):
        raise SchemaMismatchError(
            f"{stage}: metadata has {len(metadata)} rows but numeric data has {len(numeric)}"
        )
    if not metadata.index.equals(numeric.index):
        raise SchemaMismatchError(f"{stage}: metadata and numeric row labels differ")


def standardize_sheet(name: str, sheet: pd.DataFrame, config: PipelineConfig) -> StandardizedSheet:
    """
    Split a raw sheet into metadata and z-scored numeric measurements.

    Rows whose treatment is not one of ``config.treatment_levels`` are dropped.
    Metadata columns become categoricals (treatment ordered by the configured
    display order). Every other numeric column is a measurement and is
    standardized to zero mean and unit sample standard deviation (n - 1,
    as R's ``scale()``). Non-numeric measurement columns (text such as
    "n.d." in a value column) are left out and listed on the result.
    Infinite values are turned into NaN so the quality filter removes
    their rows.

    Returns:
        StandardizedSheet with metadata and numeric frames sharing one index
    """
    treatment = config.treatment_column
    if treatment not in sheet.columns:
        raise SchemaMismatchError(f"{name}: no '{treatment}' column")

    rows = sheet[sheet[treatment].isin(config.treatment_levels)].reset_index(drop=True)
    unknown = len(sheet) - len(rows)
    if unknown:
        logger.info("%s: dropped %d row(s) with unrecognized treatment", name, unknown)

    metadata_cols = [c for c in config.metadata_columns if c in rows.columns]
    metadata = rows[metadata_cols].copy()
    for col in metadata_cols:
        if col == treatment:
            metadata[col] = pd.Categorical(
                metadata[col], categories=list(config.treatment_levels), ordered=True
            )
        else:
            metadata[col] = metadata[col].astype("category")

    measurements = rows.drop(columns=metadata_cols)
    numeric = measurements.select_dtypes(include="number").astype(float)
    numeric = numeric.replace([np.inf, -np.inf], np.nan)
    non_numeric = [str(c) for c in measurements.columns if c not in numeric.columns]
    if non_numeric:
        logger.warning(
            "%s: ignored %d non-numeric column(s): %s",
            name, len(non_numeric), ", ".join(non_numeric),
        )

    check_alignment(metadata, numeric, f"{name} standardize")

    if numeric.shape[0] == 0 or numeric.shape[1] == 0:
        # Nothing to scale; pass through unchanged
        logger.debug("%s: %d rows x %d numeric columns, skipping scaling", name, *numeric.shape)
        empty = pd.Series(np.nan, index=numeric.columns, dtype=float)
        return StandardizedSheet(name, metadata, numeric, empty, empty.copy(), non_numeric)

    scaler = StandardScaler()
    values = scaler.fit_transform(numeric.to_numpy())

    # Sample standard deviation (n - 1); constant columns keep scale 1
    counts = numeric.notna().sum().to_numpy(dtype=float)
    correction = np.ones_like(counts)
    varies = (scaler.var_ > 0) & (counts > 1)
    correction[varies] = np.sqrt(counts[varies] / (counts[varies] - 1))
    values = values / correction
    scaled = pd.DataFrame(values, index=numeric.index, columns=numeric.columns)

    return StandardizedSheet(
        name=name,
        metadata=metadata,
        numeric=scaled,
        means=pd.Series(scaler.mean_, index=numeric.columns),
        scales=pd.Series(scaler.scale_ * correction, index=numeric.columns),
        non_numeric_columns=non_numeric,
    )


def filter_quality(metadata: pd.DataFrame, numeric: pd.DataFrame, name: str = "") -> FilterResult:
    """
    Drop incomplete rows, then constant columns.

    A row is dropped when any numeric value is missing or non-finite; the
    same mask is applied to ``metadata``. Columns are then dropped when
    their standard deviation over the remaining rows is zero or undefined
    (fewer than two distinct values). Column checks always use the
    post-row-filter sample.
    """
    check_alignment(metadata, numeric, f"{name} quality filter")

    complete = np.isfinite(numeric.to_numpy(dtype=float)).all(axis=1)
    metadata = metadata.loc[complete]
    numeric = numeric.loc[complete]
    notice = MissingDataNotice(
        sheet=name,
        dropped_rows=int((~complete).sum()),
        remaining_rows=int(complete.sum()),
    )
    logger.info(str(notice))

    informative = numeric.nunique(dropna=True) > 1
    dropped_columns = numeric.columns[~informative].tolist()
    numeric = numeric.loc[:, informative]
    if dropped_columns:
        logger.info(
            "%s: dropped %d zero-variance column(s): %s",
            name, len(dropped_columns), ", ".join(map(str, dropped_columns)),
        )

    check_alignment(metadata, numeric, f"{name} quality filter")
    return FilterResult(metadata, numeric, notice, dropped_columns)
