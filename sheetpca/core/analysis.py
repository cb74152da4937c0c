"""
Principal component analysis of a standardized measurement matrix.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.utils.extmath import svd_flip

from .errors import SchemaMismatchError

logger = logging.getLogger(__name__)


@dataclass
class PCAResult:
    """
    Scores and explained variance of the leading components.

    ``scores`` holds the first ``k`` components (columns PC1..PCk), while
    ``variance_explained`` and ``loadings`` cover every computable component.
    """

    scores: pd.DataFrame
    variance_explained: pd.Series
    loadings: pd.DataFrame

    @property
    def k(self) -> int:
        return self.scores.shape[1]


def component_names(n: int):
    return [f"PC{i + 1}" for i in range(n)]


def run_pca(numeric: pd.DataFrame, max_components: int = 2) -> Optional[PCAResult]:
    """
    Compute principal components without centering or scaling.

    The input is expected to be standardized already, so the singular value
    decomposition runs on the matrix as given. Each component's share of
    variance is its eigenvalue (squared singular value) over the sum of all
    eigenvalues, in percent.

    Returns:
        PCAResult, or None when fewer than two rows or two columns are available
    """
    n_rows, n_cols = numeric.shape
    if n_rows < 2 or n_cols < 2:
        logger.debug("PCA skipped for %d x %d matrix", n_rows, n_cols)
        return None

    values = numeric.to_numpy(dtype=float)
    u, s, vt = np.linalg.svd(values, full_matrices=False)
    u, vt = svd_flip(u, vt)

    eigenvalues = s ** 2
    total = eigenvalues.sum()
    if total == 0:
        logger.debug("PCA skipped for all-zero matrix")
        return None

    tol = s.max() * max(values.shape) * np.finfo(float).eps
    rank = int((s > tol).sum())
    k = min(max_components, rank)

    names = component_names(len(s))
    scores = pd.DataFrame(u[:, :k] * s[:k], index=numeric.index, columns=names[:k])
    variance = pd.Series(eigenvalues / total * 100.0, index=names)
    loadings = pd.DataFrame(vt.T, index=numeric.columns, columns=names)

    logger.debug(
        "PCA: %d component(s) kept, %s",
        k, ", ".join(f"{n}={v:.1f}%" for n, v in variance.iloc[:k].items()),
    )
    return PCAResult(scores=scores, variance_explained=variance, loadings=loadings)


def merge_scores(numeric: pd.DataFrame, pca: Optional[PCAResult]) -> pd.DataFrame:
    """
    Append the PC score columns to the measurement matrix.

    Raises SchemaMismatchError when a measurement column already carries a
    score column name.
    """
    if pca is None or pca.k == 0:
        return numeric.copy()
    taken = [str(c) for c in numeric.columns if str(c) in set(pca.scores.columns)]
    if taken:
        raise SchemaMismatchError(f"Measurement column(s) clash with PCA scores: {', '.join(taken)}")
    return pd.concat([numeric, pca.scores.loc[numeric.index]], axis=1)
