"""
File handling utilities.
"""

import json
import re
from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import pandas as pd

from .config import COLUMNS_SUFFIX, HEATMAP_SUFFIX, PC_VALUES_SUFFIX, SCATTER_SUFFIX, SUMMARY_FILE


def safe_sheet_name(name: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return re.sub(r"[^A-Za-z0-9]", "_", str(name))


def get_output_paths(output_dir: Path, sheet_name: str) -> Dict[str, Path]:
    """Get output paths for a sheet."""
    stem = safe_sheet_name(sheet_name)
    output_dir = Path(output_dir)
    return {
        "columns": output_dir / f"{stem}{COLUMNS_SUFFIX}",
        "pc_values": output_dir / f"{stem}{PC_VALUES_SUFFIX}",
        "heatmap": output_dir / f"{stem}{HEATMAP_SUFFIX}",
        "scatter": output_dir / f"{stem}{SCATTER_SUFFIX}",
    }


def load_workbook(path: Path, sheets: Optional[list] = None) -> Dict[str, pd.DataFrame]:
    """Load every sheet (or the named ones) of a spreadsheet into DataFrames."""
    path = Path(path)
    if path.suffix.lower() == ".csv":
        return {path.stem: pd.read_csv(path)}
    return pd.read_excel(path, sheet_name=sheets if sheets else None)


def load_annotation_table(path: Path) -> pd.DataFrame:
    """Load a variable/method/organ classification table."""
    return pd.read_csv(path, dtype=str)


def save_figure(fig, path: Path) -> None:
    """Save a figure as vector graphics and release it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, format="svg", bbox_inches="tight")
    plt.close(fig)


def write_sheet_outputs(result, output_dir: Path, heatmap_fig=None, scatter_fig=None) -> Dict[str, Path]:
    """
    Write the per-sheet CSV exports and any rendered figures.

    Returns:
        Mapping of output kind to the path written
    """
    paths = get_output_paths(output_dir, result.name)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = {}

    if result.annotations is not None:
        result.annotations[["variable", "method", "organ"]].to_csv(paths["columns"], index=False)
        written["columns"] = paths["columns"]

    if result.pca is not None:
        pc_values = pd.concat(
            [result.metadata.astype(object), result.pca.scores.loc[result.metadata.index]], axis=1
        )
        pc_values.to_csv(paths["pc_values"], index=False)
        written["pc_values"] = paths["pc_values"]

    if heatmap_fig is not None:
        save_figure(heatmap_fig, paths["heatmap"])
        written["heatmap"] = paths["heatmap"]
    if scatter_fig is not None:
        save_figure(scatter_fig, paths["scatter"])
        written["scatter"] = paths["scatter"]

    return written


def write_summary(summary: Dict, output_dir: Path) -> Path:
    path = Path(output_dir) / SUMMARY_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, indent=2))
    return path
