"""
sheetpca - command line entry point

Runs the per-sheet pipeline over every sheet of a workbook and writes the
column list, PC scores, split heatmap and PCA scatter plot of each sheet.

Installation:
    pip install -e .

Start:
    sheetpca measurements.xlsx -o results/
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import matplotlib
matplotlib.use("Agg")

from .core import (
    PipelineConfig,
    load_annotation_table,
    load_workbook,
    render_heatmap,
    render_scatter,
    run_workbook,
    write_sheet_outputs,
    write_summary,
)

logger = logging.getLogger("sheetpca")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetpca",
        description="Standardize, PCA and split-heatmap every sheet of a workbook.",
    )
    parser.add_argument("workbook", type=Path, help="Excel workbook (or a single CSV)")
    parser.add_argument("-o", "--output", type=Path, default=Path("results"), help="Output directory")
    parser.add_argument("--config", type=Path, help="JSON file overriding the pipeline configuration")
    parser.add_argument("--annotations", type=Path, help="CSV with variable, method, organ columns")
    parser.add_argument("--sheet", action="append", dest="sheets", help="Only process this sheet (repeatable)")
    parser.add_argument("--workers", type=int, default=1, help="Sheets processed concurrently")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    config = PipelineConfig.from_json(args.config) if args.config else PipelineConfig()
    reference = load_annotation_table(args.annotations) if args.annotations else None
    sheets = load_workbook(args.workbook, args.sheets)
    logger.info("Loaded %d sheet(s) from %s", len(sheets), args.workbook)

    results = run_workbook(sheets, config, reference, max_workers=args.workers)

    summary = {"workbook": str(args.workbook), "sheets": []}
    for name, result in results.items():
        summary["sheets"].append(result.summary())
        if not result.ok:
            continue

        heatmap_fig = None
        scatter_fig = None
        if result.layout is not None:
            heatmap_fig = render_heatmap(result.layout, config.plot, title=name)
        if result.scatter is not None:
            scatter_fig = render_scatter(result.scatter, title=name, treatment_column=config.treatment_column)

        written = write_sheet_outputs(result, args.output, heatmap_fig, scatter_fig)
        for kind, path in written.items():
            logger.info("%s: wrote %s to %s", name, kind, path)

    summary_path = write_summary(summary, args.output)
    failed = [name for name, result in results.items() if not result.ok]
    logger.info("Summary written to %s", summary_path)
    if failed:
        logger.error("%d sheet(s) failed: %s", len(failed), ", ".join(failed))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
