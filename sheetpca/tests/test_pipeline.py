"""End-to-end tests of the per-sheet pipeline."""

import numpy as np
import pandas as pd

from sheetpca.core import (
    DegenerateInputWarning,
    SchemaMismatchError,
    process_sheet,
    run_workbook,
    standardize_sheet,
)


class TestProcessSheet:

    def test_constant_column_scenario(self, scenario_sheet, config):
        result = process_sheet("scenario", scenario_sheet, config)

        assert result.ok
        assert result.dropped_columns == ["TNF_scdLN_homo"]
        assert list(result.numeric.columns) == ["IL17_SC_flow", "IFNg_spleen_restim"]
        assert result.pca.k == 2
        assert list(result.layout.column_groups) == ["PBS", "FTY 720"]
        assert list(result.layout.row_groups) == [
            "Ex Vivo Restimulation Spleen", "Flow Cytometry SC", "PC",
        ]
        assert result.layout.row_groups["PC"] == ["PC1", "PC2"]
        assert result.scatter is not None
        assert result.warnings == []

    def test_missing_value_scenario(self, missing_sheet, config):
        result = process_sheet("missing", missing_sheet, config)
        standardized = standardize_sheet("missing", missing_sheet, config)

        assert result.missing.dropped_rows == 1
        assert len(result.metadata) == len(result.numeric) == 5
        pd.testing.assert_frame_equal(
            result.numeric, standardized.numeric.drop(index=2), check_dtype=False
        )

    def test_annotations_cover_augmented_matrix(self, mixed_sheet, config):
        result = process_sheet("mixed", mixed_sheet, config)
        assert result.annotations["variable"].tolist() == list(result.numeric.columns) + ["PC1", "PC2"]
        assert result.layout.matrix.shape == (len(result.numeric.columns) + 2, len(result.numeric))
        assert list(result.layout.column_groups) == ["PBS", "FTY 720", "anti-CD20"]

    def test_no_numeric_columns_is_degenerate(self, config):
        sheet = pd.DataFrame({"treatment": ["PBS", "FTY 720"], "mouse": ["a", "b"]})
        result = process_sheet("meta_only", sheet, config)

        assert result.ok
        assert result.pca is None
        assert result.layout is None
        assert result.scatter is None
        assert result.warnings
        assert all(isinstance(w, DegenerateInputWarning) for w in result.warnings)

    def test_single_column_heatmap_without_pca(self, scenario_sheet, config):
        sheet = scenario_sheet[["treatment", "organ", "IL17_SC_flow"]]
        result = process_sheet("single", sheet, config)

        assert result.pca is None
        assert result.layout is not None
        assert list(result.layout.row_groups) == ["Flow Cytometry SC"]
        assert any("PCA skipped" in str(w) for w in result.warnings)

    def test_all_rows_dropped(self, scenario_sheet, config):
        sheet = scenario_sheet.copy()
        sheet["empty"] = np.nan
        result = process_sheet("empty", sheet, config)

        assert result.missing.dropped_rows == 6
        assert result.layout is None
        assert any("heatmap skipped" in str(w) for w in result.warnings)

    def test_reference_annotations(self, scenario_sheet, config):
        reference = pd.DataFrame({
            "variable": ["IL17_SC_flow"],
            "method": ["Flow Cytometry"],
            "organ": ["SC"],
        })
        result = process_sheet("scenario", scenario_sheet, config, reference)
        by_name = result.annotations.set_index("variable")
        assert by_name.loc["IFNg_spleen_restim", "method"] == "other"
        assert by_name.loc["PC1", "method"] == "PC"

    def test_summary(self, scenario_sheet, config):
        summary = process_sheet("scenario", scenario_sheet, config).summary()
        assert summary["rows"] == 6
        assert summary["numeric_columns"] == 2
        assert summary["dropped_columns"] == ["TNF_scdLN_homo"]
        assert summary["non_numeric_columns"] == []
        assert summary["components"] == 2
        assert summary["error"] is None


    def test_non_numeric_columns_reported(self, mixed_sheet, config):
        result = process_sheet("mixed", mixed_sheet, config)
        assert result.ok
        assert result.non_numeric_columns == ["comment"]
        assert result.summary()["non_numeric_columns"] == ["comment"]


class TestRunWorkbook:

    def test_failing_sheet_is_isolated(self, scenario_sheet, missing_sheet, config):
        sheets = {
            "good": scenario_sheet,
            "broken": scenario_sheet.drop(columns="treatment"),
            "missing": missing_sheet,
        }
        results = run_workbook(sheets, config)

        assert list(results) == ["good", "broken", "missing"]
        assert results["good"].ok
        assert results["missing"].ok
        assert isinstance(results["broken"].error, SchemaMismatchError)
        assert "SchemaMismatchError" in results["broken"].summary()["error"]

    def test_parallel_matches_sequential(self, scenario_sheet, missing_sheet, mixed_sheet, config):
        sheets = {"a": scenario_sheet, "b": missing_sheet, "c": mixed_sheet}
        sequential = run_workbook(sheets, config)
        parallel = run_workbook(sheets, config, max_workers=3)

        assert list(parallel) == list(sequential)
        for name in sheets:
            pd.testing.assert_frame_equal(parallel[name].layout.matrix, sequential[name].layout.matrix)
            pd.testing.assert_frame_equal(parallel[name].pca.scores, sequential[name].pca.scores)
