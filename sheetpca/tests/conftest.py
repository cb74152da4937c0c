"""Pytest fixtures for sheetpca tests."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from sheetpca.core import PipelineConfig


@pytest.fixture
def config():
    return PipelineConfig()


@pytest.fixture
def scenario_sheet():
    """Six mice, two treatments, one constant measurement."""
    return pd.DataFrame({
        "treatment": ["PBS", "PBS", "PBS", "FTY 720", "FTY 720", "FTY 720"],
        "organ": ["SC", "SC", "SC", "SC", "SC", "SC"],
        "IL17_SC_flow": [1.0, 2.5, 3.1, 7.4, 8.0, 6.2],
        "IFNg_spleen_restim": [10.0, 14.0, 9.5, 3.0, 5.5, 2.0],
        "TNF_scdLN_homo": [4.0, 4.0, 4.0, 4.0, 4.0, 4.0],
    })


@pytest.fixture
def missing_sheet(scenario_sheet):
    sheet = scenario_sheet.drop(columns="TNF_scdLN_homo").copy()
    sheet.loc[2, "IL17_SC_flow"] = np.nan
    return sheet


@pytest.fixture
def mixed_sheet():
    """Sheet with extra metadata, a text column and an unknown treatment."""
    rng = np.random.default_rng(0)
    n = 9
    return pd.DataFrame({
        "mouse_id": [f"m{i}" for i in range(n)],
        "experiment": ["E1"] * n,
        "treatment": ["PBS", "FTY 720", "anti-CD20"] * 3,
        "comment": ["ok"] * n,
        "clinical_score": rng.normal(2, 1, n),
        "CD4_SC_flow": rng.normal(30, 5, n),
        "CD8_scdLN_flow": rng.normal(15, 3, n),
        "IL6_spleen_homo": rng.normal(100, 20, n),
    }).assign(treatment=lambda df: df["treatment"].where(df.index != 8, "vehicle"))
