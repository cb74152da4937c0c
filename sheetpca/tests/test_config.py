"""Tests for configuration values."""

import json

import pytest

from sheetpca.core import PipelineConfig, PlotConfig
from sheetpca.core.config import COLOR_PALETTE, NA_COLOR, TREATMENT_LEVELS


def test_defaults():
    config = PipelineConfig()
    assert config.treatment_levels == tuple(TREATMENT_LEVELS)
    assert len(config.treatment_levels) == 3
    assert config.treatment_column == "treatment"
    assert "mouse_id" in config.metadata_columns
    assert config.plot.heatmap_breaks == (-2.0, 0.0, 2.0)


def test_from_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "treatment_levels": ["Vehicle", "Drug"],
        "linkage_method": "average",
        "plot": {"treatment_colors": {"Vehicle": "#000000", "Drug": "#ff0000"}},
    }))
    config = PipelineConfig.from_json(path)

    assert config.treatment_levels == ("Vehicle", "Drug")
    assert config.linkage_method == "average"
    assert config.plot.color_for("treatment", "Drug") == "#ff0000"
    assert config.plot.method_colors["PC"] == "#000000"


def test_unknown_keys_rejected():
    with pytest.raises(ValueError):
        PipelineConfig.from_dict({"treatments": ["PBS"]})
    with pytest.raises(ValueError):
        PipelineConfig.from_dict({"plot": {"colour": "red"}})


class TestColorFor:

    def test_assigned_color(self):
        assert PlotConfig().color_for("method", "Flow Cytometry") == "#2ca02c"

    def test_missing_value(self):
        assert PlotConfig().color_for("organ", None) == NA_COLOR

    def test_nan_value(self):
        assert PlotConfig().color_for("organ", float("nan")) == NA_COLOR

    def test_unknown_category_uses_palette(self):
        color = PlotConfig().color_for("method", "Histology")
        assert color in COLOR_PALETTE
        assert color == PlotConfig().color_for("method", "Histology")

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            PlotConfig().color_for("tissue", "SC")

    def test_configs_are_independent(self):
        custom = PlotConfig(method_colors={"PC": "#123456"})
        assert custom.color_for("method", "PC") == "#123456"
        assert PlotConfig().color_for("method", "PC") == "#000000"
