"""Sheet-by-sheet standardization, PCA and split heatmaps for experiment spreadsheets."""

__version__ = "0.1.0"
