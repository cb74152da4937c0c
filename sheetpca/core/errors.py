"""
Error and notice types shared by the pipeline stages.
"""

from dataclasses import dataclass


class SchemaMismatchError(ValueError):
    """Metadata and numeric data are no longer row-aligned, or a sheet lacks a required column."""


class DegenerateInputWarning(UserWarning):
    """A stage was skipped for a sheet because its input was too small to process."""


@dataclass(frozen=True)
class MissingDataNotice:
    """Rows dropped for missing or non-finite numeric values."""

    sheet: str
    dropped_rows: int
    remaining_rows: int

    def __str__(self) -> str:
        return (
            f"{self.sheet}: dropped {self.dropped_rows} row(s) with missing or non-finite values, "
            f"{self.remaining_rows} remaining"
        )
