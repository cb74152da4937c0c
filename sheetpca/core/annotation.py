"""
Method and organ annotation of measurement variables from their names.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import pandas as pd

PC_LABEL = "PC"
METHOD_DEFAULT = "other"
ORGAN_DEFAULT = None
UNMATCHED_LABEL = "other"

# Score columns appended by the PCA merge
SCORE_COLUMN = re.compile(r"^PC\d+$")


@dataclass(frozen=True)
class Rule:
    """Assign ``label`` to any name containing ``pattern``."""

    pattern: str
    label: str
    ignore_case: bool = False

    def matches(self, name: str) -> bool:
        if self.ignore_case:
            return self.pattern.lower() in name.lower()
        return self.pattern in name


# First match wins
METHOD_RULES = (
    Rule("PC", PC_LABEL),
    Rule("restim", "Ex Vivo Restimulation"),
    Rule("homo", "Homogenate"),
    Rule("flow", "Flow Cytometry"),
    Rule("score", "Clinical Score"),
)

# "scdLN" before "SC" so names carrying both resolve to the lymph node
ORGAN_RULES = (
    Rule("PC", PC_LABEL),
    Rule("scdLN", "scdLN"),
    Rule("SC", "SC"),
    Rule("spleen", "Spleen"),
)

# Stripped from display labels only
LABEL_SUFFIXES = ("_flow", "_homo", "_restim", "_score")
LABEL_TOKENS = ("scdLN", "SC", "spleen")


@dataclass(frozen=True)
class VariableAnnotation:
    variable: str
    method: str
    organ: Optional[str]

    @property
    def group_key(self) -> str:
        """Row split key: method and organ joined, organ omitted when undefined or repeated."""
        return group_key(self.method, self.organ)


def group_key(method: str, organ: Optional[str]) -> str:
    if organ is None or pd.isna(organ) or organ == method:
        return method
    return f"{method} {organ}"


def classify(name: str, rules: Sequence[Rule], default: Optional[str]) -> Optional[str]:
    for rule in rules:
        if rule.matches(name):
            return rule.label
    return default


def annotate_variable(name: str) -> VariableAnnotation:
    name = str(name)
    return VariableAnnotation(
        variable=name,
        method=classify(name, METHOD_RULES, METHOD_DEFAULT),
        organ=classify(name, ORGAN_RULES, ORGAN_DEFAULT),
    )


def annotate_columns(columns: Iterable[str], reference: Optional[pd.DataFrame] = None) -> pd.DataFrame:
    """
    Build one annotation row per live column, in column order.

    Without ``reference`` every column is classified by the name rules.
    With a ``reference`` table (columns ``variable``, ``method``, ``organ``)
    the live columns are looked up in it instead; live columns it does not
    list get method and organ ``"other"``. PCA score columns (PC1, PC2, ...)
    are always classified by rule.
    """
    columns = [str(c) for c in columns]
    records = [annotate_variable(c) for c in columns]
    frame = pd.DataFrame(
        {
            "variable": [r.variable for r in records],
            "method": [r.method for r in records],
            "organ": [r.organ for r in records],
        },
        dtype=object,
    )

    if reference is not None:
        missing = {"variable", "method", "organ"} - set(reference.columns)
        if missing:
            raise ValueError(f"Annotation table lacks columns: {', '.join(sorted(missing))}")
        lookup = reference.drop_duplicates("variable").set_index("variable")
        is_pc = pd.Series(
            [bool(SCORE_COLUMN.match(v)) for v in frame["variable"]], index=frame.index, dtype=bool
        )
        live = frame.loc[~is_pc, "variable"]
        known = live.isin(lookup.index)
        frame.loc[~is_pc, "method"] = live.map(lookup["method"]).where(known, UNMATCHED_LABEL).values
        frame.loc[~is_pc, "organ"] = live.map(lookup["organ"]).where(known, UNMATCHED_LABEL).values

    frame["organ"] = pd.Series(
        [None if pd.isna(o) else o for o in frame["organ"]], index=frame.index, dtype=object
    )
    frame["method"] = frame["method"].astype(object)
    frame["group"] = [group_key(m, o) for m, o in zip(frame["method"], frame["organ"])]
    return frame


def display_label(name: str) -> str:
    """Strip organ and method tokens from a variable name for display."""
    label = str(name)
    for suffix in LABEL_SUFFIXES:
        label = label.replace(suffix, "")
    for token in LABEL_TOKENS:
        label = label.replace(token, "")
    label = label.replace("_", " ")
    return re.sub(r"\s+", " ", label).strip() or str(name)
