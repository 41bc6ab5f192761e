from __future__ import annotations
import logging
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Mapping, Optional, Union

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from .data_prep import drop_missing

logger = logging.getLogger(__name__)


class RuleMismatchError(ValueError):
    """A classification rule was applied to values of the wrong kind."""


@dataclass(frozen=True)
class RangeRule:
    """Favorable iff the numeric value lies in [low, high]."""
    low: float
    high: float

    def __post_init__(self):
        if self.low > self.high:
            raise ValueError(f"RangeRule low ({self.low}) is greater than high ({self.high})")

    def describe(self) -> str:
        return f"{self.low:g}-{self.high:g}"


@dataclass(frozen=True)
class SetRule:
    """Favorable iff the string value is one of the accepted labels."""
    accepted: frozenset

    def __post_init__(self):
        accepted = frozenset(self.accepted)
        if not accepted:
            raise ValueError("SetRule needs at least one accepted label")
        object.__setattr__(self, "accepted", accepted)

    def describe(self) -> str:
        return " / ".join(sorted(self.accepted))


Rule = Union[RangeRule, SetRule]


@dataclass(frozen=True)
class AggregationSpec:
    target: str
    rule: Rule
    title: Optional[str] = None

    @property
    def label(self) -> str:
        return self.title or self.target


@dataclass(frozen=True)
class LineFit:
    intercept: float
    slope: float
    n: int

    def predict(self, x):
        return self.intercept + self.slope * np.asarray(x, dtype=float)


def favorable_mask(values: pd.Series, rule: Rule) -> pd.Series:
    """
    Classify non-missing responses as favorable (True) or not.

    Raises RuleMismatchError when a RangeRule sees non-numeric values or a
    SetRule sees numeric ones.
    """
    if values.dtype == object:
        # gaps written as None / pd.NA leave numbers in an object column
        values = values.infer_objects()
    if values.empty:
        return pd.Series([], index=values.index, dtype=bool, name=values.name)
    numeric = pd.api.types.is_numeric_dtype(values) and not pd.api.types.is_bool_dtype(values)
    if isinstance(rule, RangeRule):
        if not numeric:
            raise RuleMismatchError(
                f"Range rule {rule.describe()} needs numeric values; "
                f"column '{values.name}' has dtype {values.dtype}"
            )
        return values.between(rule.low, rule.high, inclusive="both")
    if isinstance(rule, SetRule):
        if numeric:
            raise RuleMismatchError(
                f"Set rule {{{rule.describe()}}} needs text labels; "
                f"column '{values.name}' has dtype {values.dtype}"
            )
        bad = values.map(lambda v: not isinstance(v, str))
        if bad.any():
            sample = values[bad].iloc[0]
            raise RuleMismatchError(
                f"Set rule {{{rule.describe()}}} needs text labels; "
                f"column '{values.name}' holds {type(sample).__name__} value {sample!r}"
            )
        return values.isin(rule.accepted)
    raise TypeError(f"Unknown rule type: {type(rule).__name__}")


def summary_counts(
    df: pd.DataFrame,
    group_col: str,
    spec: AggregationSpec,
    *,
    assume_filtered: bool = False,
) -> pd.DataFrame:
    """
    Per-group favorable / total counts and their ratio.

    Rows missing the group or target value are dropped here, once. Pass
    assume_filtered=True when the caller has already done that; any NA left
    over is then reported as an error instead of being dropped a second time.
    """
    cols = [group_col, spec.target]
    miss = set(cols) - set(df.columns)
    if miss:
        raise ValueError(f"DataFrame is missing columns: {sorted(miss)}")

    if assume_filtered:
        if df[cols].isna().any().any():
            raise ValueError(f"assume_filtered=True but {cols} still contain missing values")
        sub = df[cols]
    else:
        sub = drop_missing(df[cols], cols)

    fav = favorable_mask(sub[spec.target], spec.rule)
    counts = (
        pd.DataFrame({"group": sub[group_col].to_numpy(), "fav": fav.to_numpy(dtype=bool)})
        .groupby("group", observed=True, sort=True)
        .agg(favorable=("fav", "sum"), total=("fav", "size"))
    )
    counts = counts[counts["total"] > 0].astype({"favorable": "int64", "total": "int64"})
    counts["pct"] = counts["favorable"] / counts["total"]
    counts.index.name = group_col
    return counts


def aggregate_responses(
    df: pd.DataFrame,
    group_col: str,
    spec: AggregationSpec,
    *,
    assume_filtered: bool = False,
) -> pd.Series:
    """Share of favorable responses per group, named after the target column."""
    counts = summary_counts(df, group_col, spec, assume_filtered=assume_filtered)
    out = counts["pct"].astype(float).rename(spec.target)
    logger.debug(f"{spec.label}: {len(out)} groups from {int(counts['total'].sum())} responses")
    return out


def outer_join_summaries(
    summaries: Union[Mapping[str, pd.Series], Iterable[pd.Series]],
) -> pd.DataFrame:
    """
    Full outer join of GroupSummary series on the group key.

    A group absent from one summary keeps NaN in that column (never 0).
    Accepts {column: series} or series carrying their own names.
    """
    if isinstance(summaries, Mapping):
        items = list(summaries.items())
    else:
        items = [(s.name, s) for s in summaries]
    if not items:
        raise ValueError("Nothing to join")
    names = [n for n, _ in items]
    if len(set(names)) != len(names) or any(n is None for n in names):
        raise ValueError(f"Summary names must be unique and non-empty, got {names}")

    frames = [s.rename(n).to_frame() for n, s in items]
    table = reduce(
        lambda left, right: left.merge(right, left_index=True, right_index=True, how="outer"),
        frames,
    )
    return table.astype(float)


def aligned_pairs(table: pd.DataFrame, x: str, y: str) -> pd.DataFrame:
    # keep only groups where both measures exist
    return table[[x, y]].dropna().astype(float)


def fit_line(x, y) -> LineFit:
    """Ordinary least squares y = intercept + slope * x."""
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    if x.shape != y.shape:
        raise ValueError(f"x and y differ in length: {len(x)} vs {len(y)}")
    if len(x) < 2:
        raise ValueError("Need at least two points to fit a line")
    if np.var(x) == 0:
        raise ValueError("All x values are equal; slope is undefined")
    model = LinearRegression().fit(x.reshape(-1, 1), y)
    return LineFit(intercept=float(model.intercept_), slope=float(model.coef_[0]), n=len(x))


def pearson_r(x, y) -> float:
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if len(x) < 2 or x.var() == 0 or y.var() == 0:
        return np.nan
    return float(np.corrcoef(x, y)[0, 1])
