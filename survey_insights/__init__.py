"""Per-country summaries of public-opinion survey responses."""

from .metrics import (
    AggregationSpec,
    LineFit,
    RangeRule,
    RuleMismatchError,
    SetRule,
    aggregate_responses,
    fit_line,
    outer_join_summaries,
)

__all__ = [
    "AggregationSpec",
    "LineFit",
    "RangeRule",
    "RuleMismatchError",
    "SetRule",
    "aggregate_responses",
    "fit_line",
    "outer_join_summaries",
]
