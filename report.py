"""
Country-level summary of the survey: government satisfaction, preference for
democracy vs. a strong leader, and how satisfaction relates to support for
democracy.

Usage (from project root):
    python report.py
    python report.py --data data/survey.csv --out output
    python report.py --combined-filter     # one filter across all questions
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Dict, Optional

import pandas as pd

from survey_insights import config
from survey_insights.data_prep import drop_missing, prepare_survey
from survey_insights.metrics import (
    aggregate_responses,
    aligned_pairs,
    fit_line,
    outer_join_summaries,
    pearson_r,
)
from survey_insights.viz import (
    plot_preference_bars,
    plot_satisfaction_bars,
    plot_scatter_with_fit,
)

logger = logging.getLogger("survey_insights.report")


def build_summaries(df: pd.DataFrame, combined_filter: bool = False) -> pd.DataFrame:
    """One column per question, one row per country (NaN where a country has no answers)."""
    group = config.GROUP_COLUMN
    if combined_filter:
        cols = [group] + [spec.target for spec in config.QUESTIONS.values()]
        df = drop_missing(df, cols)
        summaries = {key: aggregate_responses(df, group, spec, assume_filtered=True)
                     for key, spec in config.QUESTIONS.items()}
    else:
        summaries = {key: aggregate_responses(df, group, spec)
                     for key, spec in config.QUESTIONS.items()}
    return outer_join_summaries(summaries)


def run(data_path: str, out_dir: str, combined_filter: bool = False, show: bool = False) -> Dict[str, Optional[str]]:
    df = prepare_survey(
        data_path,
        config.COLUMN_MAP,
        missing_codes=config.MISSING_CODES,
        missing_labels=config.MISSING_LABELS,
        group_col=config.GROUP_COLUMN,
    )
    table = build_summaries(df, combined_filter=combined_filter)
    q = config.QUESTIONS

    logger.info("=" * 70)
    logger.info("FAVORABLE SHARE BY COUNTRY")
    logger.info("=" * 70)
    for country, row in table.sort_index().iterrows():
        cells = ", ".join(
            f"{q[c].label}={row[c]:.1%}" if pd.notna(row[c]) else f"{q[c].label}=n/a"
            for c in table.columns
        )
        logger.info(f"  {country}: {cells}")

    def _out(key: str) -> str:
        return os.path.join(out_dir, config.DATA_PATHS[key])

    saved: Dict[str, Optional[str]] = {}
    charts = config.CHART_QUESTIONS

    sat_key = charts["satisfaction"]
    sat = table[sat_key].dropna()
    if sat.empty:
        logger.warning(f"No country has a '{sat_key}' answer; skipping satisfaction chart")
    else:
        rule = q[sat_key].rule
        _, _, saved["satisfaction_chart"] = plot_satisfaction_bars(
            sat, _out("satisfaction_chart"), show,
            title=f"{q[sat_key].label} ({rule.describe()})",
        )

    pref_keys = list(charts["preferences"])
    if table[pref_keys].dropna(how="all").empty:
        logger.warning(f"No country has any of {pref_keys}; skipping preference chart")
    else:
        _, _, saved["preference_chart"] = plot_preference_bars(
            table, pref_keys, _out("preference_chart"), show,
            labels=[q[k].label for k in pref_keys],
        )

    x_key, y_key = charts["scatter"]
    pairs = aligned_pairs(table, x_key, y_key)
    fit = None
    if len(pairs) >= 2:
        try:
            fit = fit_line(pairs[x_key], pairs[y_key])
            r = pearson_r(pairs[x_key], pairs[y_key])
            logger.info(f"OLS fit over {fit.n} countries: intercept={fit.intercept:.3f}, "
                        f"slope={fit.slope:.3f}, r={r:.3f}")
        except ValueError as e:
            logger.warning(f"Skipping fitted line: {e}")
    else:
        logger.warning(f"Only {len(pairs)} countries have both measures; no fitted line")

    if not pairs.empty:
        _, _, saved["scatter_chart"] = plot_scatter_with_fit(
            table, x_key, y_key, fit, _out("scatter_chart"), show,
            xlabel=q[x_key].label, ylabel=q[y_key].label,
        )

    csv_path = _out("summary_csv")
    os.makedirs(out_dir, exist_ok=True)
    table.rename_axis(config.GROUP_COLUMN).to_csv(csv_path)
    saved["summary_csv"] = csv_path
    logger.info(f"[OK] Saved summary table: {csv_path}")
    return saved


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--data", default=config.DATA_PATHS["raw_survey"], help="survey CSV export")
    parser.add_argument("--out", default=config.DATA_PATHS["output_dir"], help="directory for charts + summary CSV")
    parser.add_argument("--combined-filter", action="store_true", default=config.COMBINED_FILTER,
                        help="drop respondents missing ANY question before aggregating")
    parser.add_argument("--show", action="store_true", help="open charts in a window")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    run(args.data, args.out, combined_filter=args.combined_filter, show=args.show)


if __name__ == "__main__":
    main()
