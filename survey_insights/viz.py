from __future__ import annotations
import os
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.ticker import PercentFormatter

from .metrics import LineFit


def _ensure_dir(p: Optional[str]) -> None:
    if p:
        d = os.path.dirname(p)
        if d and not os.path.exists(d):
            os.makedirs(d, exist_ok=True)


def _finish(fig: plt.Figure, out_path: Optional[str], show: bool) -> Optional[str]:
    fig.tight_layout()
    saved = None
    if out_path:
        _ensure_dir(out_path)
        fig.savefig(out_path, dpi=150, bbox_inches="tight")
        saved = out_path
    if show:
        plt.show()
    else:
        plt.close(fig)
    return saved


def plot_satisfaction_bars(
    summary: pd.Series,
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    title: str = "Satisfied with government",
    xlabel: str = "Share of respondents",
) -> Tuple[plt.Figure, plt.Axes, Optional[str]]:
    """
    Horizontal bars, one per group, sorted so the highest share is on top.
    summary: GroupSummary series (index = group key, values in [0, 1])
    """
    s = summary.dropna().sort_values()
    if s.empty:
        raise ValueError("Nothing to plot: summary is empty")

    fig, ax = plt.subplots(figsize=(8, 0.45 * len(s) + 1.5))
    bars = ax.barh(s.index.astype(str), s.to_numpy())
    for b, v in zip(bars, s.to_numpy()):
        ax.text(v + 0.01, b.get_y() + b.get_height() / 2, f"{v:.0%}", va="center", fontsize=9)
    ax.set_xlim(0, 1.08)
    ax.xaxis.set_major_formatter(PercentFormatter(1.0))
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    return fig, ax, _finish(fig, out_path, show)


def plot_preference_bars(
    table: pd.DataFrame,
    columns: Sequence[str],
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    labels: Optional[Sequence[str]] = None,
    title: str = "Preferred political system",
    sort_by: Optional[str] = None,
) -> Tuple[plt.Figure, plt.Axes, Optional[str]]:
    """
    Grouped bars per group for several summary columns (e.g. democracy vs
    strong leader). A missing value leaves a gap; it is not drawn as 0.
    """
    miss = set(columns) - set(table.columns)
    if miss:
        raise ValueError(f"'table' is missing columns: {miss}")
    if table.empty:
        raise ValueError("Nothing to plot: table is empty")
    labels = list(labels) if labels else list(columns)
    t = table.sort_values(sort_by or columns[0], ascending=False, na_position="last")

    x = np.arange(len(t))
    width = 0.8 / len(columns)
    fig, ax = plt.subplots(figsize=(max(6, 0.9 * len(t) + 2), 4.5))
    for i, (col, lab) in enumerate(zip(columns, labels)):
        vals = t[col].to_numpy(dtype=float)
        present = ~np.isnan(vals)
        ax.bar(x[present] + (i - (len(columns) - 1) / 2) * width, vals[present], width, label=lab)
    ax.set_xticks(x)
    ax.set_xticklabels(t.index.astype(str), rotation=45, ha="right")
    ax.set_ylim(0, 1)
    ax.yaxis.set_major_formatter(PercentFormatter(1.0))
    ax.set_ylabel("Share answering good / very good")
    ax.set_title(title)
    ax.legend(fontsize=9)
    return fig, ax, _finish(fig, out_path, show)


def plot_scatter_with_fit(
    table: pd.DataFrame,
    x: str,
    y: str,
    fit: Optional[LineFit] = None,
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    xlabel: Optional[str] = None,
    ylabel: Optional[str] = None,
    title: Optional[str] = None,
) -> Tuple[plt.Figure, plt.Axes, Optional[str]]:
    """Scatter of groups with both measures, labelled, plus the fitted line."""
    pts = table[[x, y]].dropna()
    if pts.empty:
        raise ValueError(f"No groups have both '{x}' and '{y}'")

    fig, ax = plt.subplots(figsize=(7, 5))
    ax.scatter(pts[x], pts[y], s=40, zorder=3)
    for key, row in pts.iterrows():
        ax.annotate(str(key), (row[x], row[y]), textcoords="offset points", xytext=(4, 4), fontsize=8)

    if fit is not None:
        xs = np.linspace(pts[x].min(), pts[x].max(), 50)
        ax.plot(xs, fit.predict(xs), linestyle="--", linewidth=1.5,
                label=f"y = {fit.intercept:.2f} + {fit.slope:.2f}x (n={fit.n})")
        ax.legend(fontsize=9)

    ax.xaxis.set_major_formatter(PercentFormatter(1.0))
    ax.yaxis.set_major_formatter(PercentFormatter(1.0))
    ax.set_xlabel(xlabel or x)
    ax.set_ylabel(ylabel or y)
    ax.set_title(title or f"{ylabel or y} vs {xlabel or x}")
    return fig, ax, _finish(fig, out_path, show)
