from __future__ import annotations
import logging
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def load_survey(path: str, column_map: Mapping[str, str], sep: Optional[str] = None) -> pd.DataFrame:
    """
    Load a delimited survey export and keep only the mapped columns:
      column_map = {raw header: analysis name}
    (raw headers matched case-insensitively, surrounding whitespace ignored)
    """
    # sep=None lets pandas sniff comma / tab / semicolon exports
    df = pd.read_csv(path, sep=sep, engine="python" if sep is None else "c")
    cols = {str(c).strip().lower(): c for c in df.columns}
    missing = [raw for raw in column_map if raw.strip().lower() not in cols]
    if missing:
        raise ValueError(f"Survey file is missing required columns: {missing}. Found: {list(df.columns)}")

    out = df[[cols[raw.strip().lower()] for raw in column_map]].copy()
    out.columns = list(column_map.values())
    logger.info(f"Loaded {len(out)} responses from {path}")
    return out


def normalize_missing(
    df: pd.DataFrame,
    columns: Iterable[str],
    missing_codes: Iterable = (),
    missing_labels: Iterable[str] = (),
) -> pd.DataFrame:
    """
    Turn survey non-answers into NA on a copy of df:
      - strings are stripped; blanks and missing_labels become NA
      - numeric missing_codes (don't know / refused) become NA
      - a column left with only numbers is converted to a numeric dtype
    """
    out = df.copy()
    codes = set(missing_codes)
    labels = {str(s).strip().lower() for s in missing_labels} | {""}

    def _clean(v):
        if isinstance(v, str):
            s = v.strip()
            return np.nan if s.lower() in labels else s
        return v

    for c in columns:
        col = out[c]
        if not pd.api.types.is_numeric_dtype(col):
            col = col.map(_clean)
            try:
                col = pd.to_numeric(col)
            except (ValueError, TypeError):
                pass
        if codes and pd.api.types.is_numeric_dtype(col):
            col = col.mask(col.isin(codes))
        elif codes:
            hit = np.array([not isinstance(v, str) and v in codes for v in col], dtype=bool)
            col = col.mask(hit)
        out[c] = col
    return out


def drop_missing(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """Drop exactly the rows with NA in any of the given columns."""
    columns = list(columns)
    keep = df[columns].notna().all(axis=1)
    dropped = int((~keep).sum())
    if dropped:
        logger.info(f"Excluded {dropped} of {len(df)} rows missing {columns}")
    return df.loc[keep].copy()


def prepare_survey(
    path: str,
    column_map: Mapping[str, str],
    missing_codes: Iterable = (),
    missing_labels: Iterable[str] = (),
    group_col: Optional[str] = None,
) -> pd.DataFrame:
    """Load + normalize; the group column only loses blank / non-answer labels."""
    df = load_survey(path, column_map)
    answer_cols = [c for c in df.columns if c != group_col]
    df = normalize_missing(df, answer_cols, missing_codes, missing_labels)
    if group_col is not None:
        df = normalize_missing(df, [group_col], (), missing_labels)
    return df
