# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Schema validation and row-level coercion for canonical normaliser output."""

from __future__ import annotations

import logging
from typing import Sequence

import pandas as pd

from .protocol import COUNT_COLUMNS, DATASET_COLUMNS

LOG = logging.getLogger(__name__)


def empty_frame(dataset: str) -> pd.DataFrame:
    """Return an empty DataFrame with the canonical column set of ``dataset``."""
    return pd.DataFrame(columns=DATASET_COLUMNS[dataset])


def validate_canonical(df: pd.DataFrame, dataset: str, *, source: str = "unknown") -> pd.DataFrame:
    """Assert that *df* conforms to the canonical schema of *dataset*.

    Raises ``ValueError`` with a clear message on any violation.
    Returns *df* unchanged (for chaining).
    """
    columns = DATASET_COLUMNS[dataset]
    if list(df.columns) != columns:
        missing = [c for c in columns if c not in df.columns]
        extra = [c for c in df.columns if c not in columns]
        if missing:
            raise ValueError(f"[{source}] {dataset} frame missing columns: {missing}")
        if extra:
            raise ValueError(f"[{source}] {dataset} frame has unexpected columns: {extra}")
        raise ValueError(f"[{source}] {dataset} frame columns out of order: {list(df.columns)}")

    if df.empty:
        return df

    if df["region_id"].isna().any():
        raise ValueError(f"[{source}] rows without region_id")

    if dataset == "cases":
        for column in COUNT_COLUMNS:
            if (pd.to_numeric(df[column], errors="coerce").fillna(-1) < 0).any():
                raise ValueError(f"[{source}] '{column}' must be a non-negative integer")
        keys = df[["region_id", "subregion_id", "date"]].fillna("")
        if keys.duplicated().any():
            raise ValueError(f"[{source}] duplicate (region_id, subregion_id, date) rows")
    else:
        if df["start_date"].isna().any():
            raise ValueError(f"[{source}] rows without start_date")

    return df


def coerce_counts(
    frame: pd.DataFrame, columns: Sequence[str], *, allow_negative: bool = False
) -> tuple[pd.DataFrame, pd.Series]:
    """Coerce ``columns`` to numbers, keeping nulls as ``NaN``.

    Returns the coerced frame and a mask of rows holding a value that is
    present but not a usable count (non-numeric, fractional, or negative
    unless ``allow_negative``).
    """
    work = frame.copy()
    bad = pd.Series(False, index=work.index)
    for column in columns:
        if column not in work.columns:
            work[column] = float("nan")
            continue
        raw = work[column]
        present = raw.notna() & raw.astype(str).str.strip().ne("")
        numeric = pd.to_numeric(raw, errors="coerce")
        bad |= present & numeric.isna()
        bad |= numeric.notna() & (numeric % 1 != 0)
        if not allow_negative:
            bad |= numeric < 0
        work[column] = numeric
    return work, bad


def drop_missing_start(frame: pd.DataFrame, *, source: str = "unknown") -> pd.DataFrame:
    """Drop intervention rows that have no ``start_date``."""
    if frame.empty:
        return frame
    mask = frame["start_date"].isna() | frame["start_date"].astype(str).str.strip().eq("")
    dropped = int(mask.sum())
    if dropped:
        LOG.warning("[%s] dropped %d intervention rows without start_date", source, dropped)
    return frame.loc[~mask].reset_index(drop=True)


def finalize(frame: pd.DataFrame, dataset: str) -> pd.DataFrame:
    """Order columns canonically and replace missing values with ``None``."""
    columns = DATASET_COLUMNS[dataset]
    out = frame.reindex(columns=columns).reset_index(drop=True)
    if dataset == "cases":
        out = out.astype({c: "int64" for c in COUNT_COLUMNS})
        out["subregion_id"] = out["subregion_id"].astype(object).where(
            out["subregion_id"].notna(), None
        )
        return out
    return out.astype(object).where(out.notna(), None)
