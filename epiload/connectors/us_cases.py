# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""US per-state cumulative case normaliser.

The feed is a JSON array of daily per-state snapshots whose ``positive``,
``recovered`` and ``death`` totals may be null on any given day. A null is
replaced by the last non-null value seen for that state (0 before the first
one), which yields a gap-free cumulative series.
"""

from __future__ import annotations

import json
import logging

import pandas as pd

from epiload.ingestion.config import EpiloadConfig, SourceCfg
from epiload.ingestion.utils.dates import parse_iso_dates

from .protocol import COUNT_COLUMNS
from .validate import coerce_counts, empty_frame, finalize

LOG = logging.getLogger(__name__)

FIELD_MAP = {
    "positive": "confirmed",
    "recovered": "recovered",
    "death": "deaths",
}
DATE_FORMATS = ("%Y%m%d", "%Y-%m-%d")


class UsCasesNormalizer:
    """Normalise the US states daily feed into case records."""

    dataset: str = "cases"

    def __init__(self, source: SourceCfg, config: EpiloadConfig) -> None:
        self.name = source.id
        self.region_id = config.us_region_id

    def normalize(self, raw: str) -> pd.DataFrame:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            LOG.error("[%s] payload is not JSON: %s", self.name, exc)
            return empty_frame(self.dataset)
        if not isinstance(payload, list):
            LOG.error("[%s] expected a JSON array, got %s", self.name, type(payload).__name__)
            return empty_frame(self.dataset)

        records = [row for row in payload if isinstance(row, dict)]
        frame = pd.DataFrame.from_records(records)
        if frame.empty or "state" not in frame.columns or "date" not in frame.columns:
            LOG.info("[%s] no usable rows", self.name)
            return empty_frame(self.dataset)

        rows_in = len(payload)
        frame = frame.rename(columns=FIELD_MAP)
        frame["state"] = frame["state"].where(frame["state"].notna(), "").astype(str).str.strip().str.upper()
        frame["date"], bad_date = parse_iso_dates(frame["date"], DATE_FORMATS)
        frame, bad_count = coerce_counts(frame, COUNT_COLUMNS)

        keep = frame["state"].ne("") & frame["date"].notna() & ~bad_date & ~bad_count
        frame = frame.loc[keep, ["state", "date", *COUNT_COLUMNS]].copy()

        # Date order first; the carry-forward below walks each state forwards.
        frame = frame.sort_values("date", kind="stable")
        frame = frame.drop_duplicates(subset=["state", "date"], keep="last")
        frame[COUNT_COLUMNS] = frame.groupby("state", sort=False)[COUNT_COLUMNS].ffill().fillna(0)

        frame["region_id"] = self.region_id
        frame["subregion_id"] = self.region_id + "-" + frame["state"]
        out = finalize(frame, self.dataset)
        LOG.info(
            "[%s] rows_in=%d kept=%d dropped=%d states=%d",
            self.name,
            rows_in,
            len(out),
            rows_in - len(out),
            frame["state"].nunique(),
        )
        return out
