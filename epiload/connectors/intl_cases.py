# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""International daily-delta case normaliser.

Rows carry the new cases and deaths reported on one day for one country.
They are turned into cumulative totals per country by a running sum in date
order. The US is skipped here because the US states feed owns that region.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List

import pandas as pd

from epiload.ingestion.config import EpiloadConfig, SourceCfg
from epiload.ingestion.utils.dates import parse_iso_dates
from epiload.ingestion.utils.iso_normalize import remap_code

from .validate import coerce_counts, empty_frame, finalize

LOG = logging.getLogger(__name__)

DATE_FORMATS = ("%d/%m/%Y", "%Y-%m-%d")
DELTA_COLUMNS = ["cases", "deaths"]


def _records(payload: Any) -> List[dict]:
    if isinstance(payload, dict):
        payload = payload.get("records") or []
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, dict)]


class IntlCasesNormalizer:
    """Normalise the per-country daily delta feed into cumulative case records."""

    dataset: str = "cases"

    def __init__(self, source: SourceCfg, config: EpiloadConfig) -> None:
        self.name = source.id
        self.us_region_id = config.us_region_id
        self.remap = dict(config.country_code_remap)

    def normalize(self, raw: str) -> pd.DataFrame:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            LOG.error("[%s] payload is not JSON: %s", self.name, exc)
            return empty_frame(self.dataset)

        records = _records(payload)
        frame = pd.DataFrame.from_records(records)
        if frame.empty or "geoId" not in frame.columns or "dateRep" not in frame.columns:
            LOG.info("[%s] no usable rows", self.name)
            return empty_frame(self.dataset)

        rows_in = len(frame)
        raw_codes = frame["geoId"].map(lambda value: remap_code(value))
        us_mask = raw_codes.eq(self.us_region_id)
        frame["region_id"] = raw_codes.map(lambda code: remap_code(code, self.remap))
        us_mask |= frame["region_id"].eq(self.us_region_id)

        frame["date"], bad_date = parse_iso_dates(frame["dateRep"], DATE_FORMATS)
        frame, bad_count = coerce_counts(frame, DELTA_COLUMNS, allow_negative=True)

        keep = frame["region_id"].notna() & frame["date"].notna() & ~bad_date & ~bad_count & ~us_mask
        work = frame.loc[keep, ["region_id", "date", *DELTA_COLUMNS]].copy()
        if work.empty:
            LOG.info("[%s] rows_in=%d kept=0", self.name, rows_in)
            return empty_frame(self.dataset)
        work[DELTA_COLUMNS] = work[DELTA_COLUMNS].fillna(0)

        # One delta per country-day, then a running sum per country seeded at 0.
        work = work.groupby(["region_id", "date"], sort=False, as_index=False)[DELTA_COLUMNS].sum()
        work = work.sort_values(["date"], kind="stable")
        order = pd.unique(frame.loc[keep, "region_id"])
        work["region_id"] = pd.Categorical(work["region_id"], categories=order, ordered=True)
        work = work.sort_values(["region_id"], kind="stable")
        work["region_id"] = work["region_id"].astype(str)

        totals = work.groupby("region_id", sort=False)[DELTA_COLUMNS].cumsum().clip(lower=0)
        work["confirmed"] = totals["cases"]
        work["deaths"] = totals["deaths"]
        work["recovered"] = 0
        work["subregion_id"] = None

        out = finalize(work, self.dataset)
        LOG.info(
            "[%s] rows_in=%d kept=%d us_dropped=%d malformed=%d countries=%d",
            self.name,
            rows_in,
            len(out),
            int(us_mask.sum()),
            int((bad_date | bad_count).sum()),
            out["region_id"].nunique(),
        )
        return out
