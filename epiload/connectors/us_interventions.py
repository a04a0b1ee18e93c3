# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""US state policy normaliser (one CSV row per state policy)."""

from __future__ import annotations

import io
import logging

import pandas as pd

from epiload.ingestion.config import EpiloadConfig, SourceCfg
from epiload.ingestion.utils.dates import parse_iso_dates

from .validate import empty_frame, finalize

LOG = logging.getLogger(__name__)

DATE_FORMATS = ("%Y%m%d", "%Y-%m-%d", "%m/%d/%Y")
DATE_FIELDS = ("issue_date", "start_date", "ease_date", "expiration_date", "end_date")
DEFAULT_COLUMNS = {
    "state": "state",
    "policy": "policy",
    "notes": "notes",
    "source": "source",
    "issue_date": "issue_date",
    "start_date": "start_date",
    "ease_date": "ease_date",
    "expiration_date": "expiration_date",
    "end_date": "end_date",
}
REQUIRED_FIELDS = ("state", "policy", "start_date")


def _clean_text(series: pd.Series) -> pd.Series:
    text = series.where(series.notna(), "").astype(str).str.strip()
    return text.astype(object).where(text.ne(""), None)


class UsInterventionsNormalizer:
    """Normalise state policy rows into intervention records."""

    dataset: str = "interventions"

    def __init__(self, source: SourceCfg, config: EpiloadConfig) -> None:
        self.name = source.id
        self.region_id = config.us_region_id
        self.columns = {**DEFAULT_COLUMNS, **source.columns}

    def normalize(self, raw: str) -> pd.DataFrame:
        try:
            frame = pd.read_csv(io.StringIO(raw), dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            LOG.error("[%s] payload is not CSV: %s", self.name, exc)
            return empty_frame(self.dataset)

        missing = [
            self.columns[field] for field in REQUIRED_FIELDS if self.columns[field] not in frame.columns
        ]
        if missing:
            LOG.error("[%s] CSV lacks required columns: %s", self.name, missing)
            return empty_frame(self.dataset)

        rows_in = len(frame)
        work = pd.DataFrame(index=frame.index)
        for field, header in self.columns.items():
            if header in frame.columns:
                work[field] = _clean_text(frame[header])
            else:
                work[field] = None

        work["state"] = work["state"].map(lambda value: value.upper() if value else None)
        invalid_start = pd.Series(False, index=work.index)
        for field in DATE_FIELDS:
            parsed, invalid = parse_iso_dates(work[field], DATE_FORMATS)
            work[field] = parsed
            if field == "start_date":
                invalid_start = invalid
            elif invalid.any():
                LOG.debug("[%s] %d unparsable %s values set to null", self.name, int(invalid.sum()), field)

        keep = work["state"].notna() & work["policy"].notna() & work["start_date"].notna()
        work = work.loc[keep].copy()
        work["region_id"] = self.region_id
        work["subregion_id"] = self.region_id + "-" + work["state"]

        out = finalize(work, self.dataset)
        LOG.info(
            "[%s] rows_in=%d kept=%d dropped=%d bad_start_date=%d",
            self.name,
            rows_in,
            len(out),
            rows_in - len(out),
            int(invalid_start.sum()),
        )
        return out
