# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""International policy-tracker normaliser.

Each source file covers one policy type and holds one row per country with a
severity code per day (columns such as ``01Jan2020``). Each configured
variant names the canonical policy and the severity threshold; the daily
series is collapsed into start/end episodes.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import List, Optional, Tuple

import pandas as pd

from epiload.common.errors import NormalizationError
from epiload.ingestion.config import EpiloadConfig, SourceCfg
from epiload.ingestion.episodes import collapse_episodes
from epiload.ingestion.utils.iso_normalize import to_iso2

from .validate import empty_frame, finalize

LOG = logging.getLogger(__name__)

HEADER_DATE_FORMAT = "%d%b%Y"
CODE_COLUMNS = ("country_code", "CountryCode", "iso3")


def _header_date(header: object) -> Optional[str]:
    try:
        return datetime.strptime(str(header).strip(), HEADER_DATE_FORMAT).date().isoformat()
    except ValueError:
        return None


def _date_columns(columns: pd.Index) -> List[Tuple[str, str]]:
    dated = []
    for column in columns:
        iso = _header_date(column)
        if iso is not None:
            dated.append((iso, column))
    return sorted(dated)


class IntlInterventionsNormalizer:
    """Normalise one per-policy severity time-series file into episodes."""

    dataset: str = "interventions"

    def __init__(self, source: SourceCfg, config: EpiloadConfig) -> None:
        if not source.policy or source.threshold is None:
            raise ValueError(f"source {source.id!r} needs 'policy' and 'threshold'")
        self.name = source.id
        self.policy = source.policy
        self.threshold = float(source.threshold)
        self.source_label = source.source_label
        self.remap = dict(config.country_code_remap)

    def _region_id(self, code: object) -> str:
        region_id = to_iso2(code, self.remap)
        if region_id is None:
            raise NormalizationError(f"unknown country code {code!r}")
        return region_id

    def normalize(self, raw: str) -> pd.DataFrame:
        try:
            frame = pd.read_csv(io.StringIO(raw))
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            LOG.error("[%s] payload is not CSV: %s", self.name, exc)
            return empty_frame(self.dataset)

        code_column = next((c for c in CODE_COLUMNS if c in frame.columns), None)
        dated = _date_columns(frame.columns)
        if code_column is None or not dated:
            LOG.error("[%s] CSV lacks a country code column or daily columns", self.name)
            return empty_frame(self.dataset)

        records = []
        unmapped: set[str] = set()
        for _, row in frame.iterrows():
            try:
                region_id = self._region_id(row[code_column])
            except NormalizationError:
                unmapped.add(str(row[code_column]))
                continue
            series = [(iso, pd.to_numeric(row[column], errors="coerce")) for iso, column in dated]
            for episode in collapse_episodes(series, self.threshold):
                records.append(
                    {
                        "region_id": region_id,
                        "subregion_id": None,
                        "policy": self.policy,
                        "notes": None,
                        "source": self.source_label,
                        "issue_date": None,
                        "start_date": episode.start,
                        "ease_date": None,
                        "expiration_date": None,
                        "end_date": episode.end,
                    }
                )

        if unmapped:
            LOG.debug("[%s] dropped rows with unknown country codes: %s", self.name, sorted(unmapped))
        if not records:
            LOG.info("[%s] rows_in=%d episodes=0", self.name, len(frame))
            return empty_frame(self.dataset)

        out = finalize(pd.DataFrame.from_records(records), self.dataset)
        LOG.info(
            "[%s] rows_in=%d episodes=%d countries=%d threshold=%s",
            self.name,
            len(frame),
            len(out),
            out["region_id"].nunique(),
            self.threshold,
        )
        return out
