# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Normaliser protocol: the contract every source format must satisfy."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import pandas as pd

# Column order is significant: it is the table column order and the tuple
# order of the debug dumps.
CASE_COLUMNS: list[str] = [
    "region_id",
    "subregion_id",
    "date",
    "confirmed",
    "recovered",
    "deaths",
]

INTERVENTION_COLUMNS: list[str] = [
    "region_id",
    "subregion_id",
    "policy",
    "notes",
    "source",
    "issue_date",
    "start_date",
    "ease_date",
    "expiration_date",
    "end_date",
]

COUNT_COLUMNS: list[str] = ["confirmed", "recovered", "deaths"]

DATASET_COLUMNS: dict[str, list[str]] = {
    "cases": CASE_COLUMNS,
    "interventions": INTERVENTION_COLUMNS,
}


@runtime_checkable
class Normalizer(Protocol):
    """Protocol that every source normaliser must satisfy.

    Normalisers are pure: they receive the raw text of one source and return
    a DataFrame with exactly the canonical columns of their dataset. Rows
    that cannot be normalised are dropped, never raised.
    """

    name: str
    dataset: str

    def normalize(self, raw: str) -> pd.DataFrame:
        """Return canonical rows for ``raw``.

        Returns an empty DataFrame with the correct columns when the payload
        holds no usable rows.
        """
        ...
