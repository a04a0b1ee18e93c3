# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Dataset assembly and optional debug dumps."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from epiload.common.errors import DatasetError
from epiload.common.logs import dict_counts
from epiload.connectors.protocol import CASE_COLUMNS, INTERVENTION_COLUMNS
from epiload.connectors.validate import drop_missing_start, empty_frame, validate_canonical

LOGGER = logging.getLogger(__name__)

CASE_DEBUG_FILE = "case-data.json"
INTERVENTION_DEBUG_FILE = "intervention-data.json"


def _concat(frames: Iterable[pd.DataFrame], dataset: str) -> pd.DataFrame:
    parts = [frame for frame in frames if frame is not None and not frame.empty]
    if not parts:
        return empty_frame(dataset)
    return pd.concat(parts, ignore_index=True)


def _validate(frame: pd.DataFrame, dataset: str) -> None:
    try:
        validate_canonical(frame, dataset, source="assemble")
    except ValueError as exc:
        raise DatasetError(str(exc)) from exc


def assemble_cases(frames: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """Concatenate case frames in the order given."""

    out = _concat(frames, "cases")
    _validate(out, "cases")
    LOGGER.info(
        "assemble.cases | rows=%d | regions=%s",
        len(out),
        out["region_id"].nunique(),
    )
    return out


def assemble_interventions(frames: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """Concatenate intervention frames, dropping any row without ``start_date``."""

    out = drop_missing_start(_concat(frames, "interventions"), source="assemble")
    _validate(out, "interventions")
    LOGGER.info(
        "assemble.interventions | rows=%d | policies=%s",
        len(out),
        dict_counts(out["policy"], limit=8),
    )
    return out


def _as_tuples(frame: pd.DataFrame, columns: list[str]) -> list[list[object]]:
    rows = []
    for record in frame[columns].itertuples(index=False, name=None):
        row = []
        for value in record:
            if value is None or (not isinstance(value, str) and pd.isna(value)):
                row.append(None)
            elif hasattr(value, "item"):
                row.append(value.item())
            else:
                row.append(value)
        rows.append(row)
    return rows


def write_debug_files(
    cases: pd.DataFrame, interventions: pd.DataFrame, out_dir: Path | str
) -> tuple[Path, Path]:
    """Write both datasets as JSON arrays of canonical-order tuples."""

    target = Path(out_dir)
    target.mkdir(parents=True, exist_ok=True)
    case_path = target / CASE_DEBUG_FILE
    intervention_path = target / INTERVENTION_DEBUG_FILE
    case_path.write_text(json.dumps(_as_tuples(cases, CASE_COLUMNS)), encoding="utf-8")
    intervention_path.write_text(
        json.dumps(_as_tuples(interventions, INTERVENTION_COLUMNS)), encoding="utf-8"
    )
    LOGGER.info("assemble.debug_written | cases=%s | interventions=%s", case_path, intervention_path)
    return case_path, intervention_path


__all__ = [
    "CASE_DEBUG_FILE",
    "INTERVENTION_DEBUG_FILE",
    "assemble_cases",
    "assemble_interventions",
    "write_debug_files",
]
