# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Run the full load: fetch, normalise, assemble, then replace each table.

Fetching is all-or-nothing. Once every payload is in hand the case and
intervention datasets are handled independently: a failure in one is logged
and recorded while the other still runs.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from epiload.common.errors import DatasetError, FetchError
from epiload.common.logs import df_schema, get_logger
from epiload.connectors import discover_normalizers
from epiload.connectors.validate import empty_frame
from epiload.db import duckdb_io
from epiload.diag import diag_logger, log_json
from epiload.ingestion._exit_policy import EXIT_FETCH_FAILED, compute_exit_code
from epiload.ingestion.config import DATASETS, EpiloadConfig
from epiload.ingestion.fetch import fetch_all

from .assemble import assemble_cases, assemble_interventions, write_debug_files

LOGGER = get_logger(__name__)
DIAG_LOGGER = diag_logger(f"{__name__}.diag")

ASSEMBLERS: Dict[str, Callable[[List[pd.DataFrame]], pd.DataFrame]] = {
    "cases": assemble_cases,
    "interventions": assemble_interventions,
}


def _selected(datasets: Optional[Sequence[str]]) -> List[str]:
    if not datasets:
        return list(DATASETS)
    unknown = [name for name in datasets if name not in DATASETS]
    if unknown:
        raise ValueError(f"unknown dataset(s): {unknown}")
    return [name for name in DATASETS if name in datasets]


def build_datasets(
    config: EpiloadConfig,
    payloads: Dict[str, str],
    datasets: Sequence[str],
) -> Dict[str, object]:
    """Normalise fetched payloads and assemble each dataset.

    Values are DataFrames, or the :class:`DatasetError` that stopped the
    assembly of that dataset.
    """

    frames: Dict[str, List[pd.DataFrame]] = {name: [] for name in datasets}
    for source, normalizer in discover_normalizers(config, datasets):
        frame = normalizer.normalize(payloads[source.id])
        log_json(DIAG_LOGGER, "normalized", source=source.id, **df_schema(frame))
        frames[source.dataset].append(frame)

    built: Dict[str, object] = {}
    for name in datasets:
        try:
            built[name] = ASSEMBLERS[name](frames[name])
        except DatasetError as exc:
            LOGGER.error("pipeline.assemble_failed | dataset=%s | error=%s", name, exc)
            built[name] = exc
    return built


def _frame_or_empty(built: Dict[str, object], name: str) -> pd.DataFrame:
    value = built.get(name)
    return value if isinstance(value, pd.DataFrame) else empty_frame(name)


def run_pipeline(
    config: EpiloadConfig,
    *,
    cache_dir: Optional[str] = None,
    force: bool = False,
    db_url: Optional[str] = None,
    debug_dir: Optional[str] = None,
    datasets: Optional[Sequence[str]] = None,
    session=None,
) -> int:
    """Execute one load and return the process exit code."""

    selected = _selected(datasets)
    cache_dir = cache_dir if cache_dir is not None else config.cache_dir
    db_url = db_url or config.db_url
    urls = {
        source.id: source.url for source in config.sources if source.dataset in selected
    }
    LOGGER.info(
        "pipeline.start | datasets=%s | sources=%d | cache_dir=%s | force=%s",
        ",".join(selected),
        len(urls),
        cache_dir or "-",
        force,
    )

    try:
        payloads = fetch_all(urls, cache_dir, http_cfg=config.http, session=session)
    except FetchError as exc:
        LOGGER.error(
            "pipeline.fetch_failed | url=%s | status=%s | error=%s", exc.url, exc.status, exc
        )
        return EXIT_FETCH_FAILED

    built = build_datasets(config, payloads, selected)

    if debug_dir:
        try:
            write_debug_files(
                _frame_or_empty(built, "cases"),
                _frame_or_empty(built, "interventions"),
                debug_dir,
            )
        except OSError as exc:
            LOGGER.error("pipeline.debug_write_failed | dir=%s | error=%s", debug_dir, exc)

    results: List[dict] = []
    conn = duckdb_io.get_db(db_url)
    try:
        duckdb_io.init_schema(conn)
        for name in selected:
            outcome = built[name]
            if isinstance(outcome, DatasetError):
                results.append({"dataset": name, "status": "error", "reason": str(outcome)})
                continue
            try:
                replaced = duckdb_io.replace_table(
                    conn,
                    name,
                    outcome,
                    force=force,
                    threshold=config.regression_threshold,
                )
            except DatasetError as exc:
                LOGGER.error(
                    "pipeline.dataset_failed | dataset=%s | kind=%s | error=%s",
                    name,
                    type(exc).__name__,
                    exc,
                )
                results.append({"dataset": name, "status": "error", "reason": str(exc)})
                continue
            LOGGER.info("pipeline.dataset_ok | %s", replaced.to_dict())
            results.append({"dataset": name, "status": "ok", "reason": None})
    finally:
        conn.close()

    code = compute_exit_code(results)
    LOGGER.info("pipeline.done | exit_code=%d | results=%s", code, results)
    return code


__all__ = ["build_datasets", "run_pipeline"]
