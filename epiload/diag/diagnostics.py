# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""JSON diagnostics for fetches and table swaps, enabled with ``EPILOAD_DIAG=1``."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict

import duckdb

_MARKER = "_epiload_diag"


def diag_enabled() -> bool:
    return os.getenv("EPILOAD_DIAG", "").strip() == "1"


def diag_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger, routed to stderr at DEBUG when diagnostics are on."""

    logger = logging.getLogger(name)
    if diag_enabled() and not any(getattr(h, _MARKER, False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s | DIAG | %(name)s | %(message)s"))
        setattr(handler, _MARKER, True)
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    return logger


def log_json(logger: logging.Logger, event: str, **payload: Any) -> None:
    """Log ``event`` followed by ``payload`` as one JSON object; no-op when disabled."""

    if not diag_enabled():
        return
    logger.debug("%s %s", event, json.dumps(payload, default=str, sort_keys=True))


def dump_table_meta(conn: "duckdb.DuckDBPyConnection", table: str) -> Dict[str, Any]:
    """Describe ``table``: column names and types, and its row count if it exists."""

    meta: Dict[str, Any] = {"table": table, "exists": False, "columns": {}, "rows": None}
    try:
        columns = conn.execute(
            "SELECT column_name, data_type FROM information_schema.columns "
            "WHERE table_name = ? ORDER BY ordinal_position",
            [table],
        ).fetchall()
        meta["columns"] = {name: data_type for name, data_type in columns}
        meta["exists"] = bool(columns)
        if columns:
            meta["rows"] = int(conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0])
    except duckdb.Error as exc:  # pragma: no cover - diagnostics only
        meta["error"] = repr(exc)
    return meta


__all__ = ["diag_enabled", "diag_logger", "dump_table_meta", "log_json"]
