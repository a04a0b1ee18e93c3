"""Logging setup and frame summaries for loader log lines."""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Iterable, Optional

import pandas as pd

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
# Per-request chatter from the HTTP stack drowns the fetch.* events.
_NOISY_LOGGERS = ("urllib3", "requests")


def _level_from(value: str | int | None) -> int:
    if isinstance(value, int):
        return value
    name = (value or os.getenv("EPILOAD_LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _stream_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    return handler


@lru_cache(maxsize=None)
def get_logger(name: str) -> logging.Logger:
    """Return a self-contained logger for ``name``.

    The logger gets its own stream handler and does not propagate, so the
    pipeline summary lines print once even when the root logger is set up.
    """

    logger = logging.getLogger(name)
    logger.setLevel(_level_from(None))
    if not logger.handlers:
        logger.addHandler(_stream_handler())
    logger.propagate = False
    return logger


def configure_root_logger(*, level: str | int | None = None) -> None:
    """Attach the shared formatter to the root logger and set its level."""

    resolved = _level_from(level)
    root = logging.getLogger()
    root.setLevel(resolved)
    if not root.handlers:
        root.addHandler(_stream_handler())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))


def dict_counts(values: Iterable | None, *, limit: Optional[int] = None) -> dict[str, int]:
    """Count values for a log line, largest first.

    With ``limit`` the tail is folded into a single ``"<other>"`` bucket.
    """

    if values is None:
        return {}
    series = values if isinstance(values, pd.Series) else pd.Series(list(values), dtype=object)
    if series.empty:
        return {}
    counts = series.astype(object).where(series.notna(), "<null>").astype(str).value_counts()
    if limit is not None and len(counts) > limit:
        head = counts.iloc[:limit]
        out = {str(key): int(count) for key, count in head.items()}
        out["<other>"] = int(counts.iloc[limit:].sum())
        return out
    return {str(key): int(count) for key, count in counts.items()}


def df_schema(frame: pd.DataFrame | None) -> dict[str, object]:
    """Columns, dtypes, row count and per-column null counts of ``frame``."""

    if frame is None:
        return {"rows": 0, "columns": [], "dtypes": {}, "nulls": {}}
    nulls = frame.isna().sum()
    return {
        "rows": int(len(frame)),
        "columns": [str(column) for column in frame.columns],
        "dtypes": {str(column): str(dtype) for column, dtype in frame.dtypes.items()},
        "nulls": {str(column): int(count) for column, count in nulls.items() if count},
    }
