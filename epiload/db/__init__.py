# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Database utilities for the loader's DuckDB backend."""

from .duckdb_io import (
    LIVE_TABLES,
    ReplaceResult,
    drop_scratch_tables,
    get_db,
    init_schema,
    replace_table,
    table_exists,
    table_row_count,
)
from .guard import check_regression

__all__ = [
    "LIVE_TABLES",
    "ReplaceResult",
    "check_regression",
    "drop_scratch_tables",
    "get_db",
    "init_schema",
    "replace_table",
    "table_exists",
    "table_row_count",
]
