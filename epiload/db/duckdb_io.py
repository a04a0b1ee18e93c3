"""Helpers for connecting to and replacing tables in the DuckDB backend.

Live tables are never modified in place. A run loads the full new generation
into ``<table>_new`` inside a transaction, checks it against the live row
count, then renames ``<table>`` to ``<table>_old`` and ``<table>_new`` to
``<table>`` before committing. Scratch tables are dropped on every exit path.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

import duckdb
import pandas as pd

from epiload.common.errors import EmptyDatasetError, RegressionError, ReplaceError
from epiload.db.conn_shared import open_duckdb_conn
from epiload.db.guard import DEFAULT_THRESHOLD, check_regression, fractional_drop
from epiload.diag import diag_logger, dump_table_meta, log_json
from epiload.ingestion.config import DEFAULT_DB_URL

ROOT = Path(__file__).resolve().parents[1]
SCHEMA_PATH = ROOT / "db" / "schema.sql"

LIVE_TABLES = ("cases", "interventions")
SHADOW_SUFFIX = "_new"
OLD_SUFFIX = "_old"

LOGGER = logging.getLogger(__name__)

DIAG_LOGGER = diag_logger(f"{__name__}.diag")

Guard = Callable[..., None]


@dataclass
class ReplaceResult:
    """Structured counts returned after a table replacement."""

    table: str
    rows_before: int
    rows_after: int
    forced: bool = False

    def to_dict(self) -> dict[str, int | bool | str]:
        return {
            "table": self.table,
            "rows_before": int(self.rows_before),
            "rows_after": int(self.rows_after),
            "forced": bool(self.forced),
        }


def _quote_identifier(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def get_db(path_or_url: str | None = None) -> "duckdb.DuckDBPyConnection":
    """Return a DuckDB connection for the given path or URL."""

    conn, _ = open_duckdb_conn(path_or_url or DEFAULT_DB_URL)
    conn.execute("PRAGMA enable_progress_bar=false")
    return conn


def init_schema(
    conn: "duckdb.DuckDBPyConnection", schema_sql_path: Path | None = None
) -> None:
    """Create the live tables if they do not already exist."""

    schema_path = schema_sql_path or SCHEMA_PATH
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema SQL not found at {schema_path}")

    existing_tables = {row[0] for row in conn.execute("PRAGMA show_tables").fetchall()}
    LOGGER.info(
        "duckdb.schema.inspect | existing_tables=%s",
        ", ".join(sorted(existing_tables)) or "<none>",
    )
    lines = [
        line
        for line in schema_path.read_text(encoding="utf-8").splitlines()
        if not line.strip().startswith("--")
    ]
    for statement in "\n".join(lines).split(";"):
        if statement.strip():
            conn.execute(statement)


def table_exists(conn: "duckdb.DuckDBPyConnection", table: str) -> bool:
    row = conn.execute(
        "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?",
        [table],
    ).fetchone()
    return bool(row and row[0])


def table_row_count(conn: "duckdb.DuckDBPyConnection", table: str) -> int:
    return int(
        conn.execute(f"SELECT COUNT(*) FROM {_quote_identifier(table)}").fetchone()[0]
    )


def drop_scratch_tables(conn: "duckdb.DuckDBPyConnection", table: str) -> None:
    """Drop ``<table>_old`` and ``<table>_new`` if present; never raises."""

    for name in (f"{table}{OLD_SUFFIX}", f"{table}{SHADOW_SUFFIX}"):
        try:
            conn.execute(f"DROP TABLE IF EXISTS {_quote_identifier(name)}")
        except duckdb.Error:
            LOGGER.warning("replace.cleanup_failed | table=%s", name, exc_info=True)


@contextmanager
def _replace_transaction(conn: "duckdb.DuckDBPyConnection", table: str) -> Iterator[None]:
    """Run the body in one transaction; roll back on error, always clean up."""

    drop_scratch_tables(conn, table)
    conn.execute("BEGIN TRANSACTION")
    LOGGER.debug("replace.begin | table=%s", table)
    try:
        yield
        conn.execute("COMMIT")
        LOGGER.debug("replace.commit | table=%s", table)
    except BaseException:
        try:
            conn.execute("ROLLBACK")
            LOGGER.debug("replace.rollback | table=%s", table)
        except duckdb.Error:
            LOGGER.debug("replace.rollback_failed | table=%s", table, exc_info=True)
        raise
    finally:
        drop_scratch_tables(conn, table)


def _column_types(conn: "duckdb.DuckDBPyConnection", table: str) -> list[tuple[str, str]]:
    rows = conn.execute(f"PRAGMA table_info('{table}')").fetchall()
    return [(str(row[1]), str(row[2])) for row in rows]


def _create_like(conn: "duckdb.DuckDBPyConnection", source: str, target: str) -> None:
    """Create ``target`` with the columns, types and NOT NULL flags of ``source``."""

    rows = conn.execute(f"PRAGMA table_info('{source}')").fetchall()
    columns = ", ".join(
        f"{_quote_identifier(str(row[1]))} {row[2]}" + (" NOT NULL" if row[3] else "")
        for row in rows
    )
    conn.execute(f"CREATE TABLE {_quote_identifier(target)} ({columns})")


def _bulk_insert(
    conn: "duckdb.DuckDBPyConnection", table: str, frame: pd.DataFrame
) -> None:
    columns = _column_types(conn, table)
    missing = [name for name, _ in columns if name not in frame.columns]
    if missing:
        raise ReplaceError(f"{table}: dataset lacks columns {missing}")

    # Object columns go over as VARCHAR so all-null columns still cast to DATE.
    staged = frame.copy()
    for column in staged.select_dtypes(include=["object"]).columns:
        staged[column] = staged[column].astype("string")

    temp_name = f"tmp_{uuid.uuid4().hex}"
    conn.register(temp_name, staged)
    try:
        cols_csv = ", ".join(_quote_identifier(name) for name, _ in columns)
        select_csv = ", ".join(
            f"CAST({_quote_identifier(name)} AS {sql_type})" for name, sql_type in columns
        )
        insert_sql = (
            f"INSERT INTO {_quote_identifier(table)} ({cols_csv}) "
            f"SELECT {select_csv} FROM {_quote_identifier(temp_name)}"
        )
        LOGGER.debug("INSERT SQL:\n%s", insert_sql)
        conn.execute(insert_sql)
    finally:
        conn.unregister(temp_name)


def replace_table(
    conn: "duckdb.DuckDBPyConnection",
    table: str,
    frame: pd.DataFrame,
    *,
    force: bool = False,
    threshold: float = DEFAULT_THRESHOLD,
    guard: Guard = check_regression,
) -> ReplaceResult:
    """Atomically replace the contents of ``table`` with ``frame``.

    Raises :class:`EmptyDatasetError` for an empty frame (nothing is touched),
    :class:`RegressionError` when ``guard`` rejects the new row count, and
    :class:`ReplaceError` for any database failure. On every failure the live
    table keeps its previous contents.
    """

    if frame is None or frame.empty:
        raise EmptyDatasetError(f"{table}: refusing to replace live table with an empty dataset")
    if not table_exists(conn, table):
        raise ReplaceError(f"{table}: live table does not exist; run init_schema first")

    shadow = f"{table}{SHADOW_SUFFIX}"
    old = f"{table}{OLD_SUFFIX}"
    table_ident = _quote_identifier(table)
    shadow_ident = _quote_identifier(shadow)

    log_json(DIAG_LOGGER, "replace_inputs", table=table, rows=int(len(frame)), force=force)
    try:
        with _replace_transaction(conn, table):
            _create_like(conn, table, shadow)
            LOGGER.debug("replace.shadow_created | table=%s", shadow)

            _bulk_insert(conn, shadow, frame)
            rows_before = table_row_count(conn, table)
            rows_after = table_row_count(conn, shadow)
            LOGGER.info(
                "replace.loaded | table=%s | live_rows=%d | new_rows=%d",
                table,
                rows_before,
                rows_after,
            )

            guard(rows_before, rows_after, force=force, threshold=threshold, table=table)

            conn.execute(f"ALTER TABLE {table_ident} RENAME TO {_quote_identifier(old)}")
            conn.execute(f"ALTER TABLE {shadow_ident} RENAME TO {table_ident}")
    except RegressionError:
        LOGGER.error("replace.aborted | table=%s | reason=regression", table)
        raise
    except duckdb.Error as exc:
        LOGGER.error("replace.aborted | table=%s | reason=database_error | error=%s", table, exc)
        raise ReplaceError(f"{table}: {exc}") from exc

    LOGGER.info("replace.swapped | table=%s | rows=%d", table, rows_after)
    log_json(DIAG_LOGGER, "replace_done", **dump_table_meta(conn, table))
    forced = force and (
        (rows_before > 0 and rows_after == 0) or fractional_drop(rows_before, rows_after) > threshold
    )
    return ReplaceResult(table=table, rows_before=rows_before, rows_after=rows_after, forced=forced)


__all__ = [
    "LIVE_TABLES",
    "OLD_SUFFIX",
    "ReplaceResult",
    "SCHEMA_PATH",
    "SHADOW_SUFFIX",
    "drop_scratch_tables",
    "get_db",
    "init_schema",
    "replace_table",
    "table_exists",
    "table_row_count",
]
