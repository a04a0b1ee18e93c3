# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Shadow-table replacement must leave the live table intact on every failure."""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pandas as pd
import pytest

pytest.importorskip("duckdb")

from epiload.common.errors import EmptyDatasetError, RegressionError, ReplaceError
from epiload.connectors.protocol import CASE_COLUMNS, INTERVENTION_COLUMNS
from epiload.db import duckdb_io

pytestmark = pytest.mark.duckdb


def _cases(n: int, start: int = 0) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "region_id": ["GB"] * n,
            "subregion_id": [None] * n,
            "date": [(date(2020, 1, 1) + timedelta(days=start + i)).isoformat() for i in range(n)],
            "confirmed": list(range(n)),
            "recovered": [0] * n,
            "deaths": [0] * n,
        },
        columns=CASE_COLUMNS,
    )


def _tables(conn) -> set[str]:
    return {row[0] for row in conn.execute("PRAGMA show_tables").fetchall()}


def _min_date(conn, table: str = "cases"):
    return conn.execute(f"SELECT MIN(date) FROM {table}").fetchone()[0]


@pytest.fixture
def conn(tmp_path):
    connection = duckdb_io.get_db(str(tmp_path / "replace.duckdb"))
    duckdb_io.init_schema(connection)
    yield connection
    connection.close()


def test_logger_defers_to_root_configuration():
    assert duckdb_io.LOGGER.level == logging.NOTSET
    assert duckdb_io.LOGGER.handlers == []


def test_init_schema_is_idempotent(conn):
    duckdb_io.init_schema(conn)
    assert _tables(conn) == {"cases", "interventions"}


def test_replace_swaps_in_new_generation(conn):
    first = duckdb_io.replace_table(conn, "cases", _cases(10))
    assert (first.rows_before, first.rows_after, first.forced) == (0, 10, False)

    second = duckdb_io.replace_table(conn, "cases", _cases(10, start=100))

    assert second.to_dict() == {"table": "cases", "rows_before": 10, "rows_after": 10, "forced": False}
    assert duckdb_io.table_row_count(conn, "cases") == 10
    assert _min_date(conn) == date(2020, 4, 10)
    assert _tables(conn) == {"cases", "interventions"}


def test_failure_after_shadow_population_leaves_live_table(conn):
    duckdb_io.replace_table(conn, "cases", _cases(10))
    seen = {}

    def exploding_guard(live, candidate, **kwargs):
        seen["shadow_rows"] = duckdb_io.table_row_count(conn, "cases_new")
        raise RuntimeError("injected failure")

    with pytest.raises(RuntimeError, match="injected failure"):
        duckdb_io.replace_table(conn, "cases", _cases(3, start=50), guard=exploding_guard)

    assert seen["shadow_rows"] == 3
    assert duckdb_io.table_row_count(conn, "cases") == 10
    assert _min_date(conn) == date(2020, 1, 1)
    assert _tables(conn) == {"cases", "interventions"}


def test_regression_is_rejected_without_force(conn):
    duckdb_io.replace_table(conn, "cases", _cases(100))

    with pytest.raises(RegressionError):
        duckdb_io.replace_table(conn, "cases", _cases(50, start=200))

    assert duckdb_io.table_row_count(conn, "cases") == 100
    assert _tables(conn) == {"cases", "interventions"}


def test_force_accepts_regression(conn):
    duckdb_io.replace_table(conn, "cases", _cases(100))

    result = duckdb_io.replace_table(conn, "cases", _cases(50, start=200), force=True)

    assert result.forced is True
    assert duckdb_io.table_row_count(conn, "cases") == 50


def test_small_drop_within_threshold_is_not_forced(conn):
    duckdb_io.replace_table(conn, "cases", _cases(100))
    result = duckdb_io.replace_table(conn, "cases", _cases(95), force=True)
    assert result.forced is False
    assert duckdb_io.table_row_count(conn, "cases") == 95


@pytest.mark.parametrize("force", [False, True])
def test_empty_dataset_never_replaces(conn, force):
    duckdb_io.replace_table(conn, "cases", _cases(5))

    with pytest.raises(EmptyDatasetError):
        duckdb_io.replace_table(conn, "cases", _cases(0), force=force)

    assert duckdb_io.table_row_count(conn, "cases") == 5


def test_database_error_is_wrapped(conn):
    duckdb_io.replace_table(conn, "cases", _cases(5))
    broken = _cases(5, start=30)
    broken["confirmed"] = None

    with pytest.raises(ReplaceError):
        duckdb_io.replace_table(conn, "cases", broken)

    assert duckdb_io.table_row_count(conn, "cases") == 5
    assert _tables(conn) == {"cases", "interventions"}


def test_stale_scratch_tables_are_cleared(conn):
    conn.execute("CREATE TABLE cases_new (leftover INTEGER)")
    conn.execute("CREATE TABLE cases_old (leftover INTEGER)")

    duckdb_io.replace_table(conn, "cases", _cases(2))

    assert _tables(conn) == {"cases", "interventions"}
    assert duckdb_io.table_row_count(conn, "cases") == 2


def test_missing_live_table_raises_replace_error(conn):
    conn.execute("DROP TABLE interventions")
    frame = pd.DataFrame(
        [["GB", None, "school_closure", None, "OxCGRT", None, "2020-03-20", None, None, None]],
        columns=INTERVENTION_COLUMNS,
    )
    with pytest.raises(ReplaceError):
        duckdb_io.replace_table(conn, "interventions", frame)


def test_interventions_keep_null_dates(conn):
    frame = pd.DataFrame(
        [
            ["GB", None, "school_closure", None, "OxCGRT", None, "2020-03-20", None, None, None],
            ["US", "US-NY", "SchoolClose", "note", "https://example.org", "2020-03-15", "2020-03-18", None, None, "2020-06-01"],
        ],
        columns=INTERVENTION_COLUMNS,
    )
    duckdb_io.replace_table(conn, "interventions", frame)

    rows = conn.execute(
        "SELECT region_id, start_date, end_date FROM interventions ORDER BY region_id"
    ).fetchall()
    assert rows == [
        ("GB", date(2020, 3, 20), None),
        ("US", date(2020, 3, 18), date(2020, 6, 1)),
    ]
