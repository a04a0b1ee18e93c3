from __future__ import annotations

from epiload.ingestion._exit_policy import (
    EXIT_DATASET_FAILED,
    EXIT_OK,
    compute_exit_code,
)


def test_all_ok_exits_zero():
    results = [
        {"dataset": "cases", "status": "ok", "reason": None},
        {"dataset": "interventions", "status": "ok", "reason": None},
    ]
    assert compute_exit_code(results) == EXIT_OK


def test_any_error_exits_one():
    results = [
        {"dataset": "cases", "status": "ok", "reason": None},
        {"dataset": "interventions", "status": "error", "reason": "empty dataset"},
    ]
    assert compute_exit_code(results) == EXIT_DATASET_FAILED


def test_nothing_attempted_exits_one():
    assert compute_exit_code([]) == EXIT_DATASET_FAILED


def test_status_is_case_insensitive():
    assert compute_exit_code([{"dataset": "cases", "status": "OK"}]) == EXIT_OK
