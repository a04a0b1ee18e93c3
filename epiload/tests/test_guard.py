from __future__ import annotations

import pytest

from epiload.common.errors import RegressionError
from epiload.db.guard import check_regression, fractional_drop


def test_empty_candidate_against_live_rows_is_rejected():
    with pytest.raises(RegressionError):
        check_regression(100, 0)


def test_force_accepts_empty_candidate():
    check_regression(100, 0, force=True)


def test_small_drop_passes():
    check_regression(100, 95)


def test_drop_at_threshold_passes_and_above_fails():
    check_regression(100, 90, threshold=0.1)
    with pytest.raises(RegressionError):
        check_regression(100, 89, threshold=0.1)


def test_custom_threshold():
    check_regression(100, 60, threshold=0.5)
    with pytest.raises(RegressionError):
        check_regression(100, 60, threshold=0.25)


def test_empty_live_table_always_passes():
    check_regression(0, 0)
    check_regression(0, 10)


def test_growth_passes():
    check_regression(100, 250)
    assert fractional_drop(100, 250) < 0
