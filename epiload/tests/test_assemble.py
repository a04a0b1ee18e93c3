from __future__ import annotations

import json

import pandas as pd
import pytest

from epiload.common.errors import DatasetError
from epiload.connectors.protocol import CASE_COLUMNS, INTERVENTION_COLUMNS
from epiload.pipeline.assemble import assemble_cases, assemble_interventions, write_debug_files


def _case_frame(rows):
    return pd.DataFrame(rows, columns=CASE_COLUMNS)


def _intervention_frame(rows):
    return pd.DataFrame(rows, columns=INTERVENTION_COLUMNS)


def test_cases_keep_source_order():
    us = _case_frame([["US", "US-NY", "2020-03-01", 1, 0, 0]])
    world = _case_frame([["GB", None, "2020-03-01", 2, 0, 1], ["GB", None, "2020-03-02", 5, 0, 1]])

    out = assemble_cases([us, world])

    assert list(out["region_id"]) == ["US", "GB", "GB"]
    assert list(out.columns) == CASE_COLUMNS


def test_duplicate_case_keys_fail_the_dataset():
    row = ["GB", None, "2020-03-01", 2, 0, 1]
    with pytest.raises(DatasetError):
        assemble_cases([_case_frame([row]), _case_frame([row])])


def test_interventions_without_start_date_are_dropped():
    frame = _intervention_frame(
        [
            ["US", "US-NY", "SchoolClose", None, None, None, "2020-03-18", None, None, None],
            ["US", "US-CA", "GathRestrict", None, None, "2020-03-11", None, None, None, None],
        ]
    )
    out = assemble_interventions([frame])
    assert list(out["subregion_id"]) == ["US-NY"]


def test_no_frames_gives_empty_datasets():
    assert assemble_cases([]).empty
    assert list(assemble_interventions([]).columns) == INTERVENTION_COLUMNS


def test_debug_files_are_arrays_in_column_order(tmp_path):
    cases = _case_frame([["GB", None, "2020-03-01", 2, 0, 1]]).astype(
        {"confirmed": "int64", "recovered": "int64", "deaths": "int64"}
    )
    interventions = _intervention_frame(
        [["DE", None, "stay_at_home", None, "OxCGRT", None, "2020-03-22", None, None, None]]
    )

    case_path, intervention_path = write_debug_files(cases, interventions, tmp_path / "out")

    assert case_path.name == "case-data.json"
    assert intervention_path.name == "intervention-data.json"
    assert json.loads(case_path.read_text(encoding="utf-8")) == [["GB", None, "2020-03-01", 2, 0, 1]]
    assert json.loads(intervention_path.read_text(encoding="utf-8")) == [
        ["DE", None, "stay_at_home", None, "OxCGRT", None, "2020-03-22", None, None, None]
    ]
