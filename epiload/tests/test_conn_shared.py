from __future__ import annotations

import pytest

pytest.importorskip("duckdb")

from epiload.db.conn_shared import resolve_target


@pytest.mark.parametrize("raw", [None, "", ":memory:", "duckdb:///:memory:", "duckdb://memory"])
def test_memory_aliases(raw):
    target = resolve_target(raw)
    assert target.in_memory
    assert target.url == "duckdb:///:memory:"


def test_relative_url_resolves_against_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = resolve_target("duckdb:///./data/epiload.duckdb")
    assert target.path == str((tmp_path / "data" / "epiload.duckdb").resolve())
    assert target.url == f"duckdb:///{target.path}"
    assert (tmp_path / "data").is_dir()


def test_plain_path_is_accepted(tmp_path):
    target = resolve_target(str(tmp_path / "nested" / "db.duckdb"))
    assert not target.in_memory
    assert target.path.endswith("db.duckdb")
    assert (tmp_path / "nested").is_dir()
