"""Offline tests for the download cache and the concurrent fetcher."""

from __future__ import annotations

import pytest

from epiload.common.errors import FetchError
from epiload.ingestion import cache
from epiload.ingestion import fetch as fetch_mod
from epiload.ingestion.config import HttpCfg
from epiload.tests.helpers import FakeResponse, FakeSession

URL = "https://api.example.org/v1/states/daily.json"


def test_cache_key_uses_last_path_segment():
    assert cache.cache_key(URL) == "daily.json"
    assert cache.cache_key("https://opendata.example.eu/covid19/casedistribution/json/") == "json"
    assert cache.cache_key("https://host.example.org") == "host.example.org"


def test_cache_hit_never_touches_network(tmp_path, monkeypatch):
    cache.cache_put(tmp_path, URL, '{"cached": true}')

    def _no_network(*args, **kwargs):
        raise AssertionError("network must not be used on a cache hit")

    monkeypatch.setattr(fetch_mod, "http_get", _no_network)
    assert fetch_mod.fetch(URL, str(tmp_path)) == '{"cached": true}'


def test_download_is_cached_and_reused(tmp_path):
    session = FakeSession({URL: FakeResponse(200, "payload")})

    assert fetch_mod.fetch(URL, str(tmp_path), session=session) == "payload"
    assert (tmp_path / "daily.json").read_text(encoding="utf-8") == "payload"
    assert not list(tmp_path.glob("*.part"))

    assert fetch_mod.fetch(URL, str(tmp_path), session=session) == "payload"
    assert session.calls == [URL]


def test_without_cache_dir_every_fetch_downloads(tmp_path):
    session = FakeSession({URL: FakeResponse(200, "payload")})
    fetch_mod.fetch(URL, None, session=session)
    fetch_mod.fetch(URL, None, session=session)
    assert session.calls == [URL, URL]
    assert list(tmp_path.iterdir()) == []


def test_failed_download_is_not_cached(tmp_path):
    session = FakeSession({URL: FakeResponse(500, "boom")})
    with pytest.raises(FetchError):
        fetch_mod.fetch(URL, str(tmp_path), session=session)
    assert cache.cache_get(tmp_path, URL) is None


def test_fetch_all_keeps_input_order():
    urls = {name: f"https://data.example.org/{name}.csv" for name in ("beta", "alpha", "gamma")}
    session = FakeSession({url: FakeResponse(200, name) for name, url in urls.items()})

    result = fetch_mod.fetch_all(urls, None, http_cfg=HttpCfg(max_workers=3), session=session)

    assert list(result) == ["beta", "alpha", "gamma"]
    assert result == {"beta": "beta", "alpha": "alpha", "gamma": "gamma"}
    assert sorted(session.calls) == sorted(urls.values())


def test_fetch_all_aborts_on_first_failure():
    urls = {
        "good": "https://data.example.org/good.csv",
        "bad": "https://data.example.org/bad.csv",
    }
    session = FakeSession(
        {
            urls["good"]: FakeResponse(200, "fine"),
            urls["bad"]: FakeResponse(503, "unavailable"),
        }
    )

    with pytest.raises(FetchError) as excinfo:
        fetch_mod.fetch_all(urls, None, http_cfg=HttpCfg(max_workers=1), session=session)

    assert excinfo.value.status == 503
    assert excinfo.value.url == urls["bad"]


def test_undecodable_cache_entry_is_a_fetch_error(tmp_path):
    (tmp_path / "daily.json").write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(FetchError) as excinfo:
        fetch_mod.fetch_all({"us_cases": URL}, str(tmp_path), session=FakeSession())

    assert excinfo.value.status == "cache_unreadable"
    assert excinfo.value.url == URL


def test_fetch_all_with_no_sources_is_empty():
    assert fetch_mod.fetch_all({}, None) == {}
