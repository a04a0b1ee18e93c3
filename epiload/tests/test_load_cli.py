from __future__ import annotations

from epiload.cli import load_cli
from epiload.ingestion._exit_policy import EXIT_DATASET_FAILED


def test_arguments_reach_the_pipeline(monkeypatch, tmp_path):
    captured = {}

    def _fake_run(config, **kwargs):
        captured["config"] = config
        captured.update(kwargs)
        return 0

    monkeypatch.setattr(load_cli, "run_pipeline", _fake_run)

    code = load_cli.main(
        [
            "--cache-dir",
            str(tmp_path / "cache"),
            "--db-url",
            str(tmp_path / "db.duckdb"),
            "--debug-dir",
            str(tmp_path / "debug"),
            "--dataset",
            "cases",
            "--force",
        ]
    )

    assert code == 0
    assert captured["cache_dir"] == str(tmp_path / "cache")
    assert captured["db_url"] == str(tmp_path / "db.duckdb")
    assert captured["debug_dir"] == str(tmp_path / "debug")
    assert captured["datasets"] == ["cases"]
    assert captured["force"] is True
    assert len(captured["config"].sources) == 6


def test_defaults(monkeypatch):
    captured = {}
    monkeypatch.setattr(load_cli, "run_pipeline", lambda config, **kwargs: captured.update(kwargs) or 1)

    assert load_cli.main([]) == 1
    assert captured["datasets"] is None
    assert captured["force"] is False
    assert captured["cache_dir"] is None


def test_bad_config_path_fails(tmp_path):
    assert load_cli.main(["--config", str(tmp_path / "missing.yml")]) == EXIT_DATASET_FAILED
