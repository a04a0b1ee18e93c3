# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Configuration helpers for the loader sources."""
from __future__ import annotations

import importlib.resources as resources
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from epiload.common.errors import ConfigError

LOGGER = logging.getLogger(__name__)

DATASETS = ("cases", "interventions")
DEFAULT_DB_URL = "duckdb:///./epiload_data/epiload.duckdb"


def _default_cache_dir() -> Optional[str]:
    value = os.getenv("EPILOAD_CACHE_DIR", "").strip()
    return value or None


def _default_db_url() -> str:
    return os.getenv("EPILOAD_DB_URL", "").strip() or DEFAULT_DB_URL


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass
class HttpCfg:
    """Transport settings shared by every fetch."""

    timeout_s: float = 60.0
    max_redirects: int = 10
    max_workers: int = 6
    user_agent: str = "epiload/0.1"


@dataclass
class SourceCfg:
    """One upstream source and the normaliser that owns it."""

    id: str
    kind: str
    dataset: str
    url: str
    policy: Optional[str] = None
    threshold: Optional[float] = None
    source_label: Optional[str] = None
    columns: Dict[str, str] = field(default_factory=dict)


@dataclass
class EpiloadConfig:
    """Top-level configuration object."""

    sources: List[SourceCfg] = field(default_factory=list)
    us_region_id: str = "US"
    country_code_remap: Dict[str, str] = field(default_factory=dict)
    regression_threshold: float = 0.1
    http: HttpCfg = field(default_factory=HttpCfg)
    cache_dir: Optional[str] = field(default_factory=_default_cache_dir)
    db_url: str = field(default_factory=_default_db_url)

    def sources_for(self, dataset: str) -> List[SourceCfg]:
        return [source for source in self.sources if source.dataset == dataset]

    def source(self, source_id: str) -> SourceCfg:
        for candidate in self.sources:
            if candidate.id == source_id:
                return candidate
        raise KeyError(source_id)


def _read_packaged_yaml() -> Dict[str, Any]:
    text = resources.files("epiload.config").joinpath("sources.yml").read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Config not found at {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config at {path} is not valid YAML: {exc}") from exc
    if not isinstance(loaded, Mapping):
        raise ConfigError(f"Config at {path} must be a mapping")
    return dict(loaded)


def _parse_source(source_id: str, raw: Mapping[str, Any]) -> SourceCfg:
    kind = str(raw.get("kind") or "").strip()
    dataset = str(raw.get("dataset") or "").strip()
    url = str(raw.get("url") or "").strip()
    if not kind or not url:
        raise ConfigError(f"source {source_id!r} needs both 'kind' and 'url'")
    if dataset not in DATASETS:
        raise ConfigError(f"source {source_id!r} has unknown dataset {dataset!r}")

    env_url = os.getenv(f"EPILOAD_URL_{source_id.upper()}", "").strip()
    if env_url:
        LOGGER.info("config.url_override | source=%s | url=%s", source_id, env_url)
        url = env_url

    threshold = raw.get("threshold")
    if threshold is not None:
        try:
            threshold = float(threshold)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"source {source_id!r} threshold must be numeric") from exc

    columns = raw.get("columns") or {}
    if not isinstance(columns, Mapping):
        raise ConfigError(f"source {source_id!r} columns must be a mapping")

    return SourceCfg(
        id=source_id,
        kind=kind,
        dataset=dataset,
        url=url,
        policy=raw.get("policy"),
        threshold=threshold,
        source_label=raw.get("source_label"),
        columns={str(k): str(v) for k, v in columns.items()},
    )


def load_config(path: Path | str | None = None) -> EpiloadConfig:
    """Load the source registry, applying environment overrides."""

    data = _read_yaml(Path(path)) if path is not None else _read_packaged_yaml()

    raw_sources = data.get("sources") or {}
    if not isinstance(raw_sources, Mapping):
        raise ConfigError("'sources' must be a mapping of source id to settings")
    sources = [_parse_source(str(sid), raw or {}) for sid, raw in raw_sources.items()]

    http_raw = data.get("http") or {}
    http = HttpCfg(
        timeout_s=float(http_raw.get("timeout_s", HttpCfg.timeout_s)),
        max_redirects=_int_env(
            "EPILOAD_MAX_REDIRECTS", int(http_raw.get("max_redirects", HttpCfg.max_redirects))
        ),
        max_workers=int(http_raw.get("max_workers", HttpCfg.max_workers)),
        user_agent=str(http_raw.get("user_agent", HttpCfg.user_agent)),
    )
    if http.max_redirects < 0:
        raise ConfigError("max_redirects must not be negative")

    remap = data.get("country_code_remap") or {}
    threshold = _float_env(
        "EPILOAD_REGRESSION_THRESHOLD", float(data.get("regression_threshold", 0.1))
    )
    if not 0 <= threshold <= 1:
        raise ConfigError(f"regression threshold must be within [0, 1], got {threshold}")

    return EpiloadConfig(
        sources=sources,
        us_region_id=str(data.get("us_region_id", "US")).strip().upper(),
        country_code_remap={str(k).upper(): str(v).upper() for k, v in remap.items()},
        regression_threshold=threshold,
        http=http,
    )


__all__ = [
    "DATASETS",
    "DEFAULT_DB_URL",
    "EpiloadConfig",
    "HttpCfg",
    "SourceCfg",
    "load_config",
]
