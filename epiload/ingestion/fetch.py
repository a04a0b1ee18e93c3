# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Cached, concurrent retrieval of raw source payloads."""
from __future__ import annotations

import concurrent.futures
import logging
from typing import Dict, Mapping, Optional

import requests

from epiload.common.errors import FetchError
from epiload.diag import diag_logger, log_json
from epiload.ingestion import cache
from epiload.ingestion.config import HttpCfg
from epiload.ingestion.http import http_get

LOGGER = logging.getLogger(__name__)
DIAG_LOGGER = diag_logger(f"{__name__}.diag")

__all__ = ["fetch", "fetch_all"]


def fetch(
    url: str,
    cache_dir: Optional[str] = None,
    *,
    http_cfg: Optional[HttpCfg] = None,
    session: Optional[requests.Session] = None,
) -> str:
    """Return the raw text for ``url``, serving it from ``cache_dir`` when present."""

    cfg = http_cfg or HttpCfg()
    if cache_dir:
        cached = cache.cache_get(cache_dir, url)
        if cached is not None:
            LOGGER.info("fetch.cache_hit | url=%s | bytes=%d", url, len(cached))
            return cached

    body, diagnostics = http_get(
        url,
        timeout=cfg.timeout_s,
        max_redirects=cfg.max_redirects,
        user_agent=cfg.user_agent,
        session=session,
    )
    log_json(DIAG_LOGGER, "fetch_http", url=url, **diagnostics)
    LOGGER.info(
        "fetch.downloaded | url=%s | bytes=%d | redirects=%s",
        url,
        len(body),
        diagnostics.get("redirects"),
    )
    if cache_dir:
        path = cache.cache_put(cache_dir, url, body)
        LOGGER.debug("fetch.cache_write | url=%s | path=%s", url, path)
    return body


def fetch_all(
    urls: Mapping[str, str],
    cache_dir: Optional[str] = None,
    *,
    http_cfg: Optional[HttpCfg] = None,
    session: Optional[requests.Session] = None,
) -> Dict[str, str]:
    """Fetch every ``name -> url`` concurrently.

    The first :class:`FetchError` cancels the fetches that have not started
    and is re-raised; partial results are discarded.
    """

    if not urls:
        return {}
    cfg = http_cfg or HttpCfg()
    workers = max(1, min(cfg.max_workers, len(urls)))
    payloads: Dict[str, str] = {}

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_name = {
            executor.submit(fetch, url, cache_dir, http_cfg=cfg, session=session): name
            for name, url in urls.items()
        }
        try:
            for future in concurrent.futures.as_completed(future_to_name):
                name = future_to_name[future]
                payloads[name] = future.result()
        except FetchError as exc:
            LOGGER.error("fetch.aborted | source=%s | error=%s", future_to_name[future], exc)
            for pending in future_to_name:
                pending.cancel()
            raise

    return {name: payloads[name] for name in urls}
