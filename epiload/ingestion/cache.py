# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""File-based cache for raw source downloads.

Entries are named after the last path segment of the source URL and hold the
payload verbatim. There is no TTL: an existing entry is always served.
"""
from __future__ import annotations

import os
import posixpath
from urllib.parse import urlparse

from epiload.common.errors import FetchError

__all__ = ["cache_key", "cache_path", "cache_get", "cache_put"]


def cache_key(url: str) -> str:
    """Return the cache file name for ``url``."""

    path = urlparse(url).path.rstrip("/")
    name = posixpath.basename(path)
    if not name:
        # Bare host URL; fall back to the host so the key is never empty.
        name = urlparse(url).netloc or "index"
    return name


def cache_path(base_dir: str | os.PathLike[str], url: str) -> str:
    return os.path.join(os.fspath(base_dir), cache_key(url))


def cache_get(base_dir: str | os.PathLike[str], url: str) -> str | None:
    """Return the cached text for ``url`` or ``None`` when absent."""

    path = cache_path(base_dir, url)
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return handle.read()
    except UnicodeDecodeError as exc:
        raise FetchError(
            f"cached copy of {url} at {path} is not valid UTF-8",
            url=url,
            status="cache_unreadable",
            diagnostics={"path": path, "error": str(exc)},
        ) from exc


def cache_put(base_dir: str | os.PathLike[str], url: str, body: str) -> str:
    """Persist ``body`` for ``url`` and return the written path."""

    os.makedirs(os.fspath(base_dir), exist_ok=True)
    path = cache_path(base_dir, url)
    tmp_path = f"{path}.part"
    with open(tmp_path, "w", encoding="utf-8") as handle:
        handle.write(body)
    os.replace(tmp_path, path)
    return path
