"""Resolve DuckDB URLs or paths to a database file and open it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import duckdb

LOGGER = logging.getLogger(__name__)

URL_PREFIX = "duckdb://"
MEMORY = ":memory:"
MEMORY_ALIASES = frozenset(
    {
        MEMORY,
        "duckdb:///:memory:",
        "duckdb://:memory:",
        "duckdb://memory",
        "duckdb:memory",
    }
)


@dataclass(frozen=True)
class DuckDBTarget:
    """A database location in both forms used by the loader."""

    path: str
    url: str

    @property
    def in_memory(self) -> bool:
        return self.path == MEMORY


def _strip_url(raw: str) -> str:
    # duckdb:///abs/path -> /abs/path; duckdb:///./rel -> ./rel; duckdb://rel -> rel
    rest = raw[len(URL_PREFIX):]
    if rest.startswith("/./") or rest.startswith("/../"):
        return rest[1:]
    return rest


def resolve_target(url_or_path: str | None) -> DuckDBTarget:
    """Return the absolute database path and its ``duckdb:///`` URL.

    Relative paths resolve against the working directory; the parent
    directory of a file target is created.
    """

    raw = (url_or_path or "").strip()
    if not raw or raw in MEMORY_ALIASES:
        return DuckDBTarget(path=MEMORY, url=f"{URL_PREFIX}/{MEMORY}")

    location = _strip_url(raw) if raw.startswith(URL_PREFIX) else raw
    if location == MEMORY:
        return DuckDBTarget(path=MEMORY, url=f"{URL_PREFIX}/{MEMORY}")

    resolved = Path(location).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return DuckDBTarget(path=str(resolved), url=f"{URL_PREFIX}/{resolved}")


def open_duckdb_conn(db_url: str | None) -> tuple["duckdb.DuckDBPyConnection", DuckDBTarget]:
    """Open a read-write connection for ``db_url``."""

    target = resolve_target(db_url)
    conn = duckdb.connect(database=target.path, read_only=False)
    LOGGER.info("duckdb.connect | url=%s | in_memory=%s", target.url, target.in_memory)
    return conn, target
