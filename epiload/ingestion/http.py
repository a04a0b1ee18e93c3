"""HTTP helpers for source downloads."""
from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException, Timeout

from epiload.common.errors import FetchError

__all__ = ["REDIRECT_STATUSES", "http_get", "redirect_target"]

LOGGER = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302})
DEFAULT_MAX_REDIRECTS = 10


def redirect_target(original_url: str, location: str) -> str:
    """Return ``location``'s path and query re-rooted on ``original_url``'s origin."""

    origin = urlsplit(original_url)
    target = urlsplit(location)
    path = target.path or "/"
    return urlunsplit((origin.scheme, origin.netloc, path, target.query, ""))


def _classify_exception(exc: Exception) -> str:
    if isinstance(exc, Timeout):
        return "timeout"
    if isinstance(exc, requests.ConnectionError):
        return "connection_error"
    return exc.__class__.__name__.lower()


def http_get(
    url: str,
    *,
    timeout: float | Tuple[float, float] = 60.0,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
    user_agent: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> Tuple[str, Dict[str, object]]:
    """GET ``url`` following 301/302 by path, returning ``(text, diagnostics)``.

    Redirects are resolved by hand so the scheme and host of the original
    request are kept; only the path and query of ``Location`` are used.
    Raises :class:`FetchError` for any non-2xx, non-redirect status, a
    transport failure, or more than ``max_redirects`` hops.
    """

    headers = {"Accept": "*/*"}
    if user_agent:
        headers["User-Agent"] = user_agent
    http = session or _shared_session()

    hops: list[Dict[str, object]] = []
    current = url
    started = time.monotonic()
    while True:
        try:
            response = http.get(
                current, headers=headers, timeout=timeout, allow_redirects=False
            )
        except RequestException as exc:
            kind = _classify_exception(exc)
            LOGGER.error("http.get_failed | url=%s | kind=%s | error=%s", current, kind, exc)
            raise FetchError(
                f"GET {current} failed: {exc}",
                url=url,
                status=kind,
                diagnostics={"hops": hops, "exception": repr(exc), "kind": kind},
            ) from exc

        status = int(response.status_code)
        hops.append({"url": current, "status": status})

        if status in REDIRECT_STATUSES:
            location = response.headers.get("Location", "")
            response.close()
            if not location:
                raise FetchError(
                    f"GET {current} returned {status} without a Location header",
                    url=url,
                    status=status,
                    diagnostics={"hops": hops},
                )
            if len(hops) > max_redirects:
                raise FetchError(
                    f"GET {url} exceeded {max_redirects} redirects",
                    url=url,
                    status=status,
                    diagnostics={"hops": hops},
                )
            current = redirect_target(current, location)
            LOGGER.debug("http.redirect | status=%s | target=%s", status, current)
            continue

        if not 200 <= status < 300:
            preview = ""
            try:
                preview = response.text[:256]
            finally:
                response.close()
            raise FetchError(
                f"GET {current} returned HTTP {status}",
                url=url,
                status=status,
                diagnostics={"hops": hops, "body_preview": preview},
            )

        body = response.text
        diagnostics: Dict[str, object] = {
            "hops": hops,
            "redirects": len(hops) - 1,
            "status": status,
            "body_bytes": len(response.content),
            "duration_s": round(time.monotonic() - started, 6),
        }
        response.close()
        return body, diagnostics


_SESSION: requests.Session | None = None
_SESSION_LOCK = threading.Lock()


def _shared_session() -> requests.Session:
    global _SESSION
    with _SESSION_LOCK:
        if _SESSION is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=16, pool_maxsize=16)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            _SESSION = session
        return _SESSION
