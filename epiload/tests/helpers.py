"""Offline HTTP doubles and fixture access shared by the test modules."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

FIXTURES = Path(__file__).resolve().parent / "fixtures"


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.text = text
        self.content = text.encode("utf-8")
        self.headers = headers or {}
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Stand-in for ``requests.Session`` keyed by exact URL."""

    def __init__(self, routes: Optional[Dict[str, FakeResponse]] = None):
        self.routes = dict(routes or {})
        self.calls: List[str] = []

    def get(self, url, headers=None, timeout=None, allow_redirects=True):
        assert allow_redirects is False
        self.calls.append(url)
        response = self.routes.get(url)
        if response is None:
            return FakeResponse(404, "not found")
        return response


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")
