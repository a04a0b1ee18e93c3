from __future__ import annotations

import os

import pytest

ENV_PREFIX = "EPILOAD_"


@pytest.fixture(autouse=True)
def _isolate_epiload_env(monkeypatch):
    """Keep developer EPILOAD_* settings out of the test run."""

    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    yield
