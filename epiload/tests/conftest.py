from __future__ import annotations

import pytest

from epiload.ingestion.config import EpiloadConfig, load_config


@pytest.fixture
def config() -> EpiloadConfig:
    return load_config()
