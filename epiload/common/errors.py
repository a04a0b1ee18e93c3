# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Exception hierarchy for the loader.

Fetch failures abort a whole run. Dataset failures (empty, regression,
replace) are confined to the pipeline of the dataset that raised them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


class EpiloadError(Exception):
    """Base exception for all loader failures."""


class ConfigError(EpiloadError):
    """Raised for invalid source configuration or environment values."""


@dataclass
class FetchError(EpiloadError):
    """Raised when a source cannot be downloaded."""

    message: str
    url: str = ""
    status: int | str | None = None
    diagnostics: Dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover - logging helper
        return self.message


class NormalizationError(EpiloadError):
    """Raised for a single source row that cannot be normalised."""


class DatasetError(EpiloadError):
    """Base class for failures scoped to one dataset pipeline."""


class EmptyDatasetError(DatasetError):
    """Raised when an assembled dataset has no records."""


class RegressionError(DatasetError):
    """Raised when a candidate dataset is materially smaller than the live one."""


class ReplaceError(DatasetError):
    """Raised when the shadow-table load or the table swap fails."""


__all__ = [
    "ConfigError",
    "DatasetError",
    "EmptyDatasetError",
    "EpiloadError",
    "FetchError",
    "NormalizationError",
    "RegressionError",
    "ReplaceError",
]
