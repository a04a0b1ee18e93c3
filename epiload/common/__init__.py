# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Common utilities shared across loader components."""

from .errors import (
    ConfigError,
    DatasetError,
    EmptyDatasetError,
    EpiloadError,
    FetchError,
    NormalizationError,
    RegressionError,
    ReplaceError,
)
from .logs import get_logger, dict_counts, df_schema, configure_root_logger

__all__ = [
    "ConfigError",
    "DatasetError",
    "EmptyDatasetError",
    "EpiloadError",
    "FetchError",
    "NormalizationError",
    "RegressionError",
    "ReplaceError",
    "get_logger",
    "dict_counts",
    "df_schema",
    "configure_root_logger",
]
