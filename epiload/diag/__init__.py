# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Loader diagnostics helpers gated behind the ``EPILOAD_DIAG`` flag."""

from __future__ import annotations

from .diagnostics import diag_enabled, diag_logger, dump_table_meta, log_json

__all__ = [
    "diag_enabled",
    "diag_logger",
    "dump_table_meta",
    "log_json",
]
