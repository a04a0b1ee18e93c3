# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Case and intervention loader: fetch, normalise and atomically replace DuckDB tables."""

__version__ = "0.1.0"
