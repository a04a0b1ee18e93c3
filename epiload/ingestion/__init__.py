# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Source retrieval: configuration, cached HTTP fetches and episode helpers."""

__all__ = [
    "config",
    "cache",
    "http",
    "fetch",
    "episodes",
]
