# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from __future__ import annotations

from typing import Iterable

EXIT_OK = 0
EXIT_DATASET_FAILED = 1
EXIT_FETCH_FAILED = 2


def compute_exit_code(results: Iterable[dict]) -> int:
    """
    results: iterable of dataset result dicts with keys:
      - dataset: "cases" | "interventions"
      - status: {"ok","error"}
      - reason: str or None
    Exit rules:
      - Any 'error' => 1
      - No results at all => 1   (nothing was attempted)
      - Otherwise => 0
    """

    seen_any = False
    for result in results:
        seen_any = True
        status = (str(result.get("status") or "")).lower()
        if status != "ok":
            return EXIT_DATASET_FAILED
    return EXIT_OK if seen_any else EXIT_DATASET_FAILED
