# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Collapse daily severity series into intervention episodes.

A day at or above the threshold opens an episode; the first later day below
the threshold closes it and becomes its ``end``. Days without a reading
leave the current state unchanged. An episode still open when the series
runs out has ``end=None``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Episode:
    start: str
    end: Optional[str] = None


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return True


def collapse_episodes(
    series: Iterable[Tuple[str, object]], threshold: float
) -> List[Episode]:
    """Return the episodes in a date-ordered ``(iso_date, severity)`` series."""

    episodes: List[Episode] = []
    open_start: Optional[str] = None
    for day, severity in series:
        if _is_missing(severity):
            continue
        active = float(severity) >= threshold  # type: ignore[arg-type]
        if active and open_start is None:
            open_start = day
        elif not active and open_start is not None:
            episodes.append(Episode(start=open_start, end=day))
            open_start = None
    if open_start is not None:
        episodes.append(Episode(start=open_start))
    return episodes


__all__ = ["Episode", "collapse_episodes"]
