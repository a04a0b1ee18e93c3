# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Row-count regression guard applied before a live table is replaced."""

from __future__ import annotations

import logging

from epiload.common.errors import RegressionError

LOGGER = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.1


def fractional_drop(live_count: int, candidate_count: int) -> float:
    """Return ``(live - candidate) / live``; 0.0 when the live table is empty."""

    if live_count <= 0:
        return 0.0
    return (live_count - candidate_count) / live_count


def check_regression(
    live_count: int,
    candidate_count: int,
    *,
    force: bool = False,
    threshold: float = DEFAULT_THRESHOLD,
    table: str = "",
) -> None:
    """Raise :class:`RegressionError` when the candidate shrinks the live table too much.

    An empty candidate against a non-empty live table, or a fractional drop
    above ``threshold``, is rejected unless ``force`` is set; with ``force``
    the check only logs a warning.
    """

    drop = fractional_drop(live_count, candidate_count)
    emptied = live_count > 0 and candidate_count == 0
    if not emptied and drop <= threshold:
        LOGGER.debug(
            "guard.ok | table=%s | live=%d | candidate=%d | drop=%.4f",
            table,
            live_count,
            candidate_count,
            drop,
        )
        return

    message = (
        f"{table or 'dataset'}: candidate has {candidate_count} rows against {live_count} live "
        f"({drop:.1%} drop, threshold {threshold:.1%})"
    )
    if force:
        LOGGER.warning("guard.forced | %s", message)
        return
    raise RegressionError(message)


__all__ = ["DEFAULT_THRESHOLD", "check_regression", "fractional_drop"]
