# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Normaliser registry mapping source kinds to normalisers."""

from __future__ import annotations

from typing import Sequence

from epiload.ingestion.config import EpiloadConfig, SourceCfg

from .protocol import CASE_COLUMNS, DATASET_COLUMNS, INTERVENTION_COLUMNS, Normalizer
from .intl_cases import IntlCasesNormalizer
from .intl_interventions import IntlInterventionsNormalizer
from .us_cases import UsCasesNormalizer
from .us_interventions import UsInterventionsNormalizer

# Add new source kinds here. ``sources.yml`` refers to them through ``kind``.
REGISTRY: dict[str, type] = {
    "us_cases": UsCasesNormalizer,
    "intl_cases": IntlCasesNormalizer,
    "us_interventions": UsInterventionsNormalizer,
    "intl_interventions": IntlInterventionsNormalizer,
}


def build_normalizer(source: SourceCfg, config: EpiloadConfig) -> Normalizer:
    """Instantiate the normaliser registered for ``source.kind``."""
    try:
        cls = REGISTRY[source.kind]
    except KeyError:
        raise KeyError(f"Unknown source kind {source.kind!r} for source {source.id!r}") from None
    return cls(source, config)


def discover_normalizers(
    config: EpiloadConfig, datasets: Sequence[str] | None = None
) -> list[tuple[SourceCfg, Normalizer]]:
    """Return ``(source, normaliser)`` pairs in config order, optionally per dataset."""
    wanted = set(datasets) if datasets else None
    pairs = []
    for source in config.sources:
        if wanted is not None and source.dataset not in wanted:
            continue
        pairs.append((source, build_normalizer(source, config)))
    return pairs


__all__ = [
    "CASE_COLUMNS",
    "DATASET_COLUMNS",
    "INTERVENTION_COLUMNS",
    "Normalizer",
    "REGISTRY",
    "build_normalizer",
    "discover_normalizers",
]
