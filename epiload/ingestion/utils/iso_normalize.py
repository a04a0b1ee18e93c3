"""Helpers for normalising country identifiers to ISO 3166-1 alpha-2 codes."""

from __future__ import annotations

import csv
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

ROOT = Path(__file__).resolve().parents[2]
COUNTRY_CSV = ROOT / "data" / "countries.csv"


@lru_cache(maxsize=1)
def _load_country_lookup() -> tuple[Mapping[str, str], Mapping[str, str]]:
    iso3_to_iso2: dict[str, str] = {}
    iso2_to_name: dict[str, str] = {}
    if not COUNTRY_CSV.exists():
        return iso3_to_iso2, iso2_to_name
    # csv rather than pandas: "NA" (Namibia) must not become NaN.
    with COUNTRY_CSV.open("r", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            iso2 = (row.get("iso2") or "").strip().upper()
            iso3 = (row.get("iso3") or "").strip().upper()
            if not iso2 or not iso3:
                continue
            iso3_to_iso2[iso3] = iso2
            iso2_to_name[iso2] = (row.get("country_name") or "").strip()
    return iso3_to_iso2, iso2_to_name


def remap_code(code: object, remap: Mapping[str, str] | None = None) -> Optional[str]:
    """Return ``code`` upper-cased and rewritten through ``remap``."""

    if code is None:
        return None
    text = str(code).strip().upper()
    if not text or text in {"NAN", "NONE"}:
        return None
    if remap:
        return remap.get(text, text)
    return text


def to_iso2(code: object, remap: Mapping[str, str] | None = None) -> Optional[str]:
    """Return the ISO2 code for an ISO2 or ISO3 ``code``, or ``None`` if unknown."""

    text = remap_code(code, remap)
    if text is None:
        return None
    iso3_to_iso2, iso2_to_name = _load_country_lookup()
    if len(text) == 3:
        return iso3_to_iso2.get(text)
    if len(text) == 2 and text in iso2_to_name:
        return text
    return None


__all__ = ["remap_code", "to_iso2"]
