from __future__ import annotations

from typing import Sequence

import pandas as pd

_BLANK_TOKENS = {"nan", "none", "nat", "<na>", "null"}


def parse_iso_dates(series: pd.Series, formats: Sequence[str]) -> tuple[pd.Series, pd.Series]:
    """Parse ``series`` into ``YYYY-MM-DD`` strings trying each format in turn.

    Returns the parsed values (``None`` where blank or unparsable) and a mask
    of entries that held a value none of ``formats`` could parse.
    """

    text = series.where(series.notna(), "").astype(str).str.strip()
    # Integer dates read back through a float column ("20200415.0").
    text = text.str.replace(r"\.0$", "", regex=True)
    blank = text.eq("") | text.str.lower().isin(_BLANK_TOKENS)

    parsed = pd.Series(pd.NaT, index=series.index, dtype="datetime64[ns]")
    for fmt in formats:
        remaining = parsed.isna() & ~blank
        if not remaining.any():
            break
        parsed.loc[remaining] = pd.to_datetime(text[remaining], format=fmt, errors="coerce")

    iso = parsed.dt.strftime("%Y-%m-%d").astype(object).where(parsed.notna(), None)
    invalid = parsed.isna() & ~blank
    return iso, invalid


__all__ = ["parse_iso_dates"]
