"""Time key decoding.

The warehouse encodes a fact's period as ``year * 10 + quarter`` (e.g. 20243
for Q3 2024). Every report derives its calendar year and quarter from that
single encoding.
"""

from __future__ import annotations

from typing import NamedTuple

import pandas as pd


class TimeKey(NamedTuple):
    year: int
    quarter: int


def decode_time_key(time_key: int) -> TimeKey:
    """Split a time key into ``(year, quarter)``.

    Raises:
        ValueError: if the trailing digit is not a quarter (1-4).
    """
    year, quarter = divmod(int(time_key), 10)
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"time key {time_key} does not end in a quarter digit (1-4)")
    return TimeKey(year=year, quarter=quarter)


def add_time_parts(pdf: pd.DataFrame, column: str = "time_key") -> pd.DataFrame:
    """Return a copy of `pdf` with `calendar_year` and `quarter_number` columns.

    Null time keys produce null year and quarter values.
    """
    out = pdf.copy()
    keys = pd.to_numeric(out[column], errors="coerce").astype("Int64")
    out["calendar_year"] = keys // 10
    out["quarter_number"] = keys % 10
    return out
