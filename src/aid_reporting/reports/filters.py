"""Pre-aggregation filters shared by the reports.

Null measures and null years never pass a filter.
"""
from __future__ import annotations

from typing import Iterable

import pandas as pd


def value_positive(pdf: pd.DataFrame, value: str = "value_usd") -> pd.DataFrame:
    return pdf[(pdf[value] > 0).fillna(False).astype(bool)]


def year_at_least(pdf: pd.DataFrame, year: int) -> pd.DataFrame:
    return pdf[(pdf["calendar_year"] >= year).fillna(False).astype(bool)]


def year_between(pdf: pd.DataFrame, first: int, last: int) -> pd.DataFrame:
    """Rows with ``first <= calendar_year <= last``."""
    mask = (pdf["calendar_year"] >= first) & (pdf["calendar_year"] <= last)
    return pdf[mask.fillna(False).astype(bool)]


def year_in(pdf: pd.DataFrame, years: Iterable[int]) -> pd.DataFrame:
    return pdf[pdf["calendar_year"].isin(list(years)).fillna(False).astype(bool)]
