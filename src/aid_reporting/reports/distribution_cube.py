"""Aid distribution cube.

Totals aid by recipient country, sub-sector and year (every combination,
including subtotals and the grand total) and reports the countries that
received the most aid across all sectors and years.
"""
from __future__ import annotations

import logging

import pandas as pd

from aid_reporting.aggregate.engine import aggregate, drop_null_values, subtotal_column
from aid_reporting.reports.filters import year_at_least

log = logging.getLogger(__name__)

JOINS = ("recipient_country", "sub_sector")

CUBE_ATTRIBUTES = ["country_name", "sub_sector_name", "calendar_year"]

ALL_LABELS = {
    "country_name": "ALL COUNTRIES",
    "sub_sector_name": "ALL SECTORS",
    "calendar_year": "ALL YEARS",
}

CUBE_COLUMNS = {
    "country_name": "Country",
    "sub_sector_name": "Sector",
    "calendar_year": "Year",
    "transaction_count": "Number_of_Transactions",
    "total_value": "Total_Aid_USD",
    "avg_value": "Avg_Transaction_Size_USD",
    subtotal_column("country_name"): "Country_Subtotal",
    subtotal_column("sub_sector_name"): "Sector_Subtotal",
    subtotal_column("calendar_year"): "Year_Subtotal",
}

COLUMNS = ["Country", "Total_Aid_Formatted", "Transactions", "Avg_Transaction_Size"]


def build_distribution_cube(view: pd.DataFrame, min_year: int = 2020) -> pd.DataFrame:
    """CUBE of aid over country x sub-sector x year since `min_year`.

    Rolled-up attributes carry readable labels (`ALL COUNTRIES`, ...) and
    the `*_Subtotal` flags tell subtotal rows apart. Missing names get the
    same label with their flag left False.

    Args:
        view: Join view with `recipient_country` and `sub_sector` attributes.
        min_year: First calendar year included.

    Returns:
        DataFrame with the columns of `CUBE_COLUMNS` (renamed).
    """
    facts = year_at_least(drop_null_values(view), min_year)
    cube = aggregate(facts, CUBE_ATTRIBUTES, rollup=True)

    for attribute, label in ALL_LABELS.items():
        rolled_up = cube[subtotal_column(attribute)].astype(bool)
        unnamed = cube[attribute].isna() & ~rolled_up
        if unnamed.any():
            log.warning("%d cube rows have no %s; labelled %r", int(unnamed.sum()), attribute, label)
        cube[attribute] = cube[attribute].where(~(rolled_up | unnamed), label)

    log.info("Aid distribution cube: %d rows from %d facts", len(cube), len(facts))
    return cube.rename(columns=CUBE_COLUMNS)[list(CUBE_COLUMNS.values())]


def country_aid_totals(
    view: pd.DataFrame,
    min_year: int = 2020,
    top_n: int = 10,
) -> pd.DataFrame:
    """Top `top_n` countries by total aid across all sectors and years.

    Returns:
        DataFrame with `COLUMNS`, largest total first.
    """
    cube = build_distribution_cube(view, min_year)
    mask = (
        ~cube["Country_Subtotal"].astype(bool)
        & cube["Sector_Subtotal"].astype(bool)
        & cube["Year_Subtotal"].astype(bool)
    )
    rows = (
        cube[mask]
        .sort_values("Total_Aid_USD", ascending=False, kind="mergesort")
        .head(top_n)
    )
    out = pd.DataFrame(
        {
            "Country": rows["Country"],
            "Total_Aid_Formatted": rows["Total_Aid_USD"],
            "Transactions": rows["Number_of_Transactions"],
            "Avg_Transaction_Size": rows["Avg_Transaction_Size_USD"],
        },
        columns=COLUMNS,
    )
    return out.reset_index(drop=True)
