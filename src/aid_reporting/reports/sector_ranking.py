"""Aid effectiveness ranking.

Ranks sub-sectors within each year by total aid received, keeps the
high-impact ones (at or above the yearly 85th percentile of sub-sector
totals) and measures how concentrated funding is among them.
"""
from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from aid_reporting.aggregate.engine import aggregate
from aid_reporting.aggregate.window import (
    dense_rank,
    percent_rank,
    percentile_cont,
    safe_percent,
    sum_over_partition,
)
from aid_reporting.reports.filters import value_positive, year_in

log = logging.getLogger(__name__)

JOINS = ("sector",)

GROUP_BY = ["sector_category", "sub_sector_name", "calendar_year"]
BY_YEAR = ["calendar_year"]

COLUMNS = [
    "Sector_Category",
    "Sub_Sector_Name",
    "Year",
    "Total_Aid",
    "Transactions",
    "Sector_Rank",
    "Percent_of_Total_Aid",
    "Percentile_Rank",
    "Avg_Transaction_Size",
]


def sector_aid_summary(
    view: pd.DataFrame,
    years: Iterable[int] = (2023, 2024, 2025),
) -> pd.DataFrame:
    """Aid per sector category, sub-sector and year (positive amounts only)."""
    facts = year_in(value_positive(view), years)
    return aggregate(facts, GROUP_BY)


def sector_ranking(
    view: pd.DataFrame,
    years: Iterable[int] = (2023, 2024, 2025),
    percentile: float = 0.85,
) -> pd.DataFrame:
    """High-impact sub-sectors per year with rank and funding share.

    The percentile threshold is taken over every sub-sector of the year;
    rank, share of total and percent rank are then computed among the
    sub-sectors that meet it.

    Args:
        view: Join view with `sector` attributes.
        years: Calendar years to report.
        percentile: Threshold percentile (0-1) of yearly sub-sector totals.

    Returns:
        DataFrame with `COLUMNS`, latest year first and largest total first.
    """
    summary = sector_aid_summary(view, years)
    summary["threshold"] = percentile_cont(summary, "total_value", percentile, BY_YEAR)

    top = summary[summary["total_value"] >= summary["threshold"]].copy()
    top["sector_rank"] = dense_rank(top, "total_value", BY_YEAR)
    top["percent_of_total"] = safe_percent(
        top["total_value"], sum_over_partition(top, "total_value", BY_YEAR)
    )
    top["percentile_rank"] = percent_rank(top, "total_value", BY_YEAR)

    top = top.sort_values(
        ["calendar_year", "total_value"], ascending=[False, False], kind="mergesort"
    )
    log.info("Sector ranking: %d of %d sub-sector years kept", len(top), len(summary))

    out = pd.DataFrame(
        {
            "Sector_Category": top["sector_category"],
            "Sub_Sector_Name": top["sub_sector_name"],
            "Year": top["calendar_year"],
            "Total_Aid": top["total_value"],
            "Transactions": top["transaction_count"],
            "Sector_Rank": top["sector_rank"],
            "Percent_of_Total_Aid": top["percent_of_total"],
            "Percentile_Rank": top["percentile_rank"],
            "Avg_Transaction_Size": top["avg_value"],
        },
        columns=COLUMNS,
    )
    return out.reset_index(drop=True)
