"""Donor organization performance.

Evaluates major donors' annual contributions: year-over-year growth,
performance against the donor's own average, share of the donor's best year
and the donor's rank among all donors of the same year.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from aid_reporting.aggregate.engine import aggregate
from aid_reporting.aggregate.window import (
    dense_rank,
    first_value,
    lag,
    lead,
    mean_over_partition,
    safe_percent,
)
from aid_reporting.reports.filters import value_positive, year_between

log = logging.getLogger(__name__)

JOINS = ("provider", "recipient_org")

GROUP_BY = ["provider_org", "provider_org_type", "calendar_year"]
BY_DONOR = ["provider_org"]

ORG_TYPE_WIDTH = 30
DONOR_NAME_WIDTH = 50

COLUMNS = [
    "Donor_Organization",
    "Org_Type",
    "Year",
    "Total_Contribution",
    "Projects",
    "Countries_Served",
    "Donor_Rank",
    "YoY_Growth",
    "Performance_vs_Avg",
    "Percent_of_Best_Year",
]


def _truncate(text: Any, width: int) -> Any:
    return text[:width] if isinstance(text, str) else None


def donor_annual_contributions(
    view: pd.DataFrame,
    first_year: int = 2022,
    last_year: int = 2025,
) -> pd.DataFrame:
    """Projects, countries served and contributions per donor and year."""
    facts = year_between(value_positive(view), first_year, last_year)
    annual = aggregate(
        facts,
        GROUP_BY,
        distinct={"countries_served": "recipient_country_key"},
    )
    annual["org_type"] = annual["provider_org_type"].map(
        lambda t: _truncate(t, ORG_TYPE_WIDTH)
    )
    return annual


def donor_comparisons(
    view: pd.DataFrame,
    first_year: int = 2022,
    last_year: int = 2025,
    min_contribution: float = 1_000_000,
) -> pd.DataFrame:
    """Annual contributions above `min_contribution` with comparison windows.

    Adds `previous_year_contribution` / `next_year_contribution` (the
    donor's neighbouring reported years), `best_year_contribution`,
    `donor_avg_contribution` and `donor_rank` (per year, largest first).
    """
    annual = donor_annual_contributions(view, first_year, last_year)
    donors = annual[annual["total_value"] > min_contribution].copy()

    donors["previous_year_contribution"] = lag(donors, "total_value", ["calendar_year"], BY_DONOR)
    donors["next_year_contribution"] = lead(donors, "total_value", ["calendar_year"], BY_DONOR)
    donors["best_year_contribution"] = first_value(
        donors, "total_value", ["total_value"], BY_DONOR, ascending=False
    )
    donors["donor_avg_contribution"] = mean_over_partition(donors, "total_value", BY_DONOR)
    donors["donor_rank"] = dense_rank(donors, "total_value", ["calendar_year"])
    return donors


def donor_performance(
    view: pd.DataFrame,
    report_year: int = 2025,
    first_year: int = 2022,
    last_year: int = 2025,
    min_contribution: float = 1_000_000,
    top_n: int = 30,
) -> pd.DataFrame:
    """Top `top_n` donors of `report_year`, best ranked first.

    Growth and comparison percentages are None when the reference value is
    missing or zero.

    Returns:
        DataFrame with `COLUMNS`.
    """
    donors = donor_comparisons(view, first_year, last_year, min_contribution)
    in_year = donors["calendar_year"].eq(report_year).fillna(False).astype(bool)
    rows = (
        donors[in_year]
        .sort_values(["donor_rank", "total_value"], ascending=[True, False], kind="mergesort")
        .head(top_n)
    )
    log.info("Donor performance %d: %d donors", report_year, len(rows))

    total = rows["total_value"]
    previous = rows["previous_year_contribution"]
    average = rows["donor_avg_contribution"]
    out = pd.DataFrame(
        {
            "Donor_Organization": rows["provider_org"].map(
                lambda n: n[:DONOR_NAME_WIDTH].upper() if isinstance(n, str) else n
            ),
            "Org_Type": rows["org_type"],
            "Year": rows["calendar_year"],
            "Total_Contribution": total,
            "Projects": rows["transaction_count"],
            "Countries_Served": rows["countries_served"],
            "Donor_Rank": rows["donor_rank"],
            "YoY_Growth": safe_percent(total - previous, previous),
            "Performance_vs_Avg": safe_percent(total - average, average),
            "Percent_of_Best_Year": safe_percent(total, rows["best_year_contribution"]),
        },
        columns=COLUMNS,
    )
    return out.reset_index(drop=True)
