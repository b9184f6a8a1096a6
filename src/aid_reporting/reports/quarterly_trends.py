"""Aid flow trends with moving averages.

Quarterly aid totals compared against their 4- and 8-quarter moving
averages and the previous quarter.
"""
from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from aid_reporting.aggregate.engine import aggregate
from aid_reporting.aggregate.window import lag, moving_average, safe_percent
from aid_reporting.reports.filters import value_positive, year_at_least

log = logging.getLogger(__name__)

JOINS = ("recipient_org",)

QUARTER_ORDER = ["calendar_year", "quarter_number"]

# quarters dropped from the front of the report while the 4Q average warms up
WARMUP_QUARTERS = 3

COLUMNS = [
    "Year_Quarter",
    "Total_Aid",
    "Transaction_Count",
    "Avg_Transaction",
    "Countries_Receiving_Aid",
    "4Q_Moving_Avg",
    "8Q_Moving_Avg",
    "QoQ_Growth",
    "Trend_Status",
]


def quarterly_base(view: pd.DataFrame, min_year: int = 2020) -> pd.DataFrame:
    """Aid per calendar quarter with the number of recipient countries."""
    facts = year_at_least(value_positive(view), min_year)
    return aggregate(
        facts,
        QUARTER_ORDER,
        distinct={"countries_receiving_aid": "recipient_country_key"},
    )


def quarterly_aid_flows(view: pd.DataFrame, min_year: int = 2020) -> pd.DataFrame:
    """`quarterly_base` plus moving averages, previous quarter and quarter index."""
    flows = quarterly_base(view, min_year)
    flows["moving_avg_4q"] = moving_average(flows, "total_value", QUARTER_ORDER, 4)
    flows["moving_avg_8q"] = moving_average(flows, "total_value", QUARTER_ORDER, 8)
    flows["previous_quarter_aid"] = lag(flows, "total_value", QUARTER_ORDER)
    flows["quarter_index"] = flows["calendar_year"] * 4 + flows["quarter_number"]
    flows["year_quarter"] = [
        f"{year}-Q{quarter}"
        for year, quarter in zip(flows["calendar_year"], flows["quarter_number"])
    ]
    return flows


def trend_status(total: pd.Series, moving_avg: pd.Series) -> pd.Series:
    """`Above Trend` / `Below Trend` outside +-10% of the moving average."""
    status = np.select(
        [total > moving_avg * 1.1, total < moving_avg * 0.9],
        ["Above Trend", "Below Trend"],
        default="On Trend",
    )
    return pd.Series(status, index=total.index, dtype=object)


def quarterly_trends(view: pd.DataFrame, min_year: int = 2020) -> pd.DataFrame:
    """Quarterly aid trend report, latest quarter first.

    Moving averages and the previous quarter are computed over every quarter
    since `min_year`; the first `WARMUP_QUARTERS` quarters of the index range
    are then left out of the report.

    Returns:
        DataFrame with `COLUMNS`. `QoQ_Growth` is None when there is no
        positive previous quarter.
    """
    flows = quarterly_aid_flows(view, min_year)
    cutoff = flows["quarter_index"].min() + WARMUP_QUARTERS
    rows = flows[flows["quarter_index"] >= cutoff].sort_values(
        "quarter_index", ascending=False, kind="mergesort"
    )
    log.info("Quarterly trends: %d of %d quarters reported", len(rows), len(flows))

    total = rows["total_value"].astype("float64")
    previous = rows["previous_quarter_aid"].astype("float64")
    moving_avg_4q = rows["moving_avg_4q"].astype("float64")
    out = pd.DataFrame(
        {
            "Year_Quarter": rows["year_quarter"],
            "Total_Aid": total,
            "Transaction_Count": rows["transaction_count"],
            "Avg_Transaction": rows["avg_value"],
            "Countries_Receiving_Aid": rows["countries_receiving_aid"],
            "4Q_Moving_Avg": moving_avg_4q,
            "8Q_Moving_Avg": rows["moving_avg_8q"],
            "QoQ_Growth": safe_percent(total - previous, previous.where(previous > 0)),
            "Trend_Status": trend_status(total, moving_avg_4q),
        },
        columns=COLUMNS,
    )
    return out.reset_index(drop=True)
