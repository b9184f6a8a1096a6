"""Most recent time keys present in the fact table.

A quick look at which periods the warehouse has data for.
"""
from __future__ import annotations

from typing import Any

import pandas as pd

COLUMNS = ["Time_Key"]


def recent_time_keys(facts: Any, limit: int = 50) -> pd.DataFrame:
    """Distinct `time_key` values, latest first.

    Args:
        facts: Fact rows as a Dask or pandas DataFrame.
        limit: Maximum number of keys returned.
    """
    keys = facts["time_key"].dropna().drop_duplicates()
    if not isinstance(keys, pd.Series):
        keys = keys.compute()

    keys = pd.to_numeric(keys, errors="coerce").dropna().astype("int64")
    latest = keys.drop_duplicates().sort_values(ascending=False).head(limit)
    return pd.DataFrame({"Time_Key": latest.to_numpy()}, columns=COLUMNS)
