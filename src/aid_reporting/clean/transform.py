"""Cleaning and normalization of fact rows.

This module contains transformations that are applied partition-wise using
Dask. The output has a stable schema: numeric measures, nullable integer
keys, and the calendar year and quarter decoded from `time_key`.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from aid_reporting.timekeys import add_time_parts

log = logging.getLogger(__name__)

KEY_COLUMNS = ["aid_fact_key", "recipient_org_key", "provider_org_key", "sub_sector_key"]


def clean_facts_partition(pdf: pd.DataFrame) -> pd.DataFrame:
    """Partition-level cleaning function applied via map_partitions.

    Args:
        pdf: Pandas DataFrame holding fact rows.

    Returns:
        Cleaned Pandas DataFrame with `calendar_year` and `quarter_number`.
    """
    pdf = pdf.copy()

    # unparseable amounts become null and are ignored by the aggregates
    pdf["value_usd"] = pd.to_numeric(pdf["value_usd"], errors="coerce").astype("float64")

    for col in KEY_COLUMNS:
        if col in pdf.columns:
            pdf[col] = pd.to_numeric(pdf[col], errors="coerce").astype("Int64")

    return add_time_parts(pdf)


def clean_facts_ddf(facts: Any) -> Any:
    """Clean fact rows held in a Dask (or pandas) DataFrame.

    Returns:
        A frame of the same kind with a stable schema for the join view.
    """
    if isinstance(facts, pd.DataFrame):
        return clean_facts_partition(facts)

    log.info("Cleaning %d fact partitions", facts.npartitions)
    meta = clean_facts_partition(facts._meta)
    return facts.map_partitions(clean_facts_partition, meta=meta)
