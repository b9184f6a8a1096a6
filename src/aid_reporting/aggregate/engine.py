"""Grouping and aggregation engine.

`aggregate` groups denormalized fact rows by a set of attributes and
computes, per group:

- `transaction_count`: distinct transaction ids
- `total_value`: sum of non-null values (null when every value is null)
- `avg_value`: mean of non-null values
- any extra distinct counts requested through `distinct`

With ``rollup=True`` it reproduces CUBE semantics: one block of groups per
subset of the grouping attributes (2^n subsets, largest first, ending with
the grand total). Attributes left out of a subset hold the `ALL` sentinel and
their `<attribute>_subtotal` flag is True. As with SQL, the grand total row
is present even for an empty input: a zero count and a null total.
"""
from __future__ import annotations

import itertools
import logging
from typing import Mapping, Sequence

import pandas as pd

log = logging.getLogger(__name__)

ALL = "ALL"


def drop_null_values(pdf: pd.DataFrame, value: str = "value_usd") -> pd.DataFrame:
    """Return the rows of `pdf` whose `value` is present."""
    return pdf[pdf[value].notna()]


def subtotal_column(attribute: str) -> str:
    return f"{attribute}_subtotal"


def _sum_values(s: pd.Series) -> float:
    return s.sum(min_count=1)


def _aggregate_grouping(
    pdf: pd.DataFrame,
    keys: Sequence[str],
    value: str,
    id_column: str,
    distinct: Mapping[str, str],
) -> pd.DataFrame:
    """Aggregate `pdf` for one grouping set (`keys` may be empty)."""
    named = {
        "transaction_count": pd.NamedAgg(column=id_column, aggfunc="nunique"),
        "total_value": pd.NamedAgg(column=value, aggfunc=_sum_values),
        "avg_value": pd.NamedAgg(column=value, aggfunc="mean"),
    }
    for out_name, column in distinct.items():
        named[out_name] = pd.NamedAgg(column=column, aggfunc="nunique")

    if keys:
        return pdf.groupby(list(keys), dropna=False, sort=True).agg(**named).reset_index()

    # grand total: always one row, with a zero count and null total for an empty input
    row = {
        "transaction_count": pdf[id_column].nunique(),
        "total_value": _sum_values(pdf[value]),
        "avg_value": pdf[value].mean(),
        **{out_name: pdf[column].nunique() for out_name, column in distinct.items()},
    }
    return pd.DataFrame([row])


def grouping_sets(group_by: Sequence[str]) -> list[tuple[str, ...]]:
    """Every subset of `group_by`, largest first, ending with ``()``."""
    return [
        combo
        for size in range(len(group_by), -1, -1)
        for combo in itertools.combinations(group_by, size)
    ]


def aggregate(
    pdf: pd.DataFrame,
    group_by: Sequence[str],
    *,
    rollup: bool = False,
    value: str = "value_usd",
    id_column: str = "aid_fact_key",
    distinct: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """Group `pdf` by `group_by` and compute count/sum/average aggregates.

    Args:
        pdf: Denormalized fact rows.
        group_by: Grouping attributes (column names).
        rollup: Produce CUBE output over every subset of `group_by`.
        value: Measure column.
        id_column: Transaction id used for distinct counting.
        distinct: Extra distinct counts, ``{output_column: source_column}``.

    Returns:
        DataFrame with the grouping columns, `transaction_count`,
        `total_value`, `avg_value`, the `distinct` columns and, for rollups,
        one `<attribute>_subtotal` flag per grouping attribute.

    Raises:
        ValueError: if a referenced column is missing from `pdf`.
    """
    group_by = list(group_by)
    distinct = dict(distinct or {})

    missing = [
        c for c in [*group_by, value, id_column, *distinct.values()] if c not in pdf.columns
    ]
    if missing:
        raise ValueError(f"columns not found for aggregation: {missing}")

    columns = [*group_by, "transaction_count", "total_value", "avg_value", *distinct]
    pdf = pdf.assign(**{value: pd.to_numeric(pdf[value], errors="coerce").astype("float64")})

    if not rollup:
        out = _aggregate_grouping(pdf, group_by, value, id_column, distinct)
        return out.reindex(columns=columns).reset_index(drop=True)

    flags = [subtotal_column(c) for c in group_by]
    frames: list[pd.DataFrame] = []
    for subset in grouping_sets(group_by):
        part = _aggregate_grouping(pdf, subset, value, id_column, distinct)
        for col in group_by:
            rolled_up = col not in subset
            if rolled_up:
                part[col] = ALL
            part[subtotal_column(col)] = rolled_up
        frames.append(part.reindex(columns=[*columns, *flags]))

    out = pd.concat(frames, ignore_index=True)
    log.debug("CUBE over %s: %d grouping sets, %d rows", group_by, len(frames), len(out))
    return out
