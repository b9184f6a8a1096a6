"""Window-function engine.

Each function computes an analytic value per row over a partition of the
frame (``partition_by=()`` means one global partition) and returns a Series
aligned to the input frame's index; rows are never collapsed.

Ordering is stable: rows that tie on the ordering columns keep their input
order, so results are reproducible. Input frames must have a unique index.
"""
from __future__ import annotations

from typing import Any, Sequence

import pandas as pd


def _check_index(pdf: pd.DataFrame) -> None:
    if not pdf.index.is_unique:
        raise ValueError("window functions need a frame with a unique index")


def _ordered(
    pdf: pd.DataFrame,
    order_by: Sequence[str],
    ascending: bool | Sequence[bool],
) -> pd.DataFrame:
    """Stable sort of `pdf` by `order_by`."""
    _check_index(pdf)
    if isinstance(ascending, bool):
        ascending = [ascending] * len(order_by)
    return pdf.sort_values(list(order_by), ascending=list(ascending), kind="mergesort")


def _grouped(pdf: pd.DataFrame, partition_by: Sequence[str], value: str) -> Any:
    return pdf.groupby(list(partition_by), dropna=False, sort=False)[value]


# =========================================================
# RANKING
# =========================================================

def dense_rank(
    pdf: pd.DataFrame,
    value: str,
    partition_by: Sequence[str] = (),
    ascending: bool = False,
) -> pd.Series:
    """Rank 1..k per partition; ties share a rank and ranks have no gaps.

    Ranks by descending `value` unless `ascending` is set.
    """
    _check_index(pdf)
    if partition_by:
        ranks = _grouped(pdf, partition_by, value).rank(method="dense", ascending=ascending)
    else:
        ranks = pdf[value].rank(method="dense", ascending=ascending)
    return ranks.astype("Int64")


def percent_rank(
    pdf: pd.DataFrame,
    value: str,
    partition_by: Sequence[str] = (),
    ascending: bool = True,
) -> pd.Series:
    """Relative rank ``(rank - 1) / (rows - 1)``, 0.0 for one-row partitions.

    `rank` is the lowest position among tied rows, as SQL's RANK().
    """
    _check_index(pdf)
    if partition_by:
        grouped = _grouped(pdf, partition_by, value)
        ranks = grouped.rank(method="min", ascending=ascending)
        sizes = grouped.transform(len)
    else:
        ranks = pdf[value].rank(method="min", ascending=ascending)
        sizes = pd.Series(len(pdf), index=pdf.index)

    denominator = (sizes - 1).astype("float64")
    pct = (ranks - 1) / denominator.where(denominator > 0)
    return pct.where(denominator > 0, 0.0)


# =========================================================
# OFFSETS
# =========================================================

def _shift(
    pdf: pd.DataFrame,
    value: str,
    order_by: Sequence[str],
    partition_by: Sequence[str],
    periods: int,
    ascending: bool | Sequence[bool],
) -> pd.Series:
    ordered = _ordered(pdf, order_by, ascending)
    if partition_by:
        shifted = _grouped(ordered, partition_by, value).shift(periods)
    else:
        shifted = ordered[value].shift(periods)
    return shifted.reindex(pdf.index)


def lag(
    pdf: pd.DataFrame,
    value: str,
    order_by: Sequence[str],
    partition_by: Sequence[str] = (),
    offset: int = 1,
    ascending: bool | Sequence[bool] = True,
) -> pd.Series:
    """Value `offset` rows before the current row, null when out of range."""
    if offset < 0:
        raise ValueError(f"lag offset must be >= 0, got {offset}")
    return _shift(pdf, value, order_by, partition_by, offset, ascending)


def lead(
    pdf: pd.DataFrame,
    value: str,
    order_by: Sequence[str],
    partition_by: Sequence[str] = (),
    offset: int = 1,
    ascending: bool | Sequence[bool] = True,
) -> pd.Series:
    """Value `offset` rows after the current row, null when out of range."""
    if offset < 0:
        raise ValueError(f"lead offset must be >= 0, got {offset}")
    return _shift(pdf, value, order_by, partition_by, -offset, ascending)


def first_value(
    pdf: pd.DataFrame,
    value: str,
    order_by: Sequence[str],
    partition_by: Sequence[str] = (),
    ascending: bool | Sequence[bool] = True,
) -> pd.Series:
    """Value of the first row of each partition under the given ordering."""
    ordered = _ordered(pdf, order_by, ascending)
    if partition_by:
        firsts = _grouped(ordered, partition_by, value).transform(lambda s: s.iloc[0])
    else:
        first = ordered[value].iloc[0] if len(ordered) else None
        firsts = pd.Series(first, index=ordered.index, dtype=ordered[value].dtype)
    return firsts.reindex(pdf.index)


# =========================================================
# AGGREGATE WINDOWS
# =========================================================

def moving_average(
    pdf: pd.DataFrame,
    value: str,
    order_by: Sequence[str],
    window: int,
    partition_by: Sequence[str] = (),
    ascending: bool | Sequence[bool] = True,
) -> pd.Series:
    """Mean of the current row and up to ``window - 1`` preceding rows.

    The window shrinks at the start of each partition instead of producing
    nulls (``ROWS BETWEEN window-1 PRECEDING AND CURRENT ROW``).
    """
    if window < 1:
        raise ValueError(f"moving average window must be >= 1, got {window}")

    ordered = _ordered(pdf, order_by, ascending)
    values = ordered[value].astype("float64")
    if partition_by:
        keys = [ordered[c] for c in partition_by]
        avgs = values.groupby(keys, dropna=False, sort=False).transform(
            lambda s: s.rolling(window, min_periods=1).mean()
        )
    else:
        avgs = values.rolling(window, min_periods=1).mean()
    return avgs.reindex(pdf.index)


def percentile_cont(
    pdf: pd.DataFrame,
    value: str,
    p: float,
    partition_by: Sequence[str] = (),
) -> pd.Series:
    """Continuous percentile of `value` per partition, broadcast to each row.

    For sorted values ``v`` and ``r = p * (n - 1)`` the result is
    ``v[floor(r)] + (r - floor(r)) * (v[ceil(r)] - v[floor(r)])``. Nulls are
    ignored.
    """
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"percentile must be within [0, 1], got {p}")

    _check_index(pdf)
    values = pdf[value].astype("float64")
    if partition_by:
        keys = [pdf[c] for c in partition_by]
        return values.groupby(keys, dropna=False, sort=False).transform(
            lambda s: s.quantile(p, interpolation="linear")
        )
    return pd.Series(values.quantile(p, interpolation="linear"), index=pdf.index)


def sum_over_partition(
    pdf: pd.DataFrame,
    value: str,
    partition_by: Sequence[str] = (),
) -> pd.Series:
    """Total of `value` per partition, broadcast to each row."""
    _check_index(pdf)
    if partition_by:
        return _grouped(pdf, partition_by, value).transform("sum")
    return pd.Series(pdf[value].sum(), index=pdf.index)


def mean_over_partition(
    pdf: pd.DataFrame,
    value: str,
    partition_by: Sequence[str] = (),
) -> pd.Series:
    """Mean of `value` per partition, broadcast to each row."""
    _check_index(pdf)
    if partition_by:
        return _grouped(pdf, partition_by, value).transform("mean")
    return pd.Series(pdf[value].mean(), index=pdf.index)


def safe_percent(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """``numerator * 100 / denominator`` with None where it is not applicable.

    A missing or zero denominator yields None instead of raising or
    producing inf.
    """
    num = pd.to_numeric(numerator, errors="coerce").astype("float64")
    den = pd.to_numeric(denominator, errors="coerce").astype("float64")
    valid = den.notna() & (den != 0)
    pct = num * 100.0 / den.where(valid)
    return pct.astype(object).where(valid & pct.notna(), None)
