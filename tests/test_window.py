from __future__ import annotations

import pandas as pd
import pytest

from aid_reporting.aggregate.window import (
    dense_rank,
    first_value,
    lag,
    lead,
    mean_over_partition,
    moving_average,
    percent_rank,
    percentile_cont,
    safe_percent,
    sum_over_partition,
)


def _partitioned() -> pd.DataFrame:
    return pd.DataFrame({
        "donor": ["a", "a", "a", "b", "b"],
        "year": [2023, 2025, 2024, 2024, 2023],
        "total": [10.0, 30.0, 20.0, 5.0, 7.0],
    })


def test_dense_rank_has_no_gaps() -> None:
    pdf = pd.DataFrame({"total": [10.0, 30.0, 30.0, 20.0]})
    assert dense_rank(pdf, "total").tolist() == [3, 1, 1, 2]


def test_dense_rank_per_partition() -> None:
    ranks = dense_rank(_partitioned(), "total", ["donor"])
    assert ranks.tolist() == [3, 1, 2, 2, 1]


def test_percent_rank_bounds_and_ties() -> None:
    pdf = pd.DataFrame({"total": [1.0, 2.0, 2.0, 3.0]})
    pct = percent_rank(pdf, "total")
    assert pct.tolist() == pytest.approx([0.0, 1 / 3, 1 / 3, 1.0])


def test_percent_rank_single_row_partition_is_zero() -> None:
    pdf = pd.DataFrame({"g": ["x", "y", "y"], "total": [4.0, 1.0, 2.0]})
    assert percent_rank(pdf, "total", ["g"]).tolist() == [0.0, 0.0, 1.0]


def test_lag_and_lead_follow_partition_order() -> None:
    pdf = _partitioned()
    prev = lag(pdf, "total", ["year"], ["donor"])
    nxt = lead(pdf, "total", ["year"], ["donor"])
    # a: 2023=10, 2024=20, 2025=30 | b: 2023=7, 2024=5
    assert pd.isna(prev[0]) and prev[2] == 10.0 and prev[1] == 20.0
    assert pd.isna(prev[4]) and prev[3] == 7.0
    assert nxt[0] == 20.0 and pd.isna(nxt[1]) and pd.isna(nxt[3])


def test_lag_offset_zero_is_identity() -> None:
    pdf = _partitioned()
    assert lag(pdf, "total", ["year"], ["donor"], offset=0).tolist() == pdf["total"].tolist()


def test_lag_rejects_negative_offset() -> None:
    with pytest.raises(ValueError):
        lag(_partitioned(), "total", ["year"], offset=-1)


def test_lag_ties_keep_input_order() -> None:
    pdf = pd.DataFrame({"year": [2024, 2024, 2024], "total": [1.0, 2.0, 3.0]})
    assert lag(pdf, "total", ["year"]).tolist()[1:] == [1.0, 2.0]


def test_first_value_descending_is_partition_max() -> None:
    best = first_value(_partitioned(), "total", ["total"], ["donor"], ascending=False)
    assert best.tolist() == [30.0, 30.0, 30.0, 7.0, 7.0]


def test_moving_average_shrinks_at_start() -> None:
    pdf = pd.DataFrame({"q": [3, 1, 5, 2, 4], "total": [30.0, 10.0, 50.0, 20.0, 40.0]})
    avg = moving_average(pdf, "total", ["q"], 4)
    by_q = dict(zip(pdf["q"], avg))
    assert [by_q[q] for q in (1, 2, 3, 4, 5)] == pytest.approx([10, 15, 20, 25, 35])


def test_moving_average_rejects_empty_window() -> None:
    with pytest.raises(ValueError):
        moving_average(_partitioned(), "total", ["year"], 0)


def test_percentile_cont_interpolates() -> None:
    pdf = pd.DataFrame({"total": [50.0, 10.0, 40.0, 20.0, 30.0]})
    assert percentile_cont(pdf, "total", 0.85).iloc[0] == pytest.approx(44.0)
    assert percentile_cont(pdf, "total", 1.0).iloc[0] == 50.0
    assert percentile_cont(pdf, "total", 0.0).iloc[0] == 10.0


def test_percentile_cont_per_partition() -> None:
    out = percentile_cont(_partitioned(), "total", 0.5, ["donor"])
    assert out.tolist() == pytest.approx([20.0, 20.0, 20.0, 6.0, 6.0])


def test_percentile_cont_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        percentile_cont(_partitioned(), "total", 1.5)


def test_partition_totals_and_means_are_broadcast() -> None:
    pdf = _partitioned()
    assert sum_over_partition(pdf, "total", ["donor"]).tolist() == [60.0, 60.0, 60.0, 12.0, 12.0]
    assert mean_over_partition(pdf, "total", ["donor"]).tolist() == [20.0, 20.0, 20.0, 6.0, 6.0]
    assert sum_over_partition(pdf, "total").tolist() == [72.0] * 5


def test_safe_percent_marks_zero_and_missing_denominators() -> None:
    pct = safe_percent(pd.Series([50.0, 1.0, 1.0]), pd.Series([200.0, 0.0, None]))
    assert pct[0] == 25.0
    assert pct[1] is None
    assert pct[2] is None
