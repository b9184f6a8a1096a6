from __future__ import annotations

import pandas as pd
import pytest

from aid_reporting.aggregate.engine import ALL, aggregate, drop_null_values, grouping_sets


def _facts() -> pd.DataFrame:
    return pd.DataFrame([
        {"aid_fact_key": 1, "country": "A", "year": 2020, "value_usd": 100.0},
        {"aid_fact_key": 2, "country": "A", "year": 2020, "value_usd": 300.0},
        {"aid_fact_key": 3, "country": "B", "year": 2020, "value_usd": 200.0},
        {"aid_fact_key": 4, "country": "A", "year": 2021, "value_usd": 50.0},
    ])


def test_group_by_country_for_one_year() -> None:
    facts = _facts()
    out = aggregate(facts[facts["year"] == 2020], ["country"])
    rows = {r["country"]: r for r in out.to_dict("records")}
    assert rows["A"]["transaction_count"] == 2
    assert rows["A"]["total_value"] == 400.0
    assert rows["A"]["avg_value"] == 200.0
    assert rows["B"]["transaction_count"] == 1
    assert rows["B"]["total_value"] == 200.0
    assert rows["B"]["avg_value"] == 200.0


def test_nulls_are_left_out_of_the_average() -> None:
    facts = pd.DataFrame([
        {"aid_fact_key": 1, "country": "A", "value_usd": 100.0},
        {"aid_fact_key": 2, "country": "A", "value_usd": None},
    ])
    out = aggregate(facts, ["country"])
    row = out.iloc[0]
    assert row["transaction_count"] == 2
    assert row["total_value"] == 100.0
    assert row["avg_value"] == 100.0
    assert len(drop_null_values(facts)) == 1


def test_distinct_transactions_are_counted_once() -> None:
    facts = pd.DataFrame([
        {"aid_fact_key": 1, "country": "A", "value_usd": 10.0},
        {"aid_fact_key": 1, "country": "A", "value_usd": 10.0},
    ])
    out = aggregate(facts, ["country"])
    assert out.loc[0, "transaction_count"] == 1
    assert out.loc[0, "transaction_count"] <= len(facts)


def test_extra_distinct_counts() -> None:
    facts = _facts().assign(partner=["x", "y", "x", "x"])
    out = aggregate(facts, ["country"], distinct={"partners": "partner"})
    assert dict(zip(out["country"], out["partners"])) == {"A": 2, "B": 1}


def test_grouping_sets_cover_every_subset() -> None:
    sets = grouping_sets(["a", "b", "c"])
    assert len(sets) == 8
    assert sets[0] == ("a", "b", "c")
    assert sets[-1] == ()


def test_cube_produces_every_grouping_set_and_grand_total() -> None:
    facts = _facts()
    cube = aggregate(facts, ["country", "year"], rollup=True)

    flag_sets = {
        (bool(r["country_subtotal"]), bool(r["year_subtotal"]))
        for r in cube.to_dict("records")
    }
    assert len(flag_sets) == 4

    # A-2020, A-2021, B-2020 | A, B | 2020, 2021 | grand total
    assert len(cube) == 8

    grand = cube[cube["country_subtotal"].astype(bool) & cube["year_subtotal"].astype(bool)]
    assert len(grand) == 1
    assert grand["country"].item() == ALL
    assert grand["year"].item() == ALL
    assert grand["total_value"].item() == facts["value_usd"].sum()
    assert grand["transaction_count"].item() == 4


def test_cube_subtotal_aggregates_over_rolled_up_attribute() -> None:
    cube = aggregate(_facts(), ["country", "year"], rollup=True)
    a_all_years = cube[
        (cube["country"] == "A")
        & ~cube["country_subtotal"].astype(bool)
        & cube["year_subtotal"].astype(bool)
    ]
    assert a_all_years["total_value"].item() == 450.0
    assert a_all_years["year"].item() == ALL


def test_sum_equals_count_times_average() -> None:
    cube = aggregate(_facts(), ["country", "year"], rollup=True)
    for r in cube.to_dict("records"):
        assert r["total_value"] == pytest.approx(r["transaction_count"] * r["avg_value"])


def test_empty_input_gives_empty_groups_and_a_grand_total() -> None:
    empty = _facts().iloc[0:0]
    plain = aggregate(empty, ["country"])
    cube = aggregate(empty, ["country", "year"], rollup=True)
    assert plain.empty
    assert len(cube) == 1
    grand = cube.iloc[0]
    assert grand["country"] == ALL and grand["year"] == ALL
    assert grand["transaction_count"] == 0
    assert pd.isna(grand["total_value"])
    assert bool(grand["country_subtotal"]) and bool(grand["year_subtotal"])
    assert list(plain.columns) == ["country", "transaction_count", "total_value", "avg_value"]
    assert "year_subtotal" in cube.columns


def test_unknown_column_is_rejected() -> None:
    with pytest.raises(ValueError):
        aggregate(_facts(), ["region"])
