from __future__ import annotations

import dataclasses
import logging

import pandas as pd
import dask.dataframe as dd
import pytest

from aid_reporting.aggregate.join_view import build_join_view, resolve_joins
from aid_reporting.ingest.load_warehouse import StarSchema

from conftest import fact, make_schema


def test_resolve_joins_adds_prerequisites() -> None:
    assert resolve_joins(["sector", "recipient_country"]) == [
        "sub_sector",
        "sector",
        "recipient_org",
        "recipient_country",
    ]


def test_unknown_join_is_rejected(schema: StarSchema) -> None:
    with pytest.raises(ValueError):
        build_join_view(schema, ["donor_country"])


def test_unresolved_keys_are_dropped(schema: StarSchema, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="aid_reporting.aggregate.join_view"):
        view = build_join_view(schema, ["recipient_country"])
    assert "5 rows, 1 facts dropped by unresolved keys" in caplog.text
    assert 6 not in view["aid_fact_key"].tolist()
    assert view.loc[view["aid_fact_key"] == 5, "country_name"].item() == "Peru"


def test_only_requested_dimensions_filter_rows(schema: StarSchema) -> None:
    # fact 6 has an unknown recipient org but a valid sub-sector
    view = build_join_view(schema, ["sector"])
    assert 6 in view["aid_fact_key"].tolist()
    assert "country_name" not in view.columns
    assert set(view["sector_category"]) == {"Health", "Education"}


def test_join_view_keeps_input_order_across_partitions() -> None:
    facts = [fact(k, float(k), 20231, org=12 if k % 2 else 10) for k in (9, 3, 7, 1, 5, 2)]
    schema = make_schema(facts)
    partitioned = dataclasses.replace(
        schema, facts=dd.from_pandas(schema.facts, npartitions=3)
    )
    view = build_join_view(partitioned, ["recipient_country", "provider"])
    assert view["aid_fact_key"].tolist() == [9, 3, 7, 1, 5, 2]
    assert list(view.index) == list(range(6))


def test_join_view_does_not_modify_inputs(schema: StarSchema) -> None:
    before = schema.facts.copy()
    build_join_view(schema, ["recipient_country", "sector", "provider"])
    pd.testing.assert_frame_equal(schema.facts, before)


def test_duplicate_dimension_keys_raise(schema: StarSchema) -> None:
    countries = pd.concat([schema.countries, schema.countries.iloc[[0]]])
    broken = dataclasses.replace(schema, countries=countries)
    with pytest.raises(ValueError):
        build_join_view(broken, ["recipient_country"])
