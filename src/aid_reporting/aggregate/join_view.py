"""Denormalized record view over the star schema.

`build_join_view` pairs each fact row with the dimension attributes a report
needs. Joins are inner joins: a fact whose key does not resolve in any of the
requested dimensions is dropped. The result keeps the input fact order.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable
from typing import cast, Any as TypingAny

import pandas as pd
import dask.dataframe as dd
from dask import compute

from aid_reporting.clean.transform import clean_facts_ddf
from aid_reporting.clean.validate import ensure_unique_keys
from aid_reporting.ingest.load_warehouse import StarSchema

log = logging.getLogger(__name__)

_POSITION = "_fact_position"

# join name -> (StarSchema attribute, join key, joins it depends on)
JOINS: dict[str, tuple[str, str, tuple[str, ...]]] = {
    "recipient_org": ("recipient_orgs", "recipient_org_key", ()),
    "recipient_country": ("countries", "recipient_country_key", ("recipient_org",)),
    "sub_sector": ("sub_sectors", "sub_sector_key", ()),
    "sector": ("sectors", "sector_key", ("sub_sector",)),
    "provider": ("providers", "provider_org_key", ()),
}


def resolve_joins(joins: Iterable[str]) -> list[str]:
    """Expand `joins` with their prerequisites, in a valid join order.

    Raises:
        ValueError: for an unknown join name.
    """
    ordered: list[str] = []

    def _visit(name: str) -> None:
        if name not in JOINS:
            raise ValueError(f"unknown join {name!r}; expected one of {sorted(JOINS)}")
        for dep in JOINS[name][2]:
            _visit(dep)
        if name not in ordered:
            ordered.append(name)

    for name in joins:
        _visit(name)
    return ordered


def _with_positions(facts: Any) -> Any:
    """Return facts as a Dask frame carrying each row's input position."""
    dd_mod = cast(TypingAny, dd)
    if isinstance(facts, pd.DataFrame):
        pdf = facts.reset_index(drop=True)
        pdf[_POSITION] = range(len(pdf))
        return dd_mod.from_pandas(pdf, npartitions=1)

    # loaders hand over frames indexed 0..n-1 in cursor order
    ddf = facts.reset_index()
    return ddf.rename(columns={ddf.columns[0]: _POSITION})


def _dimension(schema: StarSchema, name: str) -> pd.DataFrame:
    attr, key, _ = JOINS[name]
    table: pd.DataFrame = getattr(schema, attr)
    ensure_unique_keys(table, key, attr)
    table = table.dropna(subset=[key]).copy()
    for col in table.columns:
        if col.endswith("_key"):
            table[col] = pd.to_numeric(table[col], errors="coerce").astype("Int64")
    return table


def build_join_view(schema: StarSchema, joins: Iterable[str]) -> pd.DataFrame:
    """Join cleaned fact rows with the requested dimensions.

    Args:
        schema: Star schema snapshot (not modified).
        joins: Dimension joins the caller needs, e.g. ``["recipient_country"]``.

    Returns:
        pandas DataFrame of fact columns plus the joined dimension attributes,
        in input fact order.
    """
    names = resolve_joins(joins)

    facts = _with_positions(clean_facts_ddf(schema.facts))
    ddf = facts
    for name in names:
        _, key, _ = JOINS[name]
        # dimension tables are small: broadcast them to every fact partition
        ddf = ddf.merge(_dimension(schema, name), on=key, how="inner")

    # `compute` is untyped in our environment; cast to Any before calling
    total, pdf = cast(TypingAny, compute)(facts.shape[0], ddf)
    pdf = (
        pdf.sort_values(_POSITION, kind="mergesort")
        .drop(columns=[_POSITION])
        .reset_index(drop=True)
    )
    log.info(
        "Join view (%s): %d rows, %d facts dropped by unresolved keys",
        ", ".join(names) or "facts only",
        len(pdf),
        int(total) - len(pdf),
    )
    return pdf
