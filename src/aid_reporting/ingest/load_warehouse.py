"""Read the aid star schema out of MongoDB.

The fact collection can be large and is kept as a partitioned Dask DataFrame;
the dimension collections are small and are materialized to pandas so they
can be broadcast-joined against every fact partition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import pandas as pd

from aid_reporting import config
from aid_reporting.clean.validate import drop_invalid_rows
from aid_reporting.db import load_collection_to_ddf
from aid_reporting.models import (
    AidTransaction,
    ProviderOrg,
    RecipientCountry,
    RecipientOrg,
    Sector,
    SubSector,
)

log = logging.getLogger(__name__)

FACT_COLUMNS = [
    "aid_fact_key",
    "value_usd",
    "time_key",
    "recipient_org_key",
    "provider_org_key",
    "sub_sector_key",
]

DIMENSION_COLUMNS: dict[str, list[str]] = {
    "recipient_orgs": ["recipient_org_key", "recipient_country_key"],
    "countries": ["recipient_country_key", "country_name"],
    "sub_sectors": ["sub_sector_key", "sub_sector_name", "sector_key"],
    "sectors": ["sector_key", "sector_category"],
    "providers": ["provider_org_key", "provider_org", "provider_org_type"],
}

_DIMENSION_COLLECTIONS = {
    "recipient_orgs": config.RECIPIENT_ORG_COLLECTION,
    "countries": config.COUNTRY_COLLECTION,
    "sub_sectors": config.SUB_SECTOR_COLLECTION,
    "sectors": config.SECTOR_COLLECTION,
    "providers": config.PROVIDER_COLLECTION,
}

DIMENSION_MODELS = {
    "recipient_orgs": RecipientOrg,
    "countries": RecipientCountry,
    "sub_sectors": SubSector,
    "sectors": Sector,
    "providers": ProviderOrg,
}


@dataclass(frozen=True)
class StarSchema:
    """Read-only snapshot of the fact table and its dimension tables.

    Attributes:
        facts: Fact rows (Dask or pandas DataFrame) with `FACT_COLUMNS`.
        recipient_orgs: Recipient organization -> country key.
        countries: Recipient country names.
        sub_sectors: Sub-sector names and their parent sector key.
        sectors: Sector categories.
        providers: Provider (donor) organizations and their type.
    """
    facts: Any
    recipient_orgs: pd.DataFrame
    countries: pd.DataFrame
    sub_sectors: pd.DataFrame
    sectors: pd.DataFrame
    providers: pd.DataFrame


def _projection(columns: list[str]) -> dict[str, Any]:
    """Mongo projection selecting the warehouse spelling of `columns`."""
    proj: dict[str, Any] = {"_id": False}
    for col in columns:
        proj[_warehouse_name(col)] = True
    return proj


def _warehouse_name(column: str) -> str:
    """`value_usd` -> `Value_USD`, `aid_fact_key` -> `Aid_Fact_Key`."""
    return "_".join("USD" if part == "usd" else part.capitalize() for part in column.split("_"))


def normalize_columns(frame: Any, columns: list[str]) -> Any:
    """Rename warehouse columns to snake_case and make sure all exist.

    Works for pandas and Dask frames alike.
    """
    frame = frame.rename(columns={c: c.lower() for c in frame.columns})
    for col in columns:
        if col not in frame.columns:
            frame = frame.assign(**{col: None})
    return frame[columns]


def load_star_schema(db: Any, batch_size: int = 50_000) -> StarSchema:
    """Build a `StarSchema` from the warehouse collections in `db`.

    Rows failing their source model are dropped with a warning.

    Args:
        db: PyMongo database holding the fact and dimension collections.
        batch_size: Cursor batch size used while reading.

    Returns:
        StarSchema with partitioned facts and pandas dimension tables.
    """
    facts = load_collection_to_ddf(
        db[config.FACT_COLLECTION], _projection(FACT_COLUMNS), batch_size
    )
    facts = normalize_columns(facts, FACT_COLUMNS)
    facts = facts.map_partitions(drop_invalid_rows, model=AidTransaction, meta=facts._meta)

    dims: dict[str, pd.DataFrame] = {}
    for name, collection_name in _DIMENSION_COLLECTIONS.items():
        columns = DIMENSION_COLUMNS[name]
        ddf = load_collection_to_ddf(db[collection_name], _projection(columns), batch_size)
        table = normalize_columns(ddf.compute(), columns)
        dims[name] = drop_invalid_rows(table, DIMENSION_MODELS[name])
        log.info("Dimension %s: %d rows", collection_name, len(dims[name]))

    return StarSchema(facts=facts, **dims)
