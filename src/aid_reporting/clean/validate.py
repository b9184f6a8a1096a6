"""Validation utilities for warehouse rows.

`load_star_schema` runs every fact partition and dimension table through
`drop_invalid_rows` with its Pydantic source model. Dimension tables are
also checked for the one-row-per-key property the join view depends on.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd
from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)


def _records(pdf: pd.DataFrame) -> list[dict[str, Any]]:
    """Rows of `pdf` as dicts with missing values (NaN/NA) as ``None``."""
    return pdf.astype(object).where(pdf.notna(), None).to_dict(orient="records")


def validate_partition(
    pdf: pd.DataFrame,
    model: type[BaseModel],
) -> tuple[list[dict[str, Any]], int]:
    """Validate a pandas partition of records using Pydantic.

    Validated records are dumped using field aliases where the model
    defines them.

    Args:
        pdf: Pandas DataFrame for the partition.
        model: Pydantic model each row must satisfy.

    Returns:
        A tuple of (list_of_validated_records, bad_count).
    """
    good: list[dict[str, Any]] = []
    bad = 0

    for rec in _records(pdf):
        try:
            m = model.model_validate(rec)
            good.append(m.model_dump(mode="python", by_alias=True))
        except ValidationError:
            bad += 1

    if bad:
        log.warning("%d of %d rows failed %s validation", bad, len(pdf), model.__name__)
    return good, bad


def drop_invalid_rows(pdf: pd.DataFrame, model: type[BaseModel]) -> pd.DataFrame:
    """Keep the rows of `pdf` that satisfy `model`, with their dtypes and index.

    Applied per partition via map_partitions for Dask frames.
    """
    keep: list[bool] = []
    for rec in _records(pdf):
        try:
            model.model_validate(rec)
            keep.append(True)
        except ValidationError:
            keep.append(False)

    mask = pd.Series(keep, index=pdf.index, dtype=bool)
    dropped = int((~mask).sum())
    if dropped:
        log.warning("Dropped %d of %d rows failing %s validation", dropped, len(pdf), model.__name__)
    return pdf[mask]


def ensure_unique_keys(pdf: pd.DataFrame, key: str, name: str) -> None:
    """Raise if a dimension table holds more than one row for a key.

    Raises:
        ValueError: listing (up to five of) the duplicated keys.
    """
    dupes = pdf.loc[pdf[key].duplicated(keep=False) & pdf[key].notna(), key]
    if not dupes.empty:
        sample = sorted(dupes.unique().tolist())[:5]
        raise ValueError(f"dimension {name} has duplicate {key} values: {sample}")
