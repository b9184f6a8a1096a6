"""MongoDB helpers and batched collection reader.

Centralizes creation of Mongo clients and the batched reader used to pull
warehouse collections into Dask DataFrames.
"""

from __future__ import annotations

import logging
from typing import Any, List
from typing import cast, Any as TypingAny

import certifi
import pandas as pd
import dask.dataframe as dd
from pymongo import MongoClient
from pymongo.database import Database

log = logging.getLogger(__name__)

PARTITION_ROWS = 200_000


def get_client(uri: str) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    TLS (with the certifi CA bundle) is enabled for `mongodb+srv://` URIs,
    which is how hosted clusters are addressed.

    Args:
        uri: MongoDB connection URI.

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if uri.startswith("mongodb+srv://"):
        options.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(uri, **options)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient.

    Args:
        client: PyMongo MongoClient.
        db_name: Database name.

    Returns:
        A Database object.
    """
    return client[db_name]


def load_collection_to_ddf(
    collection: Any,
    projection: dict[str, Any],
    batch_size: int = 50_000,
) -> Any:
    """Load a MongoDB collection into a Dask DataFrame using batched reads.

    Documents keep their cursor order; the resulting frame carries a
    0..n-1 index so downstream steps can restore that order.
    """
    cursor = collection.find({}, projection).batch_size(batch_size)

    pdf_batches: List[pd.DataFrame] = []
    buffer: List[dict[str, Any]] = []

    for doc in cursor:
        buffer.append(doc)
        if len(buffer) >= batch_size:
            pdf_batches.append(pd.DataFrame(buffer))
            buffer.clear()

    if buffer:
        pdf_batches.append(pd.DataFrame(buffer))

    dd_mod = cast(TypingAny, dd)
    if not pdf_batches:
        return dd_mod.from_pandas(pd.DataFrame(), npartitions=1)

    pdf = pd.concat(pdf_batches, ignore_index=True)
    nparts = max(1, len(pdf) // PARTITION_ROWS)

    log.info(
        "Loaded %d documents from %s into %d Dask partitions",
        len(pdf),
        getattr(collection, "name", "collection"),
        nparts,
    )
    return dd_mod.from_pandas(pdf, npartitions=nparts)
