"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the warehouse connection and loader options from the environment
(including a check that `AID_BATCH_SIZE` is a positive integer).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

FACT_COLLECTION = "fact_aid_transactions"
RECIPIENT_ORG_COLLECTION = "dim_recipient_org"
COUNTRY_COLLECTION = "dim_recipient_country"
SUB_SECTOR_COLLECTION = "dim_sub_sector"
SECTOR_COLLECTION = "dim_sector"
PROVIDER_COLLECTION = "dim_provider_org"


@dataclass(frozen=True)
class Settings:
    """Container for report configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI of the warehouse.
        mongo_db: Warehouse database name.
        batch_size: Number of documents read per cursor batch.
        log_path: File the CLI writes its log to.
    """
    mongo_uri: str
    mongo_db: str
    batch_size: int
    log_path: Path


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `AID_BATCH_SIZE` is not a positive integer.
    """
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db = os.getenv("MONGO_DB", "financial_aid_db")
    raw_batch_size = os.getenv("AID_BATCH_SIZE", "50000").strip()
    log_path = Path(os.getenv("AID_LOG_PATH", "logs/aid_reporting.log"))

    try:
        batch_size = int(raw_batch_size)
    except ValueError:
        batch_size = 0

    if batch_size <= 0:
        raise RuntimeError(
            f"AID_BATCH_SIZE must be a positive integer, got {raw_batch_size!r}. "
            "Fix it in .env (example: AID_BATCH_SIZE=50000)."
        )

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        batch_size=batch_size,
        log_path=log_path,
    )
