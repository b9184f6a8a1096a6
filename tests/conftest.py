from __future__ import annotations

import pandas as pd
import pytest

from aid_reporting.ingest.load_warehouse import StarSchema


def make_schema(facts: list[dict]) -> StarSchema:
    """Small star schema: two countries, two sectors, three donors."""
    return StarSchema(
        facts=pd.DataFrame(
            facts,
            columns=[
                "aid_fact_key",
                "value_usd",
                "time_key",
                "recipient_org_key",
                "provider_org_key",
                "sub_sector_key",
            ],
        ),
        recipient_orgs=pd.DataFrame(
            {"recipient_org_key": [10, 11, 12], "recipient_country_key": [1, 1, 2]}
        ),
        countries=pd.DataFrame(
            {"recipient_country_key": [1, 2], "country_name": ["Kenya", "Peru"]}
        ),
        sub_sectors=pd.DataFrame(
            {
                "sub_sector_key": [1000, 1001, 2000],
                "sub_sector_name": ["Malaria Control", "Vaccines", "Primary Schools"],
                "sector_key": [100, 100, 200],
            }
        ),
        sectors=pd.DataFrame(
            {"sector_key": [100, 200], "sector_category": ["Health", "Education"]}
        ),
        providers=pd.DataFrame(
            {
                "provider_org_key": [50, 51, 52],
                "provider_org": ["Global Health Fund", "Education Trust", "Relief Partners"],
                "provider_org_type": ["Multilateral", "Private Foundation", "NGO"],
            }
        ),
    )


def fact(key: int, value: float | None, time_key: int, org: int = 10, provider: int = 50, sub_sector: int = 1000) -> dict:
    return {
        "aid_fact_key": key,
        "value_usd": value,
        "time_key": time_key,
        "recipient_org_key": org,
        "provider_org_key": provider,
        "sub_sector_key": sub_sector,
    }


@pytest.fixture
def schema() -> StarSchema:
    return make_schema(
        [
            fact(1, 100.0, 20201, org=10, sub_sector=1000),
            fact(2, 300.0, 20212, org=11, sub_sector=2000),
            fact(3, None, 20213, org=10, sub_sector=1000),
            fact(4, 50.0, 20194, org=10, sub_sector=1000),
            fact(5, 200.0, 20221, org=12, sub_sector=1001, provider=51),
            fact(6, 999.0, 20221, org=99, sub_sector=1001),
        ]
    )
