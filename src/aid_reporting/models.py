"""Pydantic models for warehouse rows and report outputs.

Source models describe one document of each warehouse collection after its
columns have been renamed to snake_case. Report models describe one output
row; their aliases are the report's column names.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, ConfigDict, field_validator

from aid_reporting.timekeys import decode_time_key


class AidTransaction(BaseModel):
    """Schema for one fact row of `fact_aid_transactions`."""
    model_config = ConfigDict(extra="forbid")
    aid_fact_key: int
    value_usd: float | None
    time_key: int = Field(..., ge=0)
    recipient_org_key: int
    provider_org_key: int
    sub_sector_key: int

    @field_validator("time_key")
    @classmethod
    def _quarter_digit(cls, v: int) -> int:
        decode_time_key(v)
        return v

class RecipientOrg(BaseModel):
    model_config = ConfigDict(extra="forbid")
    recipient_org_key: int
    recipient_country_key: int

class RecipientCountry(BaseModel):
    model_config = ConfigDict(extra="forbid")
    recipient_country_key: int
    country_name: str

class SubSector(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sub_sector_key: int
    sub_sector_name: str
    sector_key: int

class Sector(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sector_key: int
    sector_category: str

class ProviderOrg(BaseModel):
    model_config = ConfigDict(extra="forbid")
    provider_org_key: int
    provider_org: str
    provider_org_type: str | None


# =========================================================
# REPORT ROWS
# =========================================================

class _ReportRow(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class CountryAidTotal(_ReportRow):
    """One country of the aid distribution cube report."""
    country: str = Field(alias="Country")
    total_aid: float = Field(alias="Total_Aid_Formatted")
    transactions: int = Field(..., ge=0, alias="Transactions")
    avg_transaction_size: float = Field(alias="Avg_Transaction_Size")


class SectorRanking(_ReportRow):
    """One high-impact sub-sector of a year in the sector ranking report."""
    sector_category: str = Field(alias="Sector_Category")
    sub_sector_name: str = Field(alias="Sub_Sector_Name")
    year: int = Field(alias="Year")
    total_aid: float = Field(alias="Total_Aid")
    transactions: int = Field(..., ge=0, alias="Transactions")
    sector_rank: int = Field(..., ge=1, alias="Sector_Rank")
    percent_of_total_aid: float | None = Field(alias="Percent_of_Total_Aid")
    percentile_rank: float = Field(..., ge=0.0, le=1.0, alias="Percentile_Rank")
    avg_transaction_size: float = Field(alias="Avg_Transaction_Size")


class DonorPerformance(_ReportRow):
    """One donor's contribution in the report year."""
    donor_organization: str = Field(alias="Donor_Organization")
    org_type: str | None = Field(alias="Org_Type")
    year: int = Field(alias="Year")
    total_contribution: float = Field(alias="Total_Contribution")
    projects: int = Field(..., ge=0, alias="Projects")
    countries_served: int = Field(..., ge=0, alias="Countries_Served")
    donor_rank: int = Field(..., ge=1, alias="Donor_Rank")
    yoy_growth: float | None = Field(alias="YoY_Growth")
    performance_vs_avg: float | None = Field(alias="Performance_vs_Avg")
    percent_of_best_year: float | None = Field(alias="Percent_of_Best_Year")


class QuarterlyAidFlow(_ReportRow):
    """One quarter of the aid flow trend report."""
    year_quarter: str = Field(alias="Year_Quarter")
    total_aid: float = Field(alias="Total_Aid")
    transaction_count: int = Field(..., ge=0, alias="Transaction_Count")
    avg_transaction: float = Field(alias="Avg_Transaction")
    countries_receiving_aid: int = Field(..., ge=0, alias="Countries_Receiving_Aid")
    moving_avg_4q: float = Field(alias="4Q_Moving_Avg")
    moving_avg_8q: float = Field(alias="8Q_Moving_Avg")
    qoq_growth: float | None = Field(alias="QoQ_Growth")
    trend_status: str = Field(alias="Trend_Status")


class TimeKeyRow(_ReportRow):
    time_key: int = Field(alias="Time_Key")
