"""Aid reports.

Each report module exposes its required joins (`JOINS`), its output
`COLUMNS` and an assembler that turns a join view into ordered report rows.
`REPORTS` maps CLI command names to those pieces.
"""
from __future__ import annotations

from typing import Any, Callable, NamedTuple

from pydantic import BaseModel

from aid_reporting.models import (
    CountryAidTotal,
    DonorPerformance,
    QuarterlyAidFlow,
    SectorRanking,
)
from aid_reporting.reports import (
    distribution_cube,
    donor_performance,
    quarterly_trends,
    sector_ranking,
)


class ReportDefinition(NamedTuple):
    title: str
    joins: tuple[str, ...]
    assemble: Callable[..., Any]
    model: type[BaseModel]


REPORTS: dict[str, ReportDefinition] = {
    "cube": ReportDefinition(
        "Aid Distribution Cube: top countries",
        distribution_cube.JOINS,
        distribution_cube.country_aid_totals,
        CountryAidTotal,
    ),
    "sectors": ReportDefinition(
        "Aid Effectiveness Ranking: high-impact sectors",
        sector_ranking.JOINS,
        sector_ranking.sector_ranking,
        SectorRanking,
    ),
    "donors": ReportDefinition(
        "Donor Organization Performance",
        donor_performance.JOINS,
        donor_performance.donor_performance,
        DonorPerformance,
    ),
    "trends": ReportDefinition(
        "Aid Flow Trends with Moving Averages",
        quarterly_trends.JOINS,
        quarterly_trends.quarterly_trends,
        QuarterlyAidFlow,
    ),
}
