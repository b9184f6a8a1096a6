"""Command-line interface for running the aid reports.

Provides subcommands: `cube`, `sectors`, `donors`, `trends`, `time-keys` and
`all`. Each command is implemented as a `cmd_*` function that accepts an
argparse namespace, reads the star schema from MongoDB and prints its report.
"""
from __future__ import annotations

import argparse
import logging
from typing import Any

import numpy as np
import pandas as pd
from dotenv import load_dotenv

from aid_reporting.config import get_settings
from aid_reporting.logging_config import configure_logging
from aid_reporting.db import get_client, get_db
from aid_reporting.ingest.load_warehouse import StarSchema, load_star_schema
from aid_reporting.clean.validate import validate_partition
from aid_reporting.aggregate.join_view import build_join_view
from aid_reporting.models import TimeKeyRow
from aid_reporting.reports import REPORTS
from aid_reporting.reports.time_keys import recent_time_keys

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _load_schema() -> StarSchema:
    """Read the star schema from the configured warehouse.

    Raises:
        RuntimeError: if the fact collection is empty.
    """
    s = get_settings()
    client = get_client(s.mongo_uri)
    db = get_db(client, s.mongo_db)

    schema = load_star_schema(db, s.batch_size)
    if int(schema.facts.shape[0].compute()) == 0:
        raise RuntimeError("fact_aid_transactions is empty. Load the warehouse first.")
    return schema


def run_report(name: str, schema: StarSchema, **params: Any) -> pd.DataFrame:
    """Build the join view a report needs and assemble the report."""
    definition = REPORTS[name]
    view = build_join_view(schema, definition.joins)
    return definition.assemble(view, **params)


def render(frame: pd.DataFrame, model: Any) -> str:
    """Validate report rows against `model` and lay them out as a table.

    Not-applicable values are shown as ``N/A``.

    Raises:
        RuntimeError: if any row does not match the report model.
    """
    records, bad = validate_partition(frame, model)
    if bad:
        raise RuntimeError(f"{bad} report rows failed {model.__name__} validation")
    if not records:
        return "(no rows)"

    table = pd.DataFrame(records, columns=list(frame.columns))
    table = table.where(table.notna(), np.nan)
    return table.to_string(index=False, na_rep="N/A", float_format=lambda v: f"{v:,.2f}")


def _print_report(name: str, frame: pd.DataFrame) -> None:
    definition = REPORTS[name]
    print(f"\n== {definition.title} ==")
    print(render(frame, definition.model))


# --------------------------------------------------
# REPORTS
# --------------------------------------------------
def cmd_cube(args: argparse.Namespace, schema: StarSchema | None = None) -> None:
    """Top countries by total aid (distribution cube)."""
    schema = schema or _load_schema()
    frame = run_report("cube", schema, min_year=args.min_year, top_n=args.top_n)
    _print_report("cube", frame)


def cmd_sectors(args: argparse.Namespace, schema: StarSchema | None = None) -> None:
    """High-impact sub-sectors per year."""
    schema = schema or _load_schema()
    frame = run_report("sectors", schema, years=args.years, percentile=args.percentile)
    _print_report("sectors", frame)


def cmd_donors(args: argparse.Namespace, schema: StarSchema | None = None) -> None:
    """Donor performance for the report year."""
    schema = schema or _load_schema()
    frame = run_report(
        "donors",
        schema,
        report_year=args.report_year,
        first_year=args.from_year,
        last_year=args.to_year,
        min_contribution=args.min_contribution,
        top_n=args.top_n,
    )
    _print_report("donors", frame)


def cmd_trends(args: argparse.Namespace, schema: StarSchema | None = None) -> None:
    """Quarterly aid trends."""
    schema = schema or _load_schema()
    frame = run_report("trends", schema, min_year=args.min_year)
    _print_report("trends", frame)


def cmd_time_keys(args: argparse.Namespace, schema: StarSchema | None = None) -> None:
    """Most recent time keys present in the fact table."""
    schema = schema or _load_schema()
    frame = recent_time_keys(schema.facts, args.limit)
    print("\n== Recent time keys ==")
    print(render(frame, TimeKeyRow))


def cmd_all(_: argparse.Namespace) -> None:
    """Convenience: run every report with its default parameters."""
    schema = _load_schema()
    parser = build_parser()
    for command, handler in (
        ("cube", cmd_cube),
        ("sectors", cmd_sectors),
        ("donors", cmd_donors),
        ("trends", cmd_trends),
    ):
        handler(parser.parse_args([command]), schema)

    log.info("All reports generated.")


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="aid-reporting")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_cube = sub.add_parser("cube")
    p_cube.add_argument("--min-year", type=int, default=2020)
    p_cube.add_argument("--top-n", type=int, default=10)

    p_sectors = sub.add_parser("sectors")
    p_sectors.add_argument("--years", type=int, nargs="+", default=[2023, 2024, 2025])
    p_sectors.add_argument("--percentile", type=float, default=0.85)

    p_donors = sub.add_parser("donors")
    p_donors.add_argument("--report-year", type=int, default=2025)
    p_donors.add_argument("--from-year", type=int, default=2022)
    p_donors.add_argument("--to-year", type=int, default=2025)
    p_donors.add_argument("--min-contribution", type=float, default=1_000_000)
    p_donors.add_argument("--top-n", type=int, default=30)

    p_trends = sub.add_parser("trends")
    p_trends.add_argument("--min-year", type=int, default=2020)

    p_keys = sub.add_parser("time-keys")
    p_keys.add_argument("--limit", type=int, default=50)

    sub.add_parser("all")

    return p


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args()
    configure_logging(get_settings().log_path)

    if args.cmd == "cube":
        cmd_cube(args)
    elif args.cmd == "sectors":
        cmd_sectors(args)
    elif args.cmd == "donors":
        cmd_donors(args)
    elif args.cmd == "trends":
        cmd_trends(args)
    elif args.cmd == "time-keys":
        cmd_time_keys(args)
    elif args.cmd == "all":
        cmd_all(args)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
