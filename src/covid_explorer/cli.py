"""Command-line interface for orchestrating the analysis.

Provides subcommands: `fetch`, `report`, `view`, and `all`. Each command
is implemented as a `cmd_*` function that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
import pandas as pd

from covid_explorer.config import Settings, get_settings
from covid_explorer.logging_config import configure_logging
from covid_explorer.clean.coerce import CoercionMode
from covid_explorer.errors import SchemaError

# INGEST
from covid_explorer.ingest.fetch_data import download_source, split_source
from covid_explorer.ingest.load_csv import read_cases_csv, read_vaccinations_csv

# CLEAN
from covid_explorer.clean.transform import (
    clean_cases_ddf,
    clean_vaccinations_ddf,
    count_unparsed_dates,
)

# AGGREGATE
from covid_explorer.aggregate.window import WindowedJoinAggregator
from covid_explorer.aggregate.queries import (
    death_count_by_continent,
    death_count_by_location,
    death_percentage,
    global_numbers,
    highest_infection_rate,
    infection_percentage,
    rolling_vaccinations,
    select_cases,
)
from covid_explorer.aggregate.materialize import load_view, write_csv

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _aggregator(s: Settings, args: argparse.Namespace) -> WindowedJoinAggregator:
    """Build the aggregator; `--lenient` overrides COVID_COERCION_MODE."""
    mode = CoercionMode.LENIENT if getattr(args, "lenient", False) else s.coercion_mode
    log.info("Coercion mode: %s", mode.value)
    return WindowedJoinAggregator(mode=mode)


def _materialize(ddf: Any, dataset: str, mode: CoercionMode) -> pd.DataFrame:
    """Compute a cleaned table; unparseable dates abort (strict) or are dropped."""
    pdf = ddf.compute()
    bad = count_unparsed_dates(pdf)
    if bad:
        if mode is CoercionMode.STRICT:
            raise SchemaError(dataset, ["date"], detail=f"{bad} row(s) with unparseable date")
        log.warning("%s: dropping %d row(s) with unparseable date", dataset, bad)
        pdf = pdf.loc[pdf["date"].notna()]
    log.info("Loaded %s: %d rows", dataset, len(pdf))
    return pdf.reset_index(drop=True)


def _load_tables(s: Settings, agg: WindowedJoinAggregator) -> tuple[pd.DataFrame, pd.DataFrame]:
    cases = clean_cases_ddf(read_cases_csv(s.deaths_csv))
    vaccinations = clean_vaccinations_ddf(read_vaccinations_csv(s.vaccinations_csv))
    return (
        _materialize(cases, "cases", agg.mode),
        _materialize(vaccinations, "vaccinations", agg.mode),
    )


def _report_warnings(agg: WindowedJoinAggregator) -> None:
    if not agg.coercion_log:
        return
    by_field: dict[str, int] = {}
    for w in agg.coercion_log.warnings:
        by_field[w.field] = by_field.get(w.field, 0) + 1
    for field, n in sorted(by_field.items()):
        log.warning("Skipped %d row(s) with non-numeric %s", n, field)


# --------------------------------------------------
# FETCH
# --------------------------------------------------
def cmd_fetch(args: argparse.Namespace) -> None:
    """Download the source export and split it into the two tables.

    Args:
        args: argparse namespace with `force`.
    """
    s = get_settings()
    source = download_source(s.source_url, s.data_dir, s.user_agent, force=args.force)
    n_cases, n_vax = split_source(source, s.deaths_csv, s.vaccinations_csv)
    log.info("Fetch completed: %d case rows, %d vaccination rows.", n_cases, n_vax)


# --------------------------------------------------
# REPORT
# --------------------------------------------------
def cmd_report(args: argparse.Namespace) -> None:
    """Compute every result set and write them as CSV files.

    Args:
        args: argparse namespace with `lenient`, `out_dir`, `location_contains`.
    """
    s = get_settings()
    agg = _aggregator(s, args)
    cases, vaccinations = _load_tables(s, agg)
    out_dir = Path(args.out_dir) if args.out_dir else s.output_dir

    write_csv(select_cases(cases, agg), out_dir, "case_rows")
    write_csv(death_percentage(cases, args.location_contains, agg), out_dir, "death_percentage")
    write_csv(infection_percentage(cases, agg, include_aggregates=True), out_dir, "infection_percentage")
    write_csv(highest_infection_rate(cases, agg), out_dir, "highest_infection_rate")
    write_csv(death_count_by_location(cases, agg), out_dir, "death_count_by_location")
    write_csv(death_count_by_continent(cases, agg), out_dir, "death_count_by_continent")
    write_csv(global_numbers(cases, agg), out_dir, "global_numbers")
    write_csv(rolling_vaccinations(cases, vaccinations, agg), out_dir, "percent_population_vaccinated")

    _report_warnings(agg)
    log.info("Report written to %s", out_dir)


# --------------------------------------------------
# VIEW
# --------------------------------------------------
def cmd_view(args: argparse.Namespace) -> None:
    """Materialize the rolling-vaccination view into MongoDB.

    Args:
        args: argparse namespace with `lenient`, `include_aggregates`, `collection`.
    """
    s = get_settings()
    agg = _aggregator(s, args)
    cases, vaccinations = _load_tables(s, agg)

    view = rolling_vaccinations(
        cases,
        vaccinations,
        agg,
        include_aggregates=args.include_aggregates,
    )
    load_view(view, args.collection, mode=agg.mode)
    _report_warnings(agg)


# --------------------------------------------------
# ALL
# --------------------------------------------------
def cmd_all(args: argparse.Namespace) -> None:
    """Convenience: run fetch → report → view with the provided args."""
    cmd_fetch(args)
    cmd_report(args)
    cmd_view(args)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    The returned parser has subcommands `fetch`, `report`, `view`, and `all`.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="covid_explorer")
    p.add_argument("--log-level", default="INFO")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_fetch = sub.add_parser("fetch")
    p_fetch.add_argument("--force", action="store_true")

    p_report = sub.add_parser("report")
    p_report.add_argument("--lenient", action="store_true")
    p_report.add_argument("--out-dir", default=None)
    p_report.add_argument("--location-contains", default="states")

    p_view = sub.add_parser("view")
    p_view.add_argument("--lenient", action="store_true")
    p_view.add_argument("--include-aggregates", action="store_true")
    p_view.add_argument("--collection", default="percent_population_vaccinated")

    p_all = sub.add_parser("all")
    p_all.add_argument("--force", action="store_true")
    p_all.add_argument("--lenient", action="store_true")
    p_all.add_argument("--out-dir", default=None)
    p_all.add_argument("--location-contains", default="states")
    p_all.add_argument("--include-aggregates", action="store_true")
    p_all.add_argument("--collection", default="percent_population_vaccinated")

    return p


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args()
    configure_logging(Path("logs/explorer.log"), args.log_level)

    if args.cmd == "fetch":
        cmd_fetch(args)
    elif args.cmd == "report":
        cmd_report(args)
    elif args.cmd == "view":
        cmd_view(args)
    elif args.cmd == "all":
        cmd_all(args)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
