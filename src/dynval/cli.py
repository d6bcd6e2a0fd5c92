"""Command-line interface for running the valuation pipeline."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any

import httpx

from dynval.config import NORMALIZATION_MODES, RETENTION_MODES, PipelineSettings, iter_profiles
from dynval.config_loader import SettingsProfile
from dynval.errors import PipelineError
from dynval.ingest import SleeperRosterSource, StaticAdpSource, load_adp_csv
from dynval.persistence import ValueStore
from dynval.pipeline import PipelineReport, default_sources, run_valuation_pipeline_async
from dynval.valuation import format_dynasty_value, trend_indicator


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute dynasty values from ADP and age curves")
    parser.add_argument(
        "--db",
        type=Path,
        default=Path(os.getenv("DYNVAL_DB_PATH", "dynval.sqlite")),
        help="SQLite database path",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run the valuation pipeline for one date")
    run.add_argument("--as-of", type=date.fromisoformat, default=None, help="As-of date (YYYY-MM-DD), default today")
    run.add_argument(
        "--adp-source",
        choices=("ffc", "synthetic", "file"),
        default="ffc",
        help="Market ADP source, heuristic fallback, or a local CSV",
    )
    run.add_argument("--adp-file", type=Path, default=None, help="CSV with player_id,adp[,position] columns")
    run.add_argument("--normalization", choices=NORMALIZATION_MODES, default=None, help="ADP normalization mode")
    run.add_argument(
        "--profile",
        choices=[profile.name for profile in iter_profiles()],
        default=None,
        help="Composite weight profile",
    )
    run.add_argument("--retention", choices=RETENTION_MODES, default=None, help="History retention policy")
    run.add_argument("--retention-days", type=int, default=None, help="Days of history kept in rolling mode")
    run.add_argument("--batch-size", type=int, default=None, help="Rows per write transaction")
    run.add_argument("--timeout", type=float, default=None, help="Overall run timeout in seconds")
    run.add_argument("--settings-file", type=Path, default=None, help="Load settings overrides JSON")
    run.add_argument("--save-settings", type=Path, default=None, help="Save the effective settings as JSON")

    values = sub.add_parser("values", help="Show the latest dynasty values")
    values.add_argument("--as-of", type=date.fromisoformat, default=None, help="Snapshot date, default latest")
    values.add_argument("--limit", type=int, default=25, help="Number of players to show")
    return parser.parse_args(argv)


def _resolve_settings(args: argparse.Namespace) -> PipelineSettings:
    settings = PipelineSettings.from_env()
    if args.settings_file:
        settings = SettingsProfile.load(args.settings_file).apply(settings)
    overrides: dict[str, Any] = {
        "normalization": args.normalization,
        "weight_profile": args.profile,
        "retention": args.retention,
        "retention_days": args.retention_days,
        "batch_size": args.batch_size,
        "timeout_seconds": args.timeout,
    }
    return settings.with_overrides(overrides)


async def _run(args: argparse.Namespace, store: ValueStore, settings: PipelineSettings) -> PipelineReport:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True) as client:
        if args.adp_source == "file":
            if args.adp_file is None:
                raise SystemExit("--adp-file is required with --adp-source file")
            roster_source = SleeperRosterSource(client)
            adp_source = StaticAdpSource(load_adp_csv(args.adp_file), source_tag=f"file:{args.adp_file.name}")
        else:
            roster_source, adp_source = default_sources(client, args.adp_source)
        return await run_valuation_pipeline_async(
            args.as_of,
            store=store,
            roster_source=roster_source,
            adp_source=adp_source,
            settings=settings,
        )


def _print_report(report: PipelineReport) -> None:
    print(f"As of {report.as_of.isoformat()} ({report.source_kind} ADP)")
    print(
        f"Players: {report.roster_players} total -> {report.active_players} active -> "
        f"{report.eligible_players} fantasy-relevant"
    )
    print(f"ADP rows: {report.adp_rows}; scored {report.scored_players}; valid values {report.valid_values}")
    for field_name, count in sorted(report.trends_written.items()):
        print(f"{field_name}: {count} players")
    print(f"Pruned {report.pruned_history} historical and {report.pruned_null} null rows")


def _print_values(store: ValueStore, as_of: date | None, limit: int) -> None:
    target = as_of or store.latest_as_of()
    if target is None:
        print("No dynasty values stored yet")
        return
    rows = store.list_values(target, limit=limit)
    print(f"Dynasty values as of {target.isoformat()}")
    for rank, row in enumerate(rows, start=1):
        record = row.record
        print(
            f"{rank:>3}. {row.name:<28} {row.position:<3} {row.team or 'FA':<4} "
            f"{format_dynasty_value(record.dynasty_value):>5} "
            f"{trend_indicator(record.trend_7d)}{trend_indicator(record.trend_30d)}"
        )


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = ValueStore(args.db)

    if args.command == "values":
        _print_values(store, args.as_of, args.limit)
        return

    try:
        settings = _resolve_settings(args)
    except (KeyError, ValueError) as exc:
        raise SystemExit(f"Invalid settings: {exc}") from exc
    if args.save_settings:
        SettingsProfile.from_settings(settings).save(args.save_settings)
        print(f"Saved settings to {args.save_settings}")

    try:
        report = asyncio.run(_run(args, store, settings))
    except PipelineError as exc:
        print(f"Valuation pipeline failed ({exc.stage}): {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    _print_report(report)


if __name__ == "__main__":
    main()
