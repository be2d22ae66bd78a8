#!/usr/bin/env python3
"""
Command-line entry point: fetch and rate fundamentals for a watchlist.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import structlog
from rich import box
from rich.console import Console
from rich.table import Table

from stockboard.cleanup import cleanup_async_resources, register_cleanup
from stockboard.config import config
from stockboard.exceptions import DuplicateStockError
from stockboard.extractor import ExtractorCallbacks, ExtractorService
from stockboard.models import RECORD_METRIC_FIELDS, FetchReport, StockRecord
from stockboard.scoring import performance, rate_metric
from stockboard.store import InMemoryStockStore

logger = structlog.get_logger(__name__)
console = Console()

ALERT_STYLES = {
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "danger": "bold red",
}

RATING_STYLES = {"Good": "green", "Avg": "yellow", "Low": "red"}


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Fetch and rate stock fundamentals from Groww and Yahoo Finance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One stock
  python -m stockboard.main --symbol TCS

  # Several stocks, ignoring cached statistics
  python -m stockboard.main --symbol TCS --symbol INFY --no-cache

  # A watchlist file (one symbol per line, # for comments) as JSON
  python -m stockboard.main --watchlist stocks.txt --json

Start the local relay first for reliable fetches:
  python -m stockboard.relay_server
        """,
    )
    parser.add_argument(
        "--symbol",
        action="append",
        default=[],
        help="Symbol, Groww slug or company name (repeatable)",
    )
    parser.add_argument(
        "--watchlist",
        type=Path,
        help="File with one symbol per line",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--no-cache", action="store_true", help="Bypass cached vendor statistics"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help=f"Seconds between symbols (default: {config.batch_delay})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def read_watchlist(path: Path) -> list[str]:
    symbols = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            symbols.append(line)
    return symbols


def collect_symbols(args: argparse.Namespace) -> list[str]:
    symbols = list(args.symbol)
    if args.watchlist:
        symbols.extend(read_watchlist(args.watchlist))
    return symbols


def show_alert(level: str, message: str) -> None:
    style = ALERT_STYLES.get(level, "white")
    console.print(f"[{style}]{message}[/{style}]")


def build_table(record: StockRecord) -> Table:
    good, total = performance(record)
    table = Table(
        title=f"{record.symbol}  (performance {good}/{total})",
        box=box.ROUNDED,
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Rating", justify="center")

    for field in RECORD_METRIC_FIELDS:
        value = record.metrics.get(field)
        rating = rate_metric(field, value)
        rating_cell = ""
        if rating:
            style = RATING_STYLES[rating]
            rating_cell = f"[{style}]{rating}[/{style}]"
        table.add_row(field, str(value), rating_cell)
    return table


def records_as_json(records: list[StockRecord], reports: list[FetchReport]) -> str:
    by_symbol = {r.symbol: r for r in reports}
    payload = []
    for record in records:
        good, total = performance(record)
        report = by_symbol.get(record.symbol)
        payload.append(
            {
                "symbol": record.symbol,
                "status": report.status if report else None,
                "contributors": [v.value for v in report.contributors] if report else [],
                "metrics": record.metrics,
                "ratings": {
                    field: rate_metric(field, record.metrics.get(field))
                    for field in RECORD_METRIC_FIELDS
                },
                "performance": {"good": good, "total": total},
            }
        )
    return json.dumps(payload, indent=2, default=str)


async def run(args: argparse.Namespace) -> int:
    symbols = collect_symbols(args)
    if not symbols:
        console.print("[red]No symbols given. Use --symbol or --watchlist.[/red]")
        return 2

    store = InMemoryStockStore()
    pairs = []
    for symbol in symbols:
        try:
            record = store.add_stock(symbol)
        except DuplicateStockError as e:
            logger.warning("duplicate_symbol_skipped", symbol=e.key)
            continue
        pairs.append((record.symbol, record.record_id))

    callbacks = ExtractorCallbacks(
        get_stocks_data=store.list_records,
        show_alert=None if args.json else show_alert,
        write_through=store.write_record,
    )
    service = ExtractorService(callbacks=callbacks)
    register_cleanup(service.close)

    reports = await service.refresh_watchlist(
        pairs, delay=args.delay, bypass_cache=args.no_cache
    )

    records = store.list_records()
    if args.json:
        print(records_as_json(records, reports))
    else:
        for record in records:
            console.print(build_table(record))

    return 0 if any(r.status == "updated" for r in reports) else 1


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_arguments(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        return await run(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]\n")
        return 1
    finally:
        await cleanup_async_resources()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
