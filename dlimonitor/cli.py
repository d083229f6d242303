"""
CLI (Command Line Interface).

This module provides the batch job and a few inspection commands, e.g.:

    dlimonitor scrape                 run all extractions and write data/stats.json
    dlimonitor show                   print the stored snapshot with day-over-day changes
    dlimonitor extract hq --html page.html
                                      run one extractor over saved HTML (no browser)

Note:
- scheduling is left to cron / the dashboard server; every invocation is one run
- log output goes to stderr, command output (tables, JSON) to stdout
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Callable

from rich.console import Console

from dlimonitor.catalog import extract_china, extract_hq
from dlimonitor.config import Settings
from dlimonitor.driver import DriverError, HtmlSession, Session
from dlimonitor.events import extract_event
from dlimonitor.logging_setup import configure_logging
from dlimonitor.model import RegionResult
from dlimonitor.report import render_snapshot
from dlimonitor.snapshot import run
from dlimonitor.storage import SnapshotStore


EXTRACTORS: dict[str, Callable[[Session], RegionResult]] = {
    "hq": extract_hq,
    "china": extract_china,
    "event-hq": lambda s: extract_event(s, is_china=False),
    "event-china": lambda s: extract_event(s, is_china=True),
}


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings()
    if args.data_dir is not None:
        settings.data_dir = args.data_dir
    if args.log_level:
        settings.log_level = args.log_level
    return settings


def _cmd_scrape(args: argparse.Namespace, settings: Settings) -> int:
    """
    Run one full monitoring pass. Always exits 0: failures are recorded in
    the snapshot, not raised.
    """
    if args.headful:
        settings.headless = False

    snapshot = run(settings)
    current = snapshot.current
    print(
        f"HQ: {current.hq.total}, China: {current.china.total}, "
        f"EventHQ: {current.event_hq.total}, EventChina: {current.event_china.total}"
    )
    print(f"Stats saved to {settings.stats_path}")
    return 0


def _cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """
    Render the stored snapshot.
    """
    snapshot = SnapshotStore(settings.stats_path).load()
    if snapshot is None:
        print(f"No stats found at {settings.stats_path}. Run 'dlimonitor scrape' first.")
        return 1

    render_snapshot(snapshot, Console())
    return 0


def _cmd_extract(args: argparse.Namespace, settings: Settings) -> int:
    """
    Run a single extractor over static HTML and print the result as JSON.
    """
    if args.html is not None:
        try:
            html = Path(args.html).read_text(encoding="utf-8")
        except OSError as e:
            print(f"Cannot read {args.html}: {e}")
            return 1
        session = HtmlSession(html)
    else:
        session = HtmlSession()
        try:
            session.navigate(args.url, timeout_ms=settings.navigation_timeout_ms)
        except DriverError as e:
            print(f"Cannot load {args.url}: {e}")
            return 1

    region = EXTRACTORS[args.source](session)
    print(json.dumps(region.to_dict(), indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="dlimonitor", description="DLI course catalog monitor")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding stats.json / event_config.json")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (DEBUG, INFO, WARNING, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_scrape = sub.add_parser("scrape", help="Scrape all catalogs/events and write the snapshot")
    p_scrape.add_argument("--headful", action="store_true", help="Show the browser window")

    sub.add_parser("show", help="Show the stored snapshot")

    p_extract = sub.add_parser("extract", help="Run one extractor over static HTML")
    p_extract.add_argument("source", choices=sorted(EXTRACTORS), help="Which extractor to run")
    src = p_extract.add_mutually_exclusive_group(required=True)
    src.add_argument("--html", type=str, help="Saved HTML file")
    src.add_argument("--url", type=str, help="URL fetched without a browser")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = _settings(args)
    configure_logging(settings.log_level)

    if args.command == "scrape":
        raise SystemExit(_cmd_scrape(args, settings))
    if args.command == "show":
        raise SystemExit(_cmd_show(args, settings))
    if args.command == "extract":
        raise SystemExit(_cmd_extract(args, settings))

    raise SystemExit(2)
