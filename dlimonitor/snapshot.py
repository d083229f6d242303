"""
Snapshot pipeline (one run of the monitor).

    sources -> RegionResults -> Snapshot{current, previous} -> stats.json

Run rules:
- the four sources (HQ catalog, China catalog, HQ event, China event) run one
  after another, each in its own browser session
- a source that raises is logged, listed in "failed" and counted as empty;
  it never stops the other sources
- event sources only run when their URL is configured
- the snapshot is written exactly once, at the end, with a fresh timestamp,
  even if every source failed
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import partial
from typing import Callable, ContextManager, Dict, List, Mapping, Optional, Protocol

from dlimonitor.catalog import scrape_china, scrape_hq
from dlimonitor.config import Settings
from dlimonitor.driver import Session, playwright_session
from dlimonitor.events import scrape_event
from dlimonitor.expand import Settle
from dlimonitor.model import EMPTY_REGION, SOURCE_KEYS, RegionResult, RunData, Snapshot
from dlimonitor.storage import EventConfig, SnapshotStore, load_event_config

logger = logging.getLogger(__name__)

Source = Callable[[], RegionResult]
SessionFactory = Callable[[], ContextManager[Session]]


class SnapshotRepository(Protocol):
    def load(self) -> Optional[Snapshot]:
        ...

    def save(self, snapshot: Snapshot) -> None:
        ...


def utc_timestamp() -> str:
    """
    Current time as ISO-8601 UTC with milliseconds, e.g. 2026-01-31T00:00:05.123Z
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def run_sources(sources: Mapping[str, Source]) -> tuple[Dict[str, RegionResult], List[str]]:
    """
    Run every configured source; failures become empty results.

    Returns the results by source key and the keys that failed.
    """
    results: Dict[str, RegionResult] = {}
    failed: List[str] = []

    for key in SOURCE_KEYS:
        source = sources.get(key)
        if source is None:
            results[key] = EMPTY_REGION
            continue
        try:
            results[key] = source()
        except Exception:
            logger.exception("%s scrape failed", key)
            failed.append(key)
            results[key] = EMPTY_REGION
        else:
            logger.info("%s scrape successful: %d courses", key, results[key].total)

    return results, failed


def build_snapshot(
    sources: Mapping[str, Source],
    store: SnapshotRepository,
    now: Callable[[], str] = utc_timestamp,
) -> Snapshot:
    """
    Run the sources, fold the results with the prior snapshot and persist.
    """
    results, failed = run_sources(sources)

    # previous = current half of the last run (older files lack "event";
    # RunData.from_dict fills it with empty regions)
    prior = store.load()
    previous = prior.current if prior is not None else RunData()

    snapshot = Snapshot(
        timestamp=now(),
        current=RunData(
            hq=results["hq"],
            china=results["china"],
            event_hq=results["event.hq"],
            event_china=results["event.china"],
        ),
        previous=previous,
        failed=tuple(failed),
    )
    store.save(snapshot)

    if failed:
        logger.warning("Degraded run, failed sources: %s", ", ".join(failed))
    logger.info("Timestamp updated to %s", snapshot.timestamp)
    return snapshot


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def _in_session(factory: SessionFactory, scrape: Callable[[Session], RegionResult]) -> Source:
    def source() -> RegionResult:
        with factory() as session:
            return scrape(session)

    return source


def plan_sources(
    settings: Settings,
    event_config: EventConfig,
    session_factory: SessionFactory,
    settle: Settle = time.sleep,
) -> Dict[str, Source]:
    """
    Map source keys to runnable extractions. Event pages without a URL are
    left out, so no session is opened for them.
    """
    sources: Dict[str, Source] = {
        "hq": _in_session(session_factory, lambda s: scrape_hq(s, settings, settle)),
        "china": _in_session(session_factory, lambda s: scrape_china(s, settings, settle)),
    }

    if event_config.hq_url:
        url_hq = event_config.hq_url
        sources["event.hq"] = _in_session(
            session_factory, lambda s: scrape_event(s, url_hq, settings, is_china=False, settle=settle)
        )
    if event_config.china_url:
        url_cn = event_config.china_url
        sources["event.china"] = _in_session(
            session_factory, lambda s: scrape_event(s, url_cn, settings, is_china=True, settle=settle)
        )

    return sources


def run(
    settings: Optional[Settings] = None,
    session_factory: Optional[SessionFactory] = None,
    settle: Settle = time.sleep,
    store: Optional[SnapshotRepository] = None,
) -> Snapshot:
    """
    Execute one full monitoring run and return the persisted snapshot.
    """
    settings = settings or Settings()
    if session_factory is None:
        session_factory = partial(playwright_session, headless=settings.headless)
    if store is None:
        store = SnapshotStore(settings.stats_path)

    event_config = load_event_config(settings.event_config_path)
    if not event_config.enabled:
        logger.info("No event pages configured, skipping event extraction")

    logger.info("Starting scrape...")
    started = time.monotonic()

    snapshot = build_snapshot(plan_sources(settings, event_config, session_factory, settle), store)

    current = snapshot.current
    logger.info(
        "Scrape completed in %.1fs - HQ: %d, China: %d, EventHQ: %d, EventChina: %d",
        time.monotonic() - started,
        current.hq.total,
        current.china.total,
        current.event_hq.total,
        current.event_china.total,
    )
    return snapshot
