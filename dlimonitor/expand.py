"""
Interaction sequencer: tab activation + iterative "show more" expansion.

The catalog pages only render a tab's full course list after the tab has
been selected and its "show more" control has been clicked until it
disappears. The pages expose no readiness signal, so every interaction is
followed by a fixed settle delay.

Nothing in here raises on a missing tab or control: the page is simply left
with whatever content is already rendered.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from dlimonitor.driver import DriverError, Element, Session

logger = logging.getLogger(__name__)

# settle(seconds): blocking wait for the remote page to render
Settle = Callable[[float], None]

UNKNOWN_LABEL = "Unknown"
MAX_SHOW_MORE_CLICKS = 20


@dataclass(frozen=True)
class ExpansionPlan:
    """
    Selectors and labels for one site.
    """

    tab_selector: str
    show_more_selector: str
    show_more_label: str
    excluded: Sequence[str]
    tab_delay: float = 1.0
    show_more_delay: float = 1.5
    click_timeout_ms: int = 3000
    max_clicks: int = MAX_SHOW_MORE_CLICKS


@dataclass
class ExpansionReport:
    tabs_activated: int = 0
    tabs_skipped: int = 0
    show_more_clicks: int = 0


def is_excluded(label: str, excluded: Sequence[str]) -> bool:
    """
    True for the unreadable-label placeholder or a label containing an
    excluded pattern (case-sensitive substring match).
    """
    if not label or label == UNKNOWN_LABEL:
        return True
    return any(pattern in label for pattern in excluded)


def read_label(element: Element) -> str:
    """
    Stripped text of *element*, or the "Unknown" placeholder.
    """
    try:
        text = element.text()
    except DriverError:
        return UNKNOWN_LABEL
    return (text or "").strip() or UNKNOWN_LABEL


def _find_show_more(session: Session, plan: ExpansionPlan) -> Optional[Element]:
    try:
        controls = session.find_all(plan.show_more_selector)
    except DriverError as e:
        logger.debug("Show-more lookup failed, treating as absent: %s", e)
        return None

    for control in controls:
        try:
            if not control.is_visible():
                continue
            if plan.show_more_label in (control.text() or ""):
                return control
        except DriverError:
            continue
    return None


def expand_show_more(session: Session, plan: ExpansionPlan, settle: Settle) -> int:
    """
    Click the visible "show more" control until it is gone or the cap is hit.

    Returns the number of successful clicks.
    """
    clicks = 0
    for _ in range(plan.max_clicks):
        control = _find_show_more(session, plan)
        if control is None:
            break
        try:
            control.click(force=True, timeout_ms=plan.click_timeout_ms)
        except DriverError as e:
            logger.debug("Show-more control not clickable, stopping: %s", e)
            break
        clicks += 1
        settle(plan.show_more_delay)
    return clicks


def expand_tabs(session: Session, plan: ExpansionPlan, settle: Settle = time.sleep) -> ExpansionReport:
    """
    Activate every non-excluded tab and fully expand its course list.
    """
    report = ExpansionReport()
    try:
        tabs = session.find_all(plan.tab_selector)
    except DriverError as e:
        logger.warning("Tab lookup for %r failed: %s", plan.tab_selector, e)
        tabs = []
    if not tabs:
        logger.warning("No tabs found for %r; using content as rendered", plan.tab_selector)
        return report

    for tab in tabs:
        label = read_label(tab)
        if is_excluded(label, plan.excluded):
            report.tabs_skipped += 1
            continue

        try:
            tab.click()
        except DriverError as e:
            logger.warning("Could not activate tab %r: %s", label, e)
            report.tabs_skipped += 1
            continue
        settle(plan.tab_delay)
        report.tabs_activated += 1

        clicks = expand_show_more(session, plan, settle)
        if clicks:
            logger.debug("Expanded %r with %d show-more clicks", label, clicks)
        report.show_more_clicks += clicks

    logger.info(
        "Expanded %d tabs (%d skipped, %d show-more clicks)",
        report.tabs_activated,
        report.tabs_skipped,
        report.show_more_clicks,
    )
    return report
