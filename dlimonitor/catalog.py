"""
Catalog extraction (rendered course catalog -> RegionResult).

Two sites, two strategies, one contract: given a session whose page is
loaded and expanded, return the course sections of the region.

- HQ: tab panels (.cmp-tabs__tabpanel) titled through aria-labelledby,
  course cards (.dli--card) with the price in a description list
- China: tab list items (li[data-tab]) pointing at content blocks by id,
  course cards (.card) with free-text price descriptions in Chinese or USD

Card discovery is an ordered fallback chain: each tier is tried in turn and
the first one that produces at least one course wins.

Rules shared by both strategies:
- the infrastructure topic and unreadable titles are skipped
- a course without a title is dropped, the remaining cards are still read
- sections with zero courses are dropped (zero-filling is a report concern)
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from dlimonitor.config import Settings
from dlimonitor.driver import Element, Session, by_id
from dlimonitor.expand import UNKNOWN_LABEL, ExpansionPlan, Settle, expand_tabs, is_excluded, read_label
from dlimonitor.model import Course, RegionResult, Section, make_region, make_section

logger = logging.getLogger(__name__)

DEFAULT_PRICE = "Free"

# A tier is one way of finding the courses of a section
Tier = Callable[[], List[Course]]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _clean(text: Optional[str]) -> str:
    return (text or "").strip()


def first_non_empty(tiers: Sequence[Tier]) -> List[Course]:
    """
    Evaluate *tiers* in order and return the first non-empty course list.
    """
    for tier in tiers:
        courses = tier()
        if courses:
            return courses
    return []


def courses_from_cards(cards: Sequence[Element], to_course: Callable[[Element], Optional[Course]]) -> List[Course]:
    out: List[Course] = []
    for card in cards:
        course = to_course(card)
        if course is not None:
            out.append(course)
    return out


def _section(title: str, courses: List[Course]) -> Optional[Section]:
    logger.info("Found %d courses in %s", len(courses), title)
    if not courses:
        return None
    return make_section(title, courses)


# ---------------------------------------------------------------------------
# HQ
# ---------------------------------------------------------------------------

HQ_PLAN = ExpansionPlan(
    tab_selector=".cmp-tabs__tab",
    show_more_selector="button.dli-secondary-button",
    show_more_label="Show More",
    excluded=("Infrastructure",),
)

HQ_PANEL = ".cmp-tabs__tabpanel"
HQ_CONTAINER = ".dli--container"
HQ_CARD = ".dli--card"


def hq_price(text: Optional[str]) -> str:
    """
    Price from the last description item: kept verbatim when it mentions a
    dollar amount or "Free", otherwise the course is listed as free.
    """
    if text and ("$" in text or "Free" in text):
        return text.strip()
    return DEFAULT_PRICE


def hq_course(card: Element) -> Optional[Course]:
    title_el = card.find(".dli--title")
    title = _clean(title_el.text()) if title_el else ""
    if not title:
        return None

    items = card.find_all(".dli--description li")
    price = hq_price(items[-1].text() if items else None)

    return Course(title=title, url=card.attribute("href") or "", price=price)


def _container_cards(panel: Element) -> List[Element]:
    # Only the first container holds the catalog; later ones repeat its cards
    container = panel.find(HQ_CONTAINER)
    return container.find_all(HQ_CARD) if container is not None else []


def hq_tiers(panel: Element) -> List[Tier]:
    return [
        lambda: courses_from_cards(_container_cards(panel), hq_course),
        lambda: courses_from_cards(panel.find_all(HQ_CARD), hq_course),
    ]


def _panel_title(session: Session, panel: Element) -> str:
    labelled_by = _clean(panel.attribute("aria-labelledby"))
    title_el = session.find(by_id(labelled_by)) if labelled_by else None
    return read_label(title_el) if title_el else UNKNOWN_LABEL


def extract_hq(session: Session, excluded: Sequence[str] = HQ_PLAN.excluded) -> RegionResult:
    """
    Read every HQ tab panel of an expanded page into sections.
    """
    sections: List[Section] = []

    for panel in session.find_all(HQ_PANEL):
        title = _panel_title(session, panel)
        if is_excluded(title, excluded):
            continue

        section = _section(title, first_non_empty(hq_tiers(panel)))
        if section is not None:
            sections.append(section)

    return make_region(sections)


def scrape_hq(session: Session, settings: Settings, settle: Settle = time.sleep) -> RegionResult:
    session.navigate(settings.hq_url, wait_until="networkidle", timeout_ms=settings.navigation_timeout_ms)

    if not session.wait_for(HQ_CARD, timeout_ms=10000):
        logger.warning("Timeout waiting for HQ cards")
    if not session.wait_for(HQ_PLAN.tab_selector, timeout_ms=15000):
        logger.warning("Timeout waiting for HQ tabs")

    plan = replace(HQ_PLAN, tab_delay=settings.tab_settle, show_more_delay=settings.show_more_settle)
    expand_tabs(session, plan, settle)

    return extract_hq(session)


# ---------------------------------------------------------------------------
# China
# ---------------------------------------------------------------------------

CHINA_PLAN = ExpansionPlan(
    tab_selector="li[data-tab]",
    show_more_selector="button, .button",
    show_more_label="加载更多",
    excluded=("基础架构",),
)

CHINA_CARD = ".card"
CHINA_PRICE_NARROW = ".time-price p, .description p"
CHINA_PRICE_BROAD = ".time-price, .description"

# RMB/USD amount written in Chinese, "free" or "limited-time free"
CHINA_PRICE_RE = re.compile(r"\d+\s*美元|免费|限时免费")
DOLLAR_RE = re.compile(r"\$\d+")


def china_price(text: Optional[str]) -> str:
    """
    Resolve a price token from free-text card descriptions.

    Order: localized amount / free keywords (leftmost match), English "Free",
    a dollar amount, then the "Free" default.
    """
    if not text:
        return DEFAULT_PRICE

    m = CHINA_PRICE_RE.search(text)
    if m:
        return m.group(0)
    if "Free" in text:
        return DEFAULT_PRICE
    m = DOLLAR_RE.search(text)
    if m:
        return m.group(0)
    return DEFAULT_PRICE


def china_course(card: Element, broad: bool = False) -> Optional[Course]:
    heading = card.find("h4")
    title = _clean(heading.text()) if heading else ""
    if not title:
        return None

    link = card.find("a")
    url = (link.attribute("href") or "") if link else ""

    price_text: Optional[str] = None
    if broad:
        price_el = card.find(CHINA_PRICE_BROAD)
        if price_el:
            price_text = price_el.inner_text()
    else:
        price_el = card.find(CHINA_PRICE_NARROW)
        if price_el:
            price_text = price_el.text()

    return Course(title=title, url=url, price=china_price(price_text))


def china_tiers(block: Element) -> List[Tier]:
    tiers: List[Tier] = []
    # Headings only tell whether the tab has content; cards carry the data
    if block.find("h4") is not None:
        tiers.append(lambda: courses_from_cards(block.find_all(CHINA_CARD), china_course))
    tiers.append(
        lambda: courses_from_cards(block.find_all(CHINA_CARD), lambda card: china_course(card, broad=True))
    )
    return tiers


def extract_china(session: Session, excluded: Sequence[str] = CHINA_PLAN.excluded) -> RegionResult:
    """
    Read every China tab's content block into sections.
    """
    sections: List[Section] = []

    for tab in session.find_all(CHINA_PLAN.tab_selector):
        title = read_label(tab)
        content_id = _clean(tab.attribute("data-tab"))
        if is_excluded(title, excluded) or not content_id:
            continue

        block = session.find(by_id(content_id))
        if block is None:
            logger.warning("Content block not found for %s (#%s)", title, content_id)
            continue

        section = _section(title, first_non_empty(china_tiers(block)))
        if section is not None:
            sections.append(section)

    return make_region(sections)


def scrape_china(session: Session, settings: Settings, settle: Settle = time.sleep) -> RegionResult:
    session.navigate(settings.china_url, wait_until="domcontentloaded", timeout_ms=settings.navigation_timeout_ms)

    if not session.wait_for(CHINA_PLAN.tab_selector, timeout_ms=15000):
        logger.warning("Timeout waiting for China tabs")

    plan = replace(CHINA_PLAN, tab_delay=settings.tab_settle, show_more_delay=settings.show_more_settle)
    expand_tabs(session, plan, settle)

    return extract_china(session)
