"""
Event page extraction (workshops and training labs).

Event pages are single long pages without tabs. Sessions are recognised by
their headings: level-3 headings are full-day workshops, level-2 headings are
training labs. A heading only counts as a session when its parent container
links into the session catalog; section headers and pricing blurbs are
filtered out by label.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from dlimonitor.config import Settings
from dlimonitor.driver import Element, Session
from dlimonitor.expand import Settle
from dlimonitor.model import Course, RegionResult, Section, make_region, make_section

logger = logging.getLogger(__name__)

SITE_ORIGIN = "https://www.nvidia.com"
SESSION_LINK = 'a[href*="session-catalog"]'


@dataclass(frozen=True)
class HeadingPass:
    heading: str
    excluded: Sequence[str]
    title: str
    title_cn: str
    price: str
    price_cn: str


WORKSHOP_PASS = HeadingPass(
    heading="h3",
    excluded=("Full-Day", "全天", "Two-Hour", "迷你", "Get Certified", "认证"),
    title="Full-Day Workshops",
    title_cn="全天实战培训",
    price="Paid",
    price_cn="付费",
)

LAB_PASS = HeadingPass(
    heading="h2",
    excluded=("Two-Hour", "迷你", "Group Pricing", "团体", "Get Certified", "认证", "Full-Day", "全天"),
    title="Training Labs",
    title_cn="迷你实战课程",
    price="Included with Training Lab Pass",
    price_cn="包含在培训通行证中",
)


def absolute_url(href: str, origin: str = SITE_ORIGIN) -> str:
    if href.startswith("http"):
        return href
    return f"{origin}{href}"


def _session_link(heading: Element) -> str:
    parent = heading.parent()
    if parent is None:
        return ""
    link = parent.find(SESSION_LINK)
    if link is None:
        return ""
    return link.attribute("href") or ""


def run_pass(session: Session, heading_pass: HeadingPass, is_china: bool) -> Optional[Section]:
    """
    Collect one section from the headings of *heading_pass*; None if empty.
    """
    price = heading_pass.price_cn if is_china else heading_pass.price
    courses: List[Course] = []

    for heading in session.find_all(heading_pass.heading):
        title = (heading.text() or "").strip()
        if not title:
            continue
        if any(label in title for label in heading_pass.excluded):
            continue

        href = _session_link(heading)
        if href:
            courses.append(Course(title=title, url=absolute_url(href), price=price))

    if not courses:
        return None
    return make_section(heading_pass.title_cn if is_china else heading_pass.title, courses)


def extract_event(session: Session, is_china: bool = False) -> RegionResult:
    sections: List[Section] = []
    counts: List[int] = []
    for heading_pass in (WORKSHOP_PASS, LAB_PASS):
        section = run_pass(session, heading_pass, is_china)
        counts.append(section.count if section else 0)
        if section is not None:
            sections.append(section)

    region = make_region(sections)
    logger.info("Found %d event sessions (%d workshops, %d labs)", region.total, counts[0], counts[1])
    return region


def scrape_event(
    session: Session,
    url: str,
    settings: Settings,
    is_china: bool = False,
    settle: Settle = time.sleep,
) -> RegionResult:
    session.navigate(url, wait_until="networkidle", timeout_ms=settings.navigation_timeout_ms)
    settle(settings.event_settle)
    return extract_event(session, is_china=is_china)
