"""
Day-over-day diff of course listings.

Identity rule:
    two courses are the same iff their URLs are equal (exact string match)

Section boundaries do not matter: a course moving between topics is neither
added nor removed, and title/price changes on an unchanged URL are invisible.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from dlimonitor.model import Course, Section, Snapshot


@dataclass(frozen=True)
class Diff:
    added: List[Course] = field(default_factory=list)
    removed: List[Course] = field(default_factory=list)

    @property
    def delta(self) -> int:
        return len(self.added) - len(self.removed)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def _flatten(sections: Iterable[Section]) -> List[Course]:
    out: List[Course] = []
    for s in sections:
        out.extend(s.courses)
    return out


def diff(current: Iterable[Section], previous: Optional[Iterable[Section]] = None) -> Diff:
    """
    Compare two section collections by course URL.

    Without a previous collection there is nothing to compare against and
    the result is empty.
    """
    if previous is None:
        return Diff()

    current_courses = _flatten(current)
    previous_courses = _flatten(previous)

    current_urls = {c.url for c in current_courses}
    previous_urls = {c.url for c in previous_courses}

    added = [c for c in current_courses if c.url not in previous_urls]
    removed = [c for c in previous_courses if c.url not in current_urls]
    return Diff(added=added, removed=removed)


def diff_region(snapshot: Snapshot, key: str) -> Diff:
    """
    Diff of one source ("hq", "china", "event.hq", "event.china") between the
    snapshot's current and previous halves.
    """
    if snapshot.previous is None:
        return diff(snapshot.current.get(key).sections)
    return diff(snapshot.current.get(key).sections, snapshot.previous.get(key).sections)
