"""
Central data model definitions used across the project.

This module defines the canonical records produced by the extractors and
folded into the persisted snapshot so that:
- extractors, diffing, storage and the report share the same field names
- the JSON shape read by the dashboard stays stable
- derived numbers (section count, region total) can never drift from the data
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


# Keys of the four extraction sources, in pipeline order
SOURCE_KEYS = ("hq", "china", "event.hq", "event.china")


def _as_dict(raw: Any) -> dict[str, Any]:
    return raw if isinstance(raw, dict) else {}


def _as_list(raw: Any) -> list[Any]:
    return raw if isinstance(raw, list) else []


@dataclass(frozen=True)
class Course:
    """
    One training offering. Two courses are the same iff their URLs are equal.
    """

    title: str
    url: str
    price: str = "Free"

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "price": self.price}

    @classmethod
    def from_dict(cls, raw: Any) -> "Course":
        data = _as_dict(raw)
        return cls(
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            price=str(data.get("price") or "Free"),
        )


@dataclass(frozen=True)
class Section:
    """
    A named topic grouping of courses. Course order is DOM encounter order.
    """

    title: str
    courses: Tuple[Course, ...] = ()

    @property
    def count(self) -> int:
        return len(self.courses)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "count": self.count,
            "courses": [c.to_dict() for c in self.courses],
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "Section":
        # "count" in the file is ignored: it is always recomputed
        data = _as_dict(raw)
        courses = tuple(Course.from_dict(c) for c in _as_list(data.get("courses")))
        return cls(title=str(data.get("title") or ""), courses=courses)


@dataclass(frozen=True)
class RegionResult:
    """
    Sections and total for one (region, catalog|event) source.
    """

    sections: Tuple[Section, ...] = ()

    @property
    def total(self) -> int:
        return sum(s.count for s in self.sections)

    def courses(self) -> List[Course]:
        out: List[Course] = []
        for s in self.sections:
            out.extend(s.courses)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {"sections": [s.to_dict() for s in self.sections], "total": self.total}

    @classmethod
    def from_dict(cls, raw: Any) -> "RegionResult":
        data = _as_dict(raw)
        return cls(sections=tuple(Section.from_dict(s) for s in _as_list(data.get("sections"))))


EMPTY_REGION = RegionResult()


@dataclass(frozen=True)
class RunData:
    """
    The four RegionResults of one run (the "current"/"previous" halves).
    """

    hq: RegionResult = EMPTY_REGION
    china: RegionResult = EMPTY_REGION
    event_hq: RegionResult = EMPTY_REGION
    event_china: RegionResult = EMPTY_REGION

    def get(self, key: str) -> RegionResult:
        """
        Look up a region by source key ("hq", "china", "event.hq", "event.china").
        """
        if key not in SOURCE_KEYS:
            raise KeyError(key)
        return getattr(self, key.replace(".", "_"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "hq": self.hq.to_dict(),
            "china": self.china.to_dict(),
            "event": {"hq": self.event_hq.to_dict(), "china": self.event_china.to_dict()},
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "RunData":
        # Older snapshots have no "event" block: it becomes empty regions
        data = _as_dict(raw)
        event = _as_dict(data.get("event"))
        return cls(
            hq=RegionResult.from_dict(data.get("hq")),
            china=RegionResult.from_dict(data.get("china")),
            event_hq=RegionResult.from_dict(event.get("hq")),
            event_china=RegionResult.from_dict(event.get("china")),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    One persisted run: current results, the results of the run before, and
    the names of sources that failed in this run.
    """

    timestamp: str
    current: RunData
    previous: Optional[RunData] = field(default_factory=RunData)
    failed: Tuple[str, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "current": self.current.to_dict(),
            "previous": self.previous.to_dict() if self.previous is not None else None,
            "failed": list(self.failed),
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["Snapshot"]:
        """
        Build a Snapshot from decoded JSON, or None if it has no "current" block.

        A missing "previous" block stays None: there is nothing to diff against.
        """
        data = _as_dict(raw)
        if not isinstance(data.get("current"), dict):
            return None
        return cls(
            timestamp=str(data.get("timestamp") or ""),
            current=RunData.from_dict(data.get("current")),
            previous=RunData.from_dict(data["previous"]) if isinstance(data.get("previous"), dict) else None,
            failed=tuple(str(x) for x in _as_list(data.get("failed"))),
        )


def make_section(title: str, courses: List[Course]) -> Section:
    return Section(title=title, courses=tuple(courses))


def make_region(sections: List[Section]) -> RegionResult:
    return RegionResult(sections=tuple(sections))
