"""
Terminal report of a stored snapshot.

Shows what the dashboard shows:
- per region, the configured topics in a fixed order (missing topics as 0)
- the region total with its day-over-day delta
- the courses added/removed since the previous run
- the event page sessions, when any were found
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dlimonitor.diff import Diff, diff_region
from dlimonitor.model import RegionResult, Section, Snapshot

HQ_TOPICS = [
    "Generative AI/LLM",
    "Deep Learning",
    "Accelerated Computing",
    "Graphics and Simulation",
    "Data Science",
]

CHINA_TOPICS = [
    "生成式 AI/大语言模型",
    "深度学习",
    "加速计算",
    "图形与仿真",
    "数据科学",
]

# (source key, heading, topic order or None for "as extracted")
REGIONS = [
    ("hq", "HQ", HQ_TOPICS),
    ("china", "China", CHINA_TOPICS),
    ("event.hq", "HQ Event", None),
    ("event.china", "China Event", None),
]


def order_sections(sections: Iterable[Section], topics: Sequence[str]) -> List[Section]:
    """
    One section per topic, in topic order.

    Topics without live data get an empty section; sections whose title is
    not a configured topic are left out.
    """
    by_title: dict[str, Section] = {}
    for s in sections:
        by_title.setdefault(s.title, s)
    return [by_title.get(t, Section(title=t)) for t in topics]


def format_delta(delta: int) -> str:
    if delta > 0:
        return f"[green]+{delta}[/green]"
    if delta < 0:
        return f"[red]{delta}[/red]"
    return ""


def region_table(label: str, region: RegionResult, change: Diff, topics: Sequence[str] | None) -> Table:
    sections = order_sections(region.sections, topics) if topics is not None else list(region.sections)

    title = f"{label}  {region.total}"
    delta = format_delta(change.delta)
    if delta:
        title = f"{title} ({delta})"

    table = Table(title=title, box=box.SIMPLE, show_header=True)
    table.add_column("Topic")
    table.add_column("Courses", justify="right")
    for s in sections:
        table.add_row(escape(s.title), str(s.count))
    return table


def _print_changes(console: Console, change: Diff) -> None:
    for c in change.added:
        console.print(f"  [green]+[/green] {escape(c.title)} ({escape(c.price)}) {escape(c.url)}")
    for c in change.removed:
        console.print(f"  [red]-[/red] {escape(c.title)} ({escape(c.price)}) {escape(c.url)}")


def render_snapshot(snapshot: Snapshot, console: Console | None = None) -> None:
    console = console or Console()

    console.print(f"[bold]DLI Dashboard[/bold]  last update: {snapshot.timestamp or 'unknown'}")
    if snapshot.degraded:
        console.print(
            f"[yellow]Degraded run: {', '.join(snapshot.failed)} failed; "
            "removals for those sources are not real.[/yellow]"
        )

    for key, label, topics in REGIONS:
        region = snapshot.current.get(key)
        # Event cards are only shown when the page was monitored
        if topics is None and region.total == 0:
            continue

        change = diff_region(snapshot, key)
        console.print(region_table(label, region, change, topics))
        _print_changes(console, change)
