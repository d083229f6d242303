"""Logging configuration for the command line entry points."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def _normalise_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = level.strip().upper()
        if value.isdigit():
            return int(value)
        mapped = logging.getLevelName(value)
        if isinstance(mapped, int):
            return mapped
    return logging.INFO


def configure_logging(level: Optional[str | int] = None, console: Optional[Console] = None) -> None:
    """Route root logging through a single rich handler on stderr.

    Existing root handlers are removed first so repeated calls (tests, the
    interactive shell) do not duplicate output.
    """
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=_normalise_level(level),
        format="%(name)s - %(message)s",
        datefmt="[%X]",
        handlers=[handler],
    )
