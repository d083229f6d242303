"""
Persistent state of the monitor.

This module manages two JSON files inside the data directory:

    data/stats.json          the snapshot read by the dashboard
    data/event_config.json   {"hqUrl": ..., "chinaUrl": ...}

Design rationale:
- each run reads the previous snapshot once and writes the new one once
- a missing or corrupted file never stops a run; it is treated as absent
- the snapshot is written to a temporary file and renamed over the old one,
  so a crash mid-write leaves the previous snapshot intact
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dlimonitor.model import Snapshot

logger = logging.getLogger(__name__)


def _default_data_dir() -> Path:
    """
    Return the default data directory (relative to the working directory,
    where the dashboard server also looks for it).
    """
    return Path("data")


def _read_json(path: Path) -> object:
    return json.loads(path.read_text(encoding="utf-8"))


class SnapshotStore:
    """
    File-backed snapshot repository: load() -> Snapshot | None, save(Snapshot).
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_data_dir() / "stats.json"

    def load(self) -> Optional[Snapshot]:
        """
        Load the last persisted snapshot.

        Returns None if the file does not exist or cannot be understood.
        """
        # First run: no history yet
        if not self.path.exists():
            return None

        try:
            snapshot = Snapshot.from_dict(_read_json(self.path))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable snapshot %s: %s", self.path, e)
            return None

        if snapshot is None:
            logger.warning("Ignoring snapshot without current data: %s", self.path)
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """
        Replace the snapshot file atomically. Creates parent directories if needed.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


@dataclass(frozen=True)
class EventConfig:
    hq_url: str = ""
    china_url: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.hq_url or self.china_url)


def load_event_config(path: str | Path | None = None) -> EventConfig:
    """
    Load the event page URLs.

    A missing or invalid file disables event monitoring (both URLs empty).
    """
    config_path = Path(path) if path is not None else _default_data_dir() / "event_config.json"
    if not config_path.exists():
        return EventConfig()

    try:
        data = _read_json(config_path)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Error reading event config %s: %s", config_path, e)
        return EventConfig()

    if not isinstance(data, dict):
        logger.warning("Event config %s is not a JSON object", config_path)
        return EventConfig()

    def _url(key: str) -> str:
        value = data.get(key)
        return value.strip() if isinstance(value, str) else ""

    return EventConfig(hq_url=_url("hqUrl"), china_url=_url("chinaUrl"))
