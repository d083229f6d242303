"""Runtime settings for dlimonitor.

All configuration is resolved here in one place. Every value can be
overridden through an environment variable; the CLI overrides a few of them
again with explicit flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

HQ_CATALOG_URL = "https://www.nvidia.com/en-us/training/self-paced-courses/"
CHINA_CATALOG_URL = "https://www.nvidia.cn/training/online/"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    data_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("DLIMONITOR_DATA_DIR", "data"))
    )

    @property
    def stats_path(self) -> Path:
        """Snapshot file read by the dashboard."""
        return self.data_dir / "stats.json"

    @property
    def event_config_path(self) -> Path:
        return self.data_dir / "event_config.json"

    # ------------------------------------------------------------------
    # Catalog pages
    # ------------------------------------------------------------------
    hq_url: str = field(
        default_factory=lambda: os.environ.get("DLIMONITOR_HQ_URL", HQ_CATALOG_URL)
    )
    china_url: str = field(
        default_factory=lambda: os.environ.get("DLIMONITOR_CHINA_URL", CHINA_CATALOG_URL)
    )

    # ------------------------------------------------------------------
    # Browser / timing
    # ------------------------------------------------------------------
    headless: bool = field(
        default_factory=lambda: _env_bool("DLIMONITOR_HEADLESS", True)
    )
    navigation_timeout_ms: int = field(
        default_factory=lambda: int(os.environ.get("DLIMONITOR_NAV_TIMEOUT_MS", "30000"))
    )
    # Fixed settle delays in seconds (the pages expose no readiness signal)
    tab_settle: float = field(
        default_factory=lambda: float(os.environ.get("DLIMONITOR_TAB_SETTLE", "1.0"))
    )
    show_more_settle: float = field(
        default_factory=lambda: float(os.environ.get("DLIMONITOR_SHOW_MORE_SETTLE", "1.5"))
    )
    event_settle: float = field(
        default_factory=lambda: float(os.environ.get("DLIMONITOR_EVENT_SETTLE", "3.0"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("DLIMONITOR_LOG_LEVEL", "INFO")
    )
