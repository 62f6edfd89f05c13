"""TOML configuration loader."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

DEFAULT_DB_PATH = "~/.config/shelflife/shelflife.db"


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class NotificationsConfig:
    backend: str = "log"
    check_interval_minutes: int = 60
    default_snooze_days: int = 1


@dataclass
class ReorderConfig:
    api_url: str = ""
    timeout: float = 5.0
    cache_ttl_days: int = 7


@dataclass
class ShelflifeConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    reorder: ReorderConfig = field(default_factory=ReorderConfig)


def load_config(path: str | Path | None = None) -> ShelflifeConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path and affiliate API URL can be supplied via environment
    variables when the file leaves them empty.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    ntf = raw.get("notifications", {})
    ro = raw.get("reorder", {})

    # Resolve: config file → environment variable → default
    db_path = (
        dbs.get("path", "")
        or os.environ.get("SHELFLIFE_DB_PATH", "")
        or DEFAULT_DB_PATH
    )
    api_url = ro.get("api_url", "") or os.environ.get(
        "SHELFLIFE_AFFILIATE_API_URL", ""
    )

    return ShelflifeConfig(
        database=DatabaseConfig(path=db_path),
        notifications=NotificationsConfig(
            backend=ntf.get("backend", "log"),
            check_interval_minutes=ntf.get("check_interval_minutes", 60),
            default_snooze_days=ntf.get("default_snooze_days", 1),
        ),
        reorder=ReorderConfig(
            api_url=api_url,
            timeout=float(ro.get("timeout", 5.0)),
            cache_ttl_days=ro.get("cache_ttl_days", 7),
        ),
    )
