from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass

log = logging.getLogger(__name__)


DEFAULT_POLL_INTERVAL_MS: int = 500
MIN_POLL_INTERVAL_MS: int = 50


@dataclass(frozen=True, slots=True)
class AppSettings:
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    db_path: str | None = None
    paste_on_activate: bool = True


def default_app_dir() -> str:
    base = os.environ.get("APPDATA") or os.path.expanduser("~")
    return os.path.join(base, "ClipKeep")


def default_config_path() -> str:
    return os.path.join(default_app_dir(), "config.json")


def default_db_path() -> str:
    return os.path.join(default_app_dir(), "history.sqlite3")


def load_settings(path: str | None = None) -> AppSettings:
    path = path or default_config_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        data = {}
    except (OSError, ValueError):
        log.warning("ignoring unreadable config %s", path, exc_info=True)
        data = {}
    if not isinstance(data, dict):
        data = {}

    try:
        poll_interval_ms = int(data.get("poll_interval_ms", DEFAULT_POLL_INTERVAL_MS))
    except (TypeError, ValueError):
        poll_interval_ms = DEFAULT_POLL_INTERVAL_MS
    poll_interval_ms = max(poll_interval_ms, MIN_POLL_INTERVAL_MS)
    db_path = data.get("db_path") or None
    paste_on_activate = bool(data.get("paste_on_activate", True))
    return AppSettings(
        poll_interval_ms=poll_interval_ms,
        db_path=db_path,
        paste_on_activate=paste_on_activate,
    )


def save_settings(settings: AppSettings, path: str | None = None) -> None:
    path = path or default_config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)
    data = asdict(settings)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
