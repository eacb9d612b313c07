"""Persistent JSON preferences and platform directories.

Stores the save debounce interval, archive capacity and eviction policy,
page height, and log level. All access is defensive: malformed or missing
config falls back safely.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir, user_state_dir

from .document.model import DEFAULT_ARCHIVE_CAPACITY
from .persistence.scheduler import DEFAULT_SAVE_DEBOUNCE_SECONDS
from .view.surface import DEFAULT_LINES_PER_PAGE

APP_NAME = "updraft"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "updraft.log"
CONFIG_ENV = "UPDRAFT_CONFIG"
STATE_DIR_ENV = "UPDRAFT_STATE_DIR"
OPEN_FILES_ENV = "UPDRAFT_OPEN_FILES"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = Path(os.environ[CONFIG_ENV]) if os.environ.get(CONFIG_ENV) else DEFAULT_CONFIG_PATH

EVICTION_CREATED = "created"
EVICTION_TOUCHED = "touched"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return default
    return value


def load_save_debounce_seconds(data: dict[str, object] | None = None) -> float:
    value = (load_config() if data is None else data).get("save_debounce_seconds")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return DEFAULT_SAVE_DEBOUNCE_SECONDS
    return float(value)


def load_archive_capacity(data: dict[str, object] | None = None) -> int:
    value = (load_config() if data is None else data).get("archive_capacity")
    return _positive_int(value, DEFAULT_ARCHIVE_CAPACITY)


def load_archive_eviction(data: dict[str, object] | None = None) -> str:
    """Return ``"created"`` (insertion order) unless ``"touched"`` (LRU) is configured."""
    value = (load_config() if data is None else data).get("archive_eviction")
    return EVICTION_TOUCHED if value == EVICTION_TOUCHED else EVICTION_CREATED


def load_lines_per_page(data: dict[str, object] | None = None) -> int:
    value = (load_config() if data is None else data).get("lines_per_page")
    return _positive_int(value, DEFAULT_LINES_PER_PAGE)


def load_log_level(data: dict[str, object] | None = None) -> str:
    value = (load_config() if data is None else data).get("log_level")
    if not isinstance(value, str):
        return DEFAULT_LOG_LEVEL
    normalized = value.strip().upper()
    return normalized if normalized in LOG_LEVELS else DEFAULT_LOG_LEVEL


def state_dir() -> Path:
    """Directory holding the persisted session and document blobs."""
    override = os.environ.get(STATE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path(user_state_dir(APP_NAME, appauthor=False))


def log_path() -> Path:
    return Path(user_log_dir(APP_NAME, appauthor=False)) / LOG_FILENAME


def requested_open_files() -> list[Path]:
    """Files the environment asked to open before startup finished."""
    raw = os.environ.get(OPEN_FILES_ENV, "")
    return [Path(part) for part in raw.split(os.pathsep) if part.strip()]


@dataclass(frozen=True)
class Settings:
    save_debounce_seconds: float = DEFAULT_SAVE_DEBOUNCE_SECONDS
    archive_capacity: int = DEFAULT_ARCHIVE_CAPACITY
    archive_eviction: str = EVICTION_CREATED
    lines_per_page: int = DEFAULT_LINES_PER_PAGE
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def touch_on_update(self) -> bool:
        return self.archive_eviction == EVICTION_TOUCHED


def load_settings() -> Settings:
    """Read every preference from one config load."""
    data = load_config()
    return Settings(
        save_debounce_seconds=load_save_debounce_seconds(data),
        archive_capacity=load_archive_capacity(data),
        archive_eviction=load_archive_eviction(data),
        lines_per_page=load_lines_per_page(data),
        log_level=load_log_level(data),
    )
