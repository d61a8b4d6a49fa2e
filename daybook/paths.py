from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIR_NAME = "Daybook"
DATA_DIR_ENV = "DAYBOOK_DATA_DIR"


def data_directory() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    local_appdata = os.environ.get("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME.lower()


def database_path() -> Path:
    return data_directory() / "daybook.sqlite3"


def ensure_directories() -> None:
    data_directory().mkdir(parents=True, exist_ok=True)
