"""
Utilities for handling local data directories and download file names.
"""

import os
from pathlib import Path
from urllib.parse import unquote, urlsplit

from pathvalidate import sanitize_filename

FALLBACK_FILE_NAME = "download"


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "cacheflow"


def get_data_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("LOCALAPPDATA", "~\\AppData\\Local"))
    else:
        base_dir = Path(os.getenv("XDG_DATA_HOME", "~/.local/share"))
    return base_dir.expanduser() / "cacheflow"


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def file_name_from_key(key: str) -> str:
    """
    Derives a download file name from the trailing path segment of a request key.

    Query strings and fragments are ignored and the result is sanitized for the
    local filesystem, e.g. ``https://host/files/report.pdf?v=2`` -> ``report.pdf``.
    """
    path = urlsplit(key).path if "://" in key else key.split("?", 1)[0].split("#", 1)[0]
    segment = unquote(path.rstrip("/").rsplit("/", 1)[-1])
    name = sanitize_filename(segment)
    return name or FALLBACK_FILE_NAME
