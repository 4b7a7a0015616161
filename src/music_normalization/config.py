# music_normalization/config.py

"""Shared configuration and environment setup."""

from __future__ import annotations

from os import getenv
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)


def get_project_root() -> Path:
    """Return the project root directory.

    Prefers MUSIC_NORMALIZATION_PROJECT_ROOT. Falls back to current working directory.
    """
    if root := getenv("MUSIC_NORMALIZATION_PROJECT_ROOT"):
        return Path(root).resolve()
    return Path.cwd()


def get_database_path() -> Path:
    """Return the SQLite database file the migration writes to."""
    if path := getenv("MUSIC_NORMALIZATION_DB"):
        return Path(path)
    return get_project_root() / "data" / "music.db"


def get_raw_data_dir() -> Path:
    """Return the directory holding the raw JSONL snapshot."""
    if path := getenv("MUSIC_NORMALIZATION_RAW_DIR"):
        return Path(path)
    return get_project_root() / "data" / "raw"
