"""
Filesystem locations used by the engine
"""

from pathlib import Path


def get_data_dir() -> Path:
    """User data directory (~/.config/focus-engine)"""
    return Path.home() / ".config" / "focus-engine"


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    """Default SQLite database location"""
    return ensure_dir(get_data_dir()) / "focus.db"
