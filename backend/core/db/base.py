"""
Base repository - shared connection handling for all repositories
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class BaseRepository:
    """Base class holding the database path and connection helpers"""

    def __init__(self, db_path: Path):
        self.db_path = db_path

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        """Open a connection with dict-like rows; always closed on exit"""
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()
