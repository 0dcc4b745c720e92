"""
Base migration class
"""

import sqlite3
from abc import ABC, abstractmethod


class BaseMigration(ABC):
    """
    A single schema change

    Subclasses set a unique 4-digit version and a description, and implement
    up(). down() is optional; most schema changes are not rolled back.
    """

    version: str = ""
    description: str = ""

    @abstractmethod
    def up(self, cursor: sqlite3.Cursor) -> None:
        """Apply the schema change"""

    def down(self, cursor: sqlite3.Cursor) -> None:
        """Revert the schema change (no-op by default)"""

    def __repr__(self) -> str:
        return f"<Migration {self.version}: {self.description}>"
