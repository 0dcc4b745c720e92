"""
Database module - Repository pattern implementation

This module provides:
1. Repository classes for focus sessions and attention records
2. Unified DatabaseManager that aggregates all repositories
3. Global get_db() and switch_database() functions for easy access
"""

from pathlib import Path
from typing import Dict, Optional

from core.logger import get_logger
from core.sqls import queries

from .attention import AttentionRepository
from .base import BaseRepository
from .focus_sessions import FocusSessionsRepository

logger = get_logger(__name__)


class DatabaseManager:
    """
    Unified database manager that provides access to all repositories

    Example:
        db = get_db()
        session = await db.focus_sessions.find_latest_session(user_id)
        visits = await db.attention.get_website_visits(user_id, start, end)
    """

    def __init__(self, db_path: Path):
        """
        Initialize DatabaseManager with all repositories

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)

        self._initialize_database()

        self.focus_sessions = FocusSessionsRepository(self.db_path)
        self.attention = AttentionRepository(self.db_path)

        logger.debug(f"✓ DatabaseManager initialized with path: {self.db_path}")

    def _initialize_database(self):
        """Run pending schema migrations"""
        from migrations import MigrationRunner

        try:
            executed_count = MigrationRunner(self.db_path).run_migrations()

            if executed_count > 0:
                logger.info(f"✓ Database schema initialized: {executed_count} migration(s) executed")
            else:
                logger.debug("✓ Database schema up to date")

        except Exception as e:
            logger.error(f"Failed to initialize database schema: {e}", exc_info=True)
            raise

    def get_table_counts(self) -> Dict[str, int]:
        """
        Return row counts for every engine table

        Returns:
            Dict keyed by table name containing count values.
        """
        counts: Dict[str, int] = {}
        base = BaseRepository(self.db_path)
        try:
            with base._get_conn() as conn:
                for table, query in queries.TABLE_COUNT_QUERIES.items():
                    row = conn.execute(query).fetchone()
                    counts[table] = row["count"] if row else 0
            return counts
        except Exception as exc:
            logger.error(f"Failed to compute table counts: {exc}", exc_info=True)
            return counts


# Global database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_db() -> DatabaseManager:
    """
    Get global DatabaseManager instance

    The database path is read from config.toml (database.path), or defaults
    to ~/.config/focus-engine/focus.db
    """
    global _db_manager

    if _db_manager is None:
        from config.loader import get_config
        from core.paths import get_db_path

        config = get_config()
        configured_path = config.get("database.path", "") or ""

        if configured_path.strip():
            db_path = Path(configured_path).expanduser()
        else:
            db_path = get_db_path()

        _db_manager = DatabaseManager(db_path)
        logger.debug(f"✓ Global DatabaseManager initialized: {db_path}")

    return _db_manager


def switch_database(new_db_path: str) -> bool:
    """
    Switch database to a new path at runtime

    Args:
        new_db_path: New database path

    Returns:
        True if switch successful, False otherwise
    """
    global _db_manager

    try:
        new_path = Path(new_db_path)

        if _db_manager is not None and _db_manager.db_path.resolve() == new_path.resolve():
            logger.debug(f"New path is same as current, no switch needed: {new_db_path}")
            return True

        new_path.parent.mkdir(parents=True, exist_ok=True)

        _db_manager = DatabaseManager(new_path)
        logger.debug(f"✓ Database switched to: {new_db_path}")
        return True

    except Exception as e:
        logger.error(f"Failed to switch database: {e}", exc_info=True)
        return False


__all__ = [
    "BaseRepository",
    "AttentionRepository",
    "FocusSessionsRepository",
    "DatabaseManager",
    "get_db",
    "switch_database",
]
