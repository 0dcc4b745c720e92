"""
Migration runner - Manages database schema versioning

Creates the schema_migrations tracking table, discovers migration modules in
versions/, and applies the pending ones in version order.
"""

import importlib
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Set, Type

from core.logger import get_logger

from .base import BaseMigration

logger = get_logger(__name__)


class MigrationRunner:
    """
    Database migration runner with version tracking

    Usage:
        runner = MigrationRunner(db_path)
        runner.run_migrations()
    """

    SCHEMA_MIGRATIONS_TABLE = """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            description TEXT NOT NULL,
            applied_at TEXT NOT NULL
        )
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def _get_applied_versions(self, cursor: sqlite3.Cursor) -> Set[str]:
        cursor.execute("SELECT version FROM schema_migrations")
        return {row[0] for row in cursor.fetchall()}

    def _discover_migrations(self) -> List[Type[BaseMigration]]:
        """
        Discover migration classes from the versions package

        Returns:
            Migration classes sorted by version
        """
        migrations_dir = Path(__file__).parent / "versions"

        if not migrations_dir.exists():
            logger.warning(f"Migrations directory not found: {migrations_dir}")
            return []

        discovered: List[Type[BaseMigration]] = []

        for migration_file in sorted(migrations_dir.glob("*.py")):
            if migration_file.name.startswith("_"):
                continue

            module = importlib.import_module(f"migrations.versions.{migration_file.stem}")

            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if (
                    isinstance(attr, type)
                    and issubclass(attr, BaseMigration)
                    and attr is not BaseMigration
                ):
                    discovered.append(attr)
                    logger.debug(f"Discovered migration: {attr.version} - {attr.description}")

        discovered.sort(key=lambda m: m.version)
        return discovered

    def _record_migration(self, cursor: sqlite3.Cursor, migration: BaseMigration) -> None:
        cursor.execute(
            """
            INSERT INTO schema_migrations (version, description, applied_at)
            VALUES (?, ?, ?)
            """,
            (
                migration.version,
                migration.description,
                datetime.now(timezone.utc).isoformat(),
            ),
        )

    def run_migrations(self) -> int:
        """
        Run all pending migrations, each in its own transaction

        Returns:
            Number of migrations executed
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with closing(sqlite3.connect(str(self.db_path))) as conn:
            cursor = conn.cursor()
            cursor.execute(self.SCHEMA_MIGRATIONS_TABLE)
            conn.commit()

            applied_versions = self._get_applied_versions(cursor)
            pending = [
                migration_class
                for migration_class in self._discover_migrations()
                if migration_class.version not in applied_versions
            ]

            if not pending:
                logger.debug("✓ All migrations up to date")
                return 0

            logger.info(f"Found {len(pending)} pending migration(s)")

            for migration_class in pending:
                migration = migration_class()
                logger.info(f"Running migration {migration.version}: {migration.description}")

                try:
                    migration.up(cursor)
                    self._record_migration(cursor, migration)
                    conn.commit()
                except Exception as e:
                    logger.error(f"✗ Migration {migration.version} failed: {e}", exc_info=True)
                    conn.rollback()
                    raise

                logger.info(f"✓ Migration {migration.version} completed successfully")

            return len(pending)

    def get_migration_status(self) -> Dict[str, Any]:
        """
        Get applied and pending migrations

        Returns:
            Dictionary with counts and version lists
        """
        with closing(sqlite3.connect(str(self.db_path))) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute(self.SCHEMA_MIGRATIONS_TABLE)
            cursor.execute(
                "SELECT version, description, applied_at FROM schema_migrations ORDER BY version"
            )
            applied = [dict(row) for row in cursor.fetchall()]

        applied_versions = {m["version"] for m in applied}
        pending = [
            {"version": m.version, "description": m.description}
            for m in self._discover_migrations()
            if m.version not in applied_versions
        ]

        return {
            "applied_count": len(applied),
            "pending_count": len(pending),
            "applied": applied,
            "pending": pending,
        }
