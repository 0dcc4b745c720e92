"""
Migration 0001: Initial database schema

Creates the focus session and attention tables with their indexes
"""

import sqlite3

from migrations.base import BaseMigration


class Migration(BaseMigration):
    version = "0001"
    description = "Focus sessions and attention tables"

    def up(self, cursor: sqlite3.Cursor) -> None:
        from core.sqls import schema

        for table_sql in schema.ALL_TABLES:
            cursor.execute(table_sql)

        for index_sql in schema.ALL_INDEXES:
            cursor.execute(index_sql)
