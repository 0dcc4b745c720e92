"""
Database migrations - version-tracked schema changes applied in order
"""

from .runner import MigrationRunner

__all__ = ["MigrationRunner"]
