"""
Persistent Storage Module.

Provides SQLite-backed persistence for allowlist projects. Only entries and
the published root are stored; trees are derived from the entries.
"""

from badgeroot.core.storage.sqlite_adapter import SQLiteAdapter
from badgeroot.core.storage.project_store import ProjectRecord, ProjectStore

__all__ = ["SQLiteAdapter", "ProjectRecord", "ProjectStore"]
