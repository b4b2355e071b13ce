import sqlite3
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from badgeroot.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for allowlist projects.
    
    One row per project: slug, published root, raw entries (JSON) and
    creation time. Tree structure is never stored; it is rebuilt from the
    entries.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()
        
        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)
            
        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path, 
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS projects (
                    slug TEXT PRIMARY KEY,
                    merkle_root TEXT NOT NULL,
                    entries TEXT NOT NULL,
                    created_at INTEGER NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_projects_created ON projects(created_at);")

    def close(self):
        """Close this thread's connection."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn

    # =========================================================================
    # Project Operations
    # =========================================================================

    def save_project(self, slug: str, merkle_root: str, entries_json: str, created_at: int):
        """Insert or replace a project row."""
        conn = self._get_conn()
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO projects (slug, merkle_root, entries, created_at) VALUES (?, ?, ?, ?)",
                (slug, merkle_root, entries_json, created_at)
            )

    def get_project(self, slug: str) -> Optional[Tuple[str, str, str, int]]:
        """Get (slug, merkle_root, entries_json, created_at) or None."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT slug, merkle_root, entries, created_at FROM projects WHERE slug = ?", (slug,)
        )
        row = cursor.fetchone()
        return tuple(row) if row else None

    def get_all_projects(self) -> List[Tuple[str, str, str, int]]:
        """Get all project rows ordered by creation time."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT slug, merkle_root, entries, created_at FROM projects ORDER BY created_at ASC, slug ASC"
        )
        return [tuple(row) for row in cursor]

    def delete_project(self, slug: str) -> bool:
        conn = self._get_conn()
        with conn:
            cursor = conn.execute("DELETE FROM projects WHERE slug = ?", (slug,))
        return cursor.rowcount > 0

    def count_projects(self) -> int:
        conn = self._get_conn()
        cursor = conn.execute("SELECT COUNT(*) as cnt FROM projects")
        return cursor.fetchone()['cnt']
