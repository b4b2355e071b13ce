import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from badgeroot.core.entries import AllowlistEntry, entries_to_json
from badgeroot.core.storage.sqlite_adapter import SQLiteAdapter
from badgeroot.utils.logger import get_logger

logger = get_logger("storage.projects")


@dataclass
class ProjectRecord:
    """
    A persisted allowlist project.
    
    Attributes:
        slug: Lowercased project identifier
        merkle_root: Published root, 0x-hex
        entries: Source of truth for the tree
        created_at: Upload time, milliseconds since epoch
    """
    slug: str
    merkle_root: str
    entries: List[AllowlistEntry] = field(default_factory=list)
    created_at: int = 0


class ProjectStore:
    """
    Persists allowlist projects.
    
    Slugs are case-insensitive: they are lowercased on every read and write.
    """

    def __init__(self, data_dir: Path, db_name: str = "projects.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)
        
        logger.info(f"ProjectStore initialized at {self.db_path}")

    @staticmethod
    def _row_to_record(row) -> ProjectRecord:
        slug, merkle_root, entries_json, created_at = row
        entries = [AllowlistEntry(**item) for item in json.loads(entries_json)]
        return ProjectRecord(slug=slug, merkle_root=merkle_root, entries=entries, created_at=created_at)

    def save_project(self, record: ProjectRecord):
        """Save (or replace) a project."""
        slug = record.slug.strip().lower()
        self.adapter.save_project(
            slug, record.merkle_root, entries_to_json(record.entries), record.created_at
        )
        logger.debug(f"Saved project {slug} ({len(record.entries)} entries)")

    def get_project(self, slug: str) -> Optional[ProjectRecord]:
        row = self.adapter.get_project(slug.strip().lower())
        return self._row_to_record(row) if row else None

    def get_all_projects(self) -> List[ProjectRecord]:
        return [self._row_to_record(row) for row in self.adapter.get_all_projects()]

    def delete_project(self, slug: str) -> bool:
        return self.adapter.delete_project(slug.strip().lower())

    def has_project(self, slug: str) -> bool:
        return self.adapter.get_project(slug.strip().lower()) is not None

    def __len__(self) -> int:
        return self.adapter.count_projects()

    def close(self):
        self.adapter.close()
