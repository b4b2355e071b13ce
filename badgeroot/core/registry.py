"""
Allowlist Registry - eligibility queries over stored projects.

This module provides:
- Allowlist upload (CSV or entries) with a full tree rebuild
- Per-project proof lookup for (name, address)
- Project summaries
- Cross-project lookup of everything an address can claim

Stored entries are the source of truth. Trees are derived from them and
optionally cached per slug; a re-upload replaces the cached tree, which
invalidates every proof issued against the previous root.
"""

import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from badgeroot.crypto import bytes_to_hex
from badgeroot.core.artifact import build_proofs_document
from badgeroot.core.config import AllowlistConfig
from badgeroot.core.entries import (
    AllowlistEntry,
    EntryValidationError,
    coerce_entries,
    parse_csv,
    parse_json,
)
from badgeroot.core.merkle import (
    AllowlistTree,
    build_tree,
    generate_proof,
    get_strategy,
    name_hash,
    normalize_name,
)
from badgeroot.core.storage import ProjectRecord, ProjectStore
from badgeroot.utils.logger import get_logger
from badgeroot.utils.validation import validate_address, validate_slug

logger = get_logger("registry")


class ProjectNotFoundError(KeyError):
    """Raised when an operation needs a project that does not exist."""


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class UploadResult:
    """Outcome of an allowlist upload."""
    slug: str
    merkle_root: str
    row_count: int
    proofs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProofResponse:
    """
    Answer to an eligibility query.
    
    Attributes:
        proof: Sibling hashes, 0x-hex, leaf to root
        name_hash: Hash of the normalized name (passed to the claim call)
        eligible: Whether (name, address) is on the allowlist
    """
    proof: List[str]
    name_hash: str
    eligible: bool


@dataclass
class ProjectSummary:
    slug: str
    merkle_root: str
    entry_count: int
    created_at: int


@dataclass
class Claim:
    """One claimable identity for an address."""
    slug: str
    badge_type: str
    name: str
    name_hash: str
    proof: List[str]


# =============================================================================
# Registry
# =============================================================================


class AllowlistRegistry:
    """
    Answers eligibility queries for all stored allowlists.
    
    Safe to share between threads. Each project has its own lock covering
    its stored row and cached tree together; the store uses per-thread
    connections.
    """
    
    def __init__(self, store: ProjectStore, config: Optional[AllowlistConfig] = None):
        self.store = store
        self.config = config or AllowlistConfig()
        self.strategy = get_strategy(self.config.hash_strategy)
        
        self._trees: Dict[str, AllowlistTree] = {}
        self._slug_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
    
    @classmethod
    def from_config(cls, config: AllowlistConfig) -> "AllowlistRegistry":
        return cls(ProjectStore(config.data_dir, config.db_name), config)
    
    # =========================================================================
    # Upload
    # =========================================================================
    
    def upload_csv(self, slug: str, csv_text: str) -> UploadResult:
        """
        Parse CSV text and publish it as the allowlist for `slug`.
        
        Raises:
            EntryValidationError: On malformed CSV or slug
        """
        return self.upload_entries(slug, parse_csv(csv_text))
    
    def upload_json(self, slug: str, payload) -> UploadResult:
        """
        Publish a JSON upload (array of {name, address}) for `slug`.
        
        Raises:
            EntryValidationError: On malformed JSON or slug
        """
        return self.upload_entries(slug, parse_json(payload))
    
    def upload_entries(self, slug: str, entries: Iterable[Any]) -> UploadResult:
        """
        Publish `entries` as the allowlist for `slug`, replacing any previous one.
        
        The stored row and the cached tree are replaced together under the
        slug's lock, so concurrent uploads never leave them disagreeing.
        
        Raises:
            EntryValidationError: On a malformed slug or entry, or too many entries
            EmptyAllowlistError: If `entries` is empty
        """
        slug = self._normalize_slug(slug)
        entries = coerce_entries(entries)
        
        if len(entries) > self.config.max_entries:
            raise EntryValidationError(
                f"Allowlist has {len(entries)} entries, max is {self.config.max_entries}"
            )
        
        duplicates = self._count_duplicates(entries)
        if duplicates:
            logger.warning(f"Project {slug}: {duplicates} duplicate (address, name) entries")
        
        tree = build_tree(entries, self.strategy)
        
        with self._slug_lock(slug):
            self.store.save_project(ProjectRecord(
                slug=slug,
                merkle_root=tree.root_hex,
                entries=entries,
                created_at=int(time.time() * 1000),
            ))
            with self._lock:
                if self.config.cache_trees:
                    self._trees[slug] = tree
                else:
                    self._trees.pop(slug, None)
        
        logger.info(f"Published {slug}: {len(entries)} entries, root {tree.root_hex}")
        
        return UploadResult(
            slug=slug,
            merkle_root=tree.root_hex,
            row_count=len(entries),
            proofs=build_proofs_document(tree, slug),
        )
    
    def delete_project(self, slug: str) -> bool:
        slug = slug.strip().lower()
        with self._slug_lock(slug):
            deleted = self.store.delete_project(slug)
            with self._lock:
                self._trees.pop(slug, None)
        return deleted
    
    # =========================================================================
    # Queries
    # =========================================================================
    
    def get_tree(self, slug: str) -> AllowlistTree:
        """
        Get the tree for `slug`, rebuilding it from stored entries if needed.
        
        Raises:
            ProjectNotFoundError: If no such project exists
        """
        slug = slug.strip().lower()
        with self._lock:
            tree = self._trees.get(slug)
        if tree is not None:
            return tree
        
        with self._slug_lock(slug):
            with self._lock:
                tree = self._trees.get(slug)
            if tree is not None:
                return tree
            
            record = self.store.get_project(slug)
            if record is None:
                raise ProjectNotFoundError(slug)
            
            tree = build_tree(record.entries, self.strategy)
            if tree.root_hex != record.merkle_root:
                logger.warning(
                    f"Project {slug}: rebuilt root {tree.root_hex} "
                    f"differs from stored root {record.merkle_root}"
                )
            
            # The row may have gone away while the tree was being built
            if not self.store.has_project(slug):
                raise ProjectNotFoundError(slug)
            
            if self.config.cache_trees:
                with self._lock:
                    self._trees[slug] = tree
            return tree
    
    def get_proof(self, slug: str, name: str, address: str) -> ProofResponse:
        """
        Look up the proof for (name, address) in project `slug`.
        
        Unknown projects and unlisted pairs both yield `eligible=False`.
        
        Raises:
            EntryValidationError: If `address` is malformed
        """
        self._check_address(address)
        
        try:
            tree = self.get_tree(slug)
        except ProjectNotFoundError:
            return ProofResponse(
                proof=[], name_hash=bytes_to_hex(name_hash(name, self.strategy)), eligible=False
            )
        
        result = generate_proof(tree, address, name)
        return ProofResponse(
            proof=result.proof_hex,
            name_hash=result.name_hash_hex,
            eligible=result.found,
        )
    
    def get_project(self, slug: str) -> Optional[ProjectSummary]:
        record = self.store.get_project(slug)
        if record is None:
            return None
        return ProjectSummary(
            slug=record.slug,
            merkle_root=record.merkle_root,
            entry_count=len(record.entries),
            created_at=record.created_at,
        )
    
    def get_claimable(self, address: str) -> List[Claim]:
        """
        Everything `address` can claim, across all projects.
        
        Raises:
            EntryValidationError: If `address` is malformed
        """
        self._check_address(address)
        target = address.lower()
        
        claims = []
        for record in self.store.get_all_projects():
            if not any(e.normalized_address == target for e in record.entries):
                continue
            
            try:
                tree = self.get_tree(record.slug)
            except ProjectNotFoundError:
                continue
            
            for entry in tree.entries:
                if entry.address.lower() != target:
                    continue
                result = generate_proof(tree, entry.address, entry.name)
                claims.append(Claim(
                    slug=record.slug,
                    badge_type=self.config.badge_type,
                    name=normalize_name(entry.name),
                    name_hash=result.name_hash_hex,
                    proof=result.proof_hex,
                ))
        
        return claims
    
    # =========================================================================
    # Internals
    # =========================================================================
    
    def _slug_lock(self, slug: str) -> threading.Lock:
        """Lock serializing writes and rebuilds of one project."""
        with self._lock:
            return self._slug_locks.setdefault(slug, threading.Lock())
    
    @staticmethod
    def _normalize_slug(slug: str) -> str:
        valid, err = validate_slug(slug)
        if not valid:
            raise EntryValidationError(err, field="slug")
        return slug.strip().lower()
    
    @staticmethod
    def _check_address(address: str):
        valid, err = validate_address(address)
        if not valid:
            raise EntryValidationError(err, field="address")
    
    @staticmethod
    def _count_duplicates(entries: List[AllowlistEntry]) -> int:
        counts = Counter((e.normalized_address, e.normalized_name) for e in entries)
        return sum(n - 1 for n in counts.values() if n > 1)
