"""
Integration tests for the allowlist registry and project persistence.
"""

import logging
import threading

import pytest

from badgeroot.core.config import AllowlistConfig
from badgeroot.core.entries import AllowlistEntry, EntryValidationError
from badgeroot.core.merkle import EmptyAllowlistError, leaf_hash, name_hash, verify_proof
from badgeroot.core.registry import AllowlistRegistry, ProjectNotFoundError
from badgeroot.core.storage import ProjectRecord, ProjectStore


ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0xBD26367c4B23A6D3713A1e1a50B2D67E8748cB98"
CAROL = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

CSV = f"""name,address
Alice,{ALICE}
bob,{BOB}
carol,{CAROL}
"""


@pytest.fixture
def data_dir(tmp_path):
    d = tmp_path / "registry_data"
    d.mkdir()
    return d


@pytest.fixture
def registry(data_dir):
    config = AllowlistConfig(data_dir=data_dir)
    return AllowlistRegistry.from_config(config)


class TestUpload:
    
    def test_upload_csv(self, registry):
        result = registry.upload_csv("Genesis", CSV)
        assert result.slug == "genesis"
        assert result.row_count == 3
        assert result.merkle_root.startswith("0x")
        assert result.proofs["merkleRoot"] == result.merkle_root
        assert set(result.proofs["entries"]) == {ALICE.lower(), BOB.lower(), CAROL.lower()}
    
    def test_upload_entries(self, registry):
        result = registry.upload_entries("dicts", [
            {"name": "alice", "address": ALICE},
            AllowlistEntry(name="bob", address=BOB),
        ])
        assert result.row_count == 2
    
    def test_upload_json(self, registry):
        result = registry.upload_json("genesis", f'[{{"name": "alice", "address": "{ALICE}"}}]')
        assert result.row_count == 1
        assert registry.get_proof("genesis", "alice", ALICE).eligible
    
    def test_empty_upload_rejected(self, registry):
        with pytest.raises(EmptyAllowlistError):
            registry.upload_entries("empty", [])
        assert registry.get_project("empty") is None
    
    def test_bad_slug(self, registry):
        with pytest.raises(EntryValidationError) as exc:
            registry.upload_csv("   ", CSV)
        assert exc.value.field == "slug"
    
    def test_bad_csv(self, registry):
        with pytest.raises(EntryValidationError):
            registry.upload_csv("bad", "name,address\nalice,0x12")
    
    def test_max_entries(self, data_dir):
        registry = AllowlistRegistry.from_config(AllowlistConfig(data_dir=data_dir, max_entries=2))
        with pytest.raises(EntryValidationError, match="max is 2"):
            registry.upload_csv("big", CSV)
    
    def test_duplicates_logged(self, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="badgeroot.registry"):
            result = registry.upload_csv("dups", CSV + f"ALICE,{ALICE.lower()}\n")
        assert result.row_count == 4
        assert "1 duplicate" in caplog.text
    
    def test_reupload_changes_root(self, registry):
        first = registry.upload_csv("genesis", CSV)
        old_proof = registry.get_proof("genesis", "bob", BOB)
        
        second = registry.upload_csv("genesis", CSV + f"dave,0x{'d' * 40}\n")
        assert second.merkle_root != first.merkle_root
        assert registry.get_project("genesis").entry_count == 4
        
        # Proofs issued before the re-upload no longer verify
        leaf = leaf_hash(BOB, "bob")
        assert not verify_proof(leaf, old_proof.proof, second.merkle_root)
        new_proof = registry.get_proof("genesis", "bob", BOB)
        assert verify_proof(leaf, new_proof.proof, second.merkle_root)


class TestProofLookup:
    
    def test_eligible(self, registry):
        result = registry.upload_csv("genesis", CSV)
        response = registry.get_proof("GENESIS", " alice ", ALICE.lower())
        assert response.eligible
        assert response.name_hash == "0x" + name_hash("alice").hex()
        assert verify_proof(leaf_hash(ALICE, "alice"), response.proof, result.merkle_root)
    
    def test_not_listed(self, registry):
        registry.upload_csv("genesis", CSV)
        response = registry.get_proof("genesis", "mallory", ALICE)
        assert not response.eligible
        assert response.proof == []
        assert response.name_hash == "0x" + name_hash("mallory").hex()
    
    def test_unknown_project(self, registry):
        response = registry.get_proof("nope", "alice", ALICE)
        assert not response.eligible
        assert response.proof == []
        assert response.name_hash == "0x" + name_hash("alice").hex()
    
    def test_bad_address(self, registry):
        with pytest.raises(EntryValidationError):
            registry.get_proof("genesis", "alice", "0x1234")
    
    def test_get_tree_unknown(self, registry):
        with pytest.raises(ProjectNotFoundError):
            registry.get_tree("nope")
    
    def test_tree_cached(self, registry):
        registry.upload_csv("genesis", CSV)
        assert registry.get_tree("genesis") is registry.get_tree("genesis")
    
    def test_no_cache(self, data_dir):
        registry = AllowlistRegistry.from_config(AllowlistConfig(data_dir=data_dir, cache_trees=False))
        registry.upload_csv("genesis", CSV)
        first = registry.get_tree("genesis")
        second = registry.get_tree("genesis")
        assert first is not second
        assert first.root == second.root


class TestProjectsAndClaims:
    
    def test_project_summary(self, registry):
        result = registry.upload_csv("genesis", CSV)
        summary = registry.get_project("Genesis")
        assert summary.slug == "genesis"
        assert summary.merkle_root == result.merkle_root
        assert summary.entry_count == 3
        assert summary.created_at > 0
    
    def test_missing_project(self, registry):
        assert registry.get_project("nope") is None
    
    def test_claimable_across_projects(self, registry):
        registry.upload_csv("genesis", CSV)
        registry.upload_csv("second", f"name,address\nAlice Cooper,{ALICE}\nalice,{ALICE}\n")
        registry.upload_csv("third", f"name,address\nbob,{BOB}\n")
        
        claims = registry.get_claimable(ALICE.lower())
        assert sorted((c.slug, c.name) for c in claims) == [
            ("genesis", "alice"),
            ("second", "alice"),
            ("second", "alice cooper"),
        ]
        for claim in claims:
            assert claim.badge_type == "0x" + "00" * 32
            root = registry.get_project(claim.slug).merkle_root
            assert verify_proof(leaf_hash(ALICE, claim.name), claim.proof, root)
    
    def test_claimable_none(self, registry):
        registry.upload_csv("genesis", CSV)
        assert registry.get_claimable("0x" + "e" * 40) == []
    
    def test_delete(self, registry):
        registry.upload_csv("genesis", CSV)
        assert registry.delete_project("genesis")
        assert registry.get_project("genesis") is None
        assert not registry.get_proof("genesis", "alice", ALICE).eligible


class TestPersistence:
    """Projects survive a restart; trees are rebuilt from entries."""
    
    def test_rebuild_after_restart(self, data_dir):
        registry_a = AllowlistRegistry.from_config(AllowlistConfig(data_dir=data_dir))
        result = registry_a.upload_csv("genesis", CSV)
        proofs_a = {
            addr: registry_a.get_proof("genesis", name, addr).proof
            for name, addr in (("alice", ALICE), ("bob", BOB), ("carol", CAROL))
        }
        del registry_a
        
        registry_b = AllowlistRegistry.from_config(AllowlistConfig(data_dir=data_dir))
        assert registry_b.get_tree("genesis").root_hex == result.merkle_root
        for name, addr in (("alice", ALICE), ("bob", BOB), ("carol", CAROL)):
            assert registry_b.get_proof("genesis", name, addr).proof == proofs_a[addr]
    
    def test_store_roundtrip(self, data_dir):
        store = ProjectStore(data_dir)
        entries = [AllowlistEntry(name=" Alice ", address=ALICE)]
        store.save_project(ProjectRecord(slug="MiXed", merkle_root="0x" + "11" * 32, entries=entries, created_at=5))
        
        record = store.get_project("mixed")
        assert record.slug == "mixed"
        assert record.entries == entries
        assert record.created_at == 5
        assert len(store) == 1
        assert store.has_project("MIXED")
        store.close()
    
    def test_root_drift_logged(self, data_dir, caplog):
        store = ProjectStore(data_dir)
        store.save_project(ProjectRecord(
            slug="drift",
            merkle_root="0x" + "00" * 32,
            entries=[AllowlistEntry(name="alice", address=ALICE)],
            created_at=1,
        ))
        registry = AllowlistRegistry(store)
        with caplog.at_level(logging.WARNING, logger="badgeroot.registry"):
            tree = registry.get_tree("drift")
        assert tree.root == leaf_hash(ALICE, "alice")
        assert "differs from stored root" in caplog.text


class TestConcurrency:
    """Stored rows and cached trees never disagree under concurrent writers."""
    
    def test_overlapping_uploads(self, registry, monkeypatch):
        save = registry.store.save_project
        second_csv = f"name,address\nbob,{BOB}\n"
        threads = []
        
        def save_then_race(record):
            save(record)
            if not threads:
                t = threading.Thread(target=registry.upload_csv, args=("genesis", second_csv))
                threads.append(t)
                t.start()
                # Gives the second upload a chance to finish in between
                t.join(timeout=0.2)
        
        monkeypatch.setattr(registry.store, "save_project", save_then_race)
        registry.upload_csv("genesis", CSV)
        threads[0].join()
        
        stored = registry.store.get_project("genesis")
        assert stored.merkle_root == registry.get_tree("genesis").root_hex
        assert stored.merkle_root == registry.upload_csv("check", second_csv).merkle_root
    
    def test_delete_during_rebuild(self, data_dir, registry, monkeypatch):
        registry.upload_csv("genesis", CSV)
        
        fresh = AllowlistRegistry.from_config(AllowlistConfig(data_dir=data_dir))
        get_project = fresh.store.get_project
        deleted = []
        
        def get_then_delete(slug):
            record = get_project(slug)
            if not deleted:
                deleted.append(registry.store.delete_project(slug))
            return record
        
        monkeypatch.setattr(fresh.store, "get_project", get_then_delete)
        
        assert not fresh.get_proof("genesis", "alice", ALICE).eligible
        assert deleted == [True]
        with pytest.raises(ProjectNotFoundError):
            fresh.get_tree("genesis")
        assert "genesis" not in fresh._trees
    
    def test_registry_delete_waits_for_rebuild(self, data_dir, registry, monkeypatch):
        registry.upload_csv("genesis", CSV)
        
        fresh = AllowlistRegistry.from_config(AllowlistConfig(data_dir=data_dir))
        get_project = fresh.store.get_project
        threads = []
        
        def get_then_delete(slug):
            record = get_project(slug)
            if not threads:
                t = threading.Thread(target=fresh.delete_project, args=(slug,))
                threads.append(t)
                t.start()
                t.join(timeout=0.2)
            return record
        
        monkeypatch.setattr(fresh.store, "get_project", get_then_delete)
        fresh.get_tree("genesis")
        threads[0].join()
        
        assert "genesis" not in fresh._trees
        assert not fresh.get_proof("genesis", "alice", ALICE).eligible
