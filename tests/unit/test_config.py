"""
Unit tests for configuration loading.
"""

import os
from pathlib import Path

import pytest

from badgeroot.core.config import AllowlistConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("BADGEROOT_"):
            monkeypatch.delenv(key)
    yield
    for key in list(os.environ):
        if key.startswith("BADGEROOT_"):
            del os.environ[key]


class TestConfig:
    
    def test_defaults(self):
        config = AllowlistConfig()
        assert config.hash_strategy == "keccak256"
        assert config.cache_trees
        assert config.badge_type == "0x" + "00" * 32
        assert config.db_path == Path("data") / "projects.db"
    
    def test_invalid_max_entries(self):
        with pytest.raises(ValueError):
            AllowlistConfig(max_entries=0)
    
    def test_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BADGEROOT_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("BADGEROOT_CACHE_TREES", "false")
        monkeypatch.setenv("BADGEROOT_MAX_ENTRIES", "10")
        config = load_config(str(tmp_path / "missing.env"))
        assert config.data_dir == tmp_path
        assert not config.cache_trees
        assert config.max_entries == 10
    
    def test_from_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("BADGEROOT_DB_NAME=other.db\nBADGEROOT_HASH_STRATEGY=sha256\n")
        config = load_config(str(env_file))
        assert config.db_name == "other.db"
        assert config.hash_strategy == "sha256"
    
    def test_environment_wins_over_env_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("BADGEROOT_DB_NAME=file.db\n")
        monkeypatch.setenv("BADGEROOT_DB_NAME", "env.db")
        assert load_config(str(env_file)).db_name == "env.db"
