"""
Service configuration for Badgeroot.

Values come from `BADGEROOT_*` environment variables, optionally loaded
from a .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from badgeroot.crypto import ZERO_HASH, bytes_to_hex


ENV_PREFIX = "BADGEROOT_"

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class AllowlistConfig:
    """Allowlist service parameters"""

    # Storage
    data_dir: Path = Path("data")
    db_name: str = "projects.db"

    # Logging
    log_dir: Path = Path("logs")
    log_to_file: bool = False

    # Trees
    hash_strategy: str = "keccak256"  # Must match the registry contract
    cache_trees: bool = True  # Keep built trees per slug until re-upload
    max_entries: int = 100_000  # Largest accepted allowlist

    # Claims
    badge_type: str = field(default_factory=lambda: bytes_to_hex(ZERO_HASH))

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.log_dir = Path(self.log_dir)
        if self.max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {self.max_entries}")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    return value if value else None


def load_config(env_file: Optional[str] = None) -> AllowlistConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional .env file to load first (existing variables win)

    Returns:
        AllowlistConfig instance
    """
    load_dotenv(env_file, override=False)

    kwargs = {}
    if _env("DATA_DIR"):
        kwargs["data_dir"] = Path(_env("DATA_DIR")).expanduser()
    if _env("DB_NAME"):
        kwargs["db_name"] = _env("DB_NAME")
    if _env("LOG_DIR"):
        kwargs["log_dir"] = Path(_env("LOG_DIR")).expanduser()
    if _env("LOG_TO_FILE"):
        kwargs["log_to_file"] = _env("LOG_TO_FILE").lower() in _TRUE
    if _env("HASH_STRATEGY"):
        kwargs["hash_strategy"] = _env("HASH_STRATEGY")
    if _env("CACHE_TREES"):
        kwargs["cache_trees"] = _env("CACHE_TREES").lower() in _TRUE
    if _env("MAX_ENTRIES"):
        kwargs["max_entries"] = int(_env("MAX_ENTRIES"))
    if _env("BADGE_TYPE"):
        kwargs["badge_type"] = _env("BADGE_TYPE")

    return AllowlistConfig(**kwargs)
