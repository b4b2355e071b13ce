"""Allowlist Merkle trees: hashing, construction, proofs"""
from badgeroot.core.merkle.hashing import (
    HashStrategy,
    KeccakStrategy,
    Sha256Strategy,
    DEFAULT_STRATEGY,
    get_strategy,
    normalize_name,
    name_hash,
    leaf_hash,
    combine,
)
from badgeroot.core.merkle.tree import AllowlistTree, EmptyAllowlistError, build_tree
from badgeroot.core.merkle.proof import ProofResult, generate_proof, verify_proof

__all__ = [
    "HashStrategy",
    "KeccakStrategy",
    "Sha256Strategy",
    "DEFAULT_STRATEGY",
    "get_strategy",
    "normalize_name",
    "name_hash",
    "leaf_hash",
    "combine",
    "AllowlistTree",
    "EmptyAllowlistError",
    "build_tree",
    "ProofResult",
    "generate_proof",
    "verify_proof",
]
