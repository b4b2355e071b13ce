"""
Inclusion proofs for allowlist trees.

A proof is the list of sibling hashes from a leaf up to the root. Because
parents hash their children in sorted order, no left/right flags are needed:
the verifier folds `combine(acc, sibling)` over the list and compares the
result with the published root, exactly as the registry contract does.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from badgeroot.crypto import bytes_to_hex, hex_to_bytes
from badgeroot.core.merkle.hashing import (
    DEFAULT_STRATEGY,
    HashStrategy,
    leaf_hash,
    name_hash,
    normalize_name,
)
from badgeroot.core.merkle.tree import AllowlistTree, build_tree


HashLike = Union[bytes, str]


@dataclass
class ProofResult:
    """
    Outcome of a proof lookup.
    
    `found=False` means the (address, name) pair is not on the allowlist;
    `leaf` is still the hash that pair would have.
    """
    proof: List[bytes]
    leaf: bytes
    found: bool
    name_hash: bytes = field(default=b"")
    
    @property
    def proof_hex(self) -> List[str]:
        return [bytes_to_hex(p) for p in self.proof]
    
    @property
    def leaf_hex(self) -> str:
        return bytes_to_hex(self.leaf)
    
    @property
    def name_hash_hex(self) -> str:
        return bytes_to_hex(self.name_hash)


def _as_bytes(value: HashLike) -> bytes:
    if isinstance(value, str):
        return hex_to_bytes(value)
    return bytes(value)


def find_entry(entries: Sequence, address: str, name: str):
    """
    Find the first entry matching `address` (case-insensitive) and `name`
    (trim+lowercase). Returns None when absent.
    """
    target_address = address.strip().lower()
    target_name = normalize_name(name)
    for entry in entries:
        if entry.address.lower() == target_address and normalize_name(entry.name) == target_name:
            return entry
    return None


def proof_path(levels: List[List[bytes]], index: int) -> List[bytes]:
    """
    Collect sibling hashes for the base-level node at `index`.
    
    A node carried up unpaired has no sibling at that level and adds
    nothing to the path.
    """
    proof = []
    for layer in levels[:-1]:
        sibling = index + 1 if index % 2 == 0 else index - 1
        if sibling < len(layer):
            proof.append(layer[sibling])
        index //= 2
    return proof


def generate_proof(
    tree: Union[AllowlistTree, Sequence],
    address: str,
    name: str,
    strategy: Optional[HashStrategy] = None,
) -> ProofResult:
    """
    Generate the inclusion proof for (address, name).
    
    Args:
        tree: Built tree, or the raw entries to build one from
        address: Claimant address, any case
        name: Claimed name, normalized before matching
        strategy: Only used when `tree` is raw entries
        
    Returns:
        ProofResult; `found` is False with an empty proof when the pair is
        not on the allowlist
    """
    if not isinstance(tree, AllowlistTree):
        tree = build_tree(tree, strategy)
    
    target = leaf_hash(address, name, tree.strategy)
    nh = name_hash(name, tree.strategy)
    
    if find_entry(tree.entries, address, name) is None:
        return ProofResult(proof=[], leaf=target, found=False, name_hash=nh)
    
    index = tree.index_of(target)
    return ProofResult(
        proof=proof_path(tree.levels, index),
        leaf=target,
        found=True,
        name_hash=nh,
    )


def verify_proof(
    leaf: HashLike,
    proof: Sequence[HashLike],
    root: HashLike,
    strategy: Optional[HashStrategy] = None,
) -> bool:
    """
    Recompute the root from a leaf and its proof.
    
    Args:
        leaf: Leaf hash (bytes or 0x-hex)
        proof: Sibling hashes, leaf to root
        root: Expected root
        strategy: Digest strategy (Keccak-256 by default)
        
    Returns:
        True if the proof reconstructs `root`; False otherwise, including
        when any value is not valid hex
    """
    strategy = strategy or DEFAULT_STRATEGY
    
    try:
        current = _as_bytes(leaf)
        siblings = [_as_bytes(s) for s in proof]
        expected = _as_bytes(root)
    except ValueError:
        return False
    
    for sibling in siblings:
        current = strategy.combine(current, sibling)
    
    return current == expected
