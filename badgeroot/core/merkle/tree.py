"""
Sorted-leaf Merkle tree over allowlist entries.

Construction:
------------
1. Hash every entry into a leaf (see `hashing.leaf_hash`).
2. Sort leaves ascending by byte value. The base level depends only on the
   set of leaves, so re-uploading the same entries in another order yields
   the same root.
3. Fold pairwise, left to right. An odd node at the end of a level is
   carried up unchanged (no duplication, no padding).
4. Stop at a single node: the root. A one-entry allowlist has root == leaf.

Every level is retained so proofs can be read off without rehashing.

Properties:
----------
- Build: O(n log n) (sort) + O(n) (fold)
- Root: O(1)
- Prove: O(log n) after an O(n) entry lookup
"""

from bisect import bisect_left
from typing import TYPE_CHECKING, List, Optional, Sequence

from badgeroot.core.merkle.hashing import DEFAULT_STRATEGY, HashStrategy, leaf_hash
from badgeroot.utils.logger import get_logger

if TYPE_CHECKING:
    from badgeroot.core.entries import AllowlistEntry
    from badgeroot.core.merkle.proof import ProofResult

logger = get_logger("merkle")


class EmptyAllowlistError(ValueError):
    """Raised when building a tree from zero entries."""


# =============================================================================
# Merkle Tree
# =============================================================================


class AllowlistTree:
    """
    Merkle tree for one allowlist.
    
    Attributes:
        entries: Source entries, in upload order
        leaves: Leaf hash per entry, aligned with `entries`
        levels: levels[0] is the sorted base, levels[-1] == [root]
        strategy: Hash strategy the tree was built with
    """
    
    def __init__(
        self,
        entries: Sequence["AllowlistEntry"],
        leaves: List[bytes],
        levels: List[List[bytes]],
        strategy: HashStrategy,
    ):
        self.entries = list(entries)
        self.leaves = leaves
        self.levels = levels
        self.strategy = strategy
    
    @property
    def root(self) -> bytes:
        """32-byte Merkle root."""
        return self.levels[-1][0]
    
    @property
    def root_hex(self) -> str:
        return "0x" + self.root.hex()
    
    @property
    def depth(self) -> int:
        """Number of hashing levels above the leaves."""
        return len(self.levels) - 1
    
    @property
    def sorted_leaves(self) -> List[bytes]:
        return self.levels[0]
    
    def index_of(self, leaf: bytes) -> int:
        """
        Position of `leaf` in the sorted base level.
        
        Duplicate leaves resolve to the first copy.
        
        Raises:
            ValueError: If the leaf is not in the tree
        """
        base = self.levels[0]
        idx = bisect_left(base, leaf)
        if idx == len(base) or base[idx] != leaf:
            raise ValueError(f"Leaf 0x{leaf.hex()} is not in the tree")
        return idx
    
    def prove(self, address: str, name: str) -> "ProofResult":
        """Shortcut for `generate_proof(self, address, name)`."""
        from badgeroot.core.merkle.proof import generate_proof
        return generate_proof(self, address, name)
    
    def __len__(self) -> int:
        return len(self.entries)
    
    def __contains__(self, leaf: bytes) -> bool:
        try:
            self.index_of(leaf)
        except ValueError:
            return False
        return True
    
    def __repr__(self) -> str:
        return f"AllowlistTree(root={self.root_hex}, entries={len(self.entries)})"


# =============================================================================
# Construction
# =============================================================================


def build_levels(sorted_leaves: List[bytes], strategy: HashStrategy) -> List[List[bytes]]:
    """
    Fold a sorted base level up to the root.
    
    Returns:
        All levels, base first, root level last
    """
    levels = [sorted_leaves]
    layer = sorted_leaves
    
    while len(layer) > 1:
        next_layer = []
        for i in range(0, len(layer), 2):
            if i + 1 < len(layer):
                next_layer.append(strategy.combine(layer[i], layer[i + 1]))
            else:
                next_layer.append(layer[i])
        levels.append(next_layer)
        layer = next_layer
    
    return levels


def build_tree(
    entries: Sequence["AllowlistEntry"],
    strategy: Optional[HashStrategy] = None,
) -> AllowlistTree:
    """
    Build the Merkle tree for an allowlist.
    
    Args:
        entries: Non-empty sequence of entries (anything with `.address`
            and `.name`)
        strategy: Digest strategy (Keccak-256 by default)
        
    Returns:
        AllowlistTree with root and all levels
        
    Raises:
        EmptyAllowlistError: If `entries` is empty
    """
    if not entries:
        raise EmptyAllowlistError("Cannot build Merkle tree with empty entries")
    
    strategy = strategy or DEFAULT_STRATEGY
    
    leaves = [leaf_hash(e.address, e.name, strategy) for e in entries]
    levels = build_levels(sorted(leaves), strategy)
    
    tree = AllowlistTree(entries, leaves, levels, strategy)
    logger.debug(
        f"Built tree: {len(leaves)} leaves, depth {tree.depth}, root {tree.root_hex}"
    )
    return tree
