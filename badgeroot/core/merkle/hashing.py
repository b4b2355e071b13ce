"""
Hash primitives for allowlist Merkle trees.

Every value that ends up on-chain is derived here:

    name_hash = H(utf8(lower(trim(name))))
    leaf      = H(address_bytes(20) || name_hash(32))
    parent    = H(min(a, b) || max(a, b))

The registry contract recomputes the leaf from (msg.sender, name) and walks
the proof with the same sorted-pair rule, so the byte layout above must not
change. Only the digest function is pluggable, through `HashStrategy`.
"""

from typing import Optional

from badgeroot.crypto import address_to_bytes, keccak256, sha256


# =============================================================================
# Strategies
# =============================================================================


class HashStrategy:
    """
    Digest function plus the sorted-pair combination rule.
    
    Subclasses only override `digest`; pairing stays the same for every
    strategy.
    """
    
    name = "abstract"
    
    def digest(self, data: bytes) -> bytes:
        raise NotImplementedError
    
    def combine(self, a: bytes, b: bytes) -> bytes:
        """Hash two siblings, smaller byte value first."""
        if b < a:
            a, b = b, a
        return self.digest(a + b)
    
    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class KeccakStrategy(HashStrategy):
    """Keccak-256, as used by the EVM registry."""
    
    name = "keccak256"
    
    def digest(self, data: bytes) -> bytes:
        return keccak256(data)


class Sha256Strategy(HashStrategy):
    """SHA-256. Not compatible with the EVM registry."""
    
    name = "sha256"
    
    def digest(self, data: bytes) -> bytes:
        return sha256(data)


DEFAULT_STRATEGY = KeccakStrategy()

_STRATEGIES = {
    KeccakStrategy.name: KeccakStrategy,
    Sha256Strategy.name: Sha256Strategy,
}


def get_strategy(name: str) -> HashStrategy:
    """
    Look up a hash strategy by name.
    
    Raises:
        ValueError: If no strategy is registered under `name`
    """
    try:
        return _STRATEGIES[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown hash strategy {name!r}, expected one of {sorted(_STRATEGIES)}"
        ) from None


# =============================================================================
# Primitives
# =============================================================================


def normalize_name(name: str) -> str:
    """Trim surrounding whitespace, then lowercase."""
    return name.strip().lower()


def name_hash(name: str, strategy: Optional[HashStrategy] = None) -> bytes:
    """
    Hash a normalized name.
    
    Empty names are hashed like any other string; rejecting them is up to
    ingestion.
    """
    strategy = strategy or DEFAULT_STRATEGY
    return strategy.digest(normalize_name(name).encode("utf-8"))


def leaf_hash(address: str, name: str, strategy: Optional[HashStrategy] = None) -> bytes:
    """
    Compute the allowlist leaf for one (address, name) pair.
    
    Args:
        address: 0x-prefixed 20-byte hex address, any case
        name: Raw name; normalized before hashing
        strategy: Digest strategy (Keccak-256 by default)
        
    Returns:
        32-byte leaf hash
    """
    strategy = strategy or DEFAULT_STRATEGY
    return strategy.digest(address_to_bytes(address) + name_hash(name, strategy))


def combine(a: bytes, b: bytes, strategy: Optional[HashStrategy] = None) -> bytes:
    """Combine two sibling hashes. combine(a, b) == combine(b, a)."""
    return (strategy or DEFAULT_STRATEGY).combine(a, b)
