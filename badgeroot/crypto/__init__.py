"""
Cryptographic primitives for Badgeroot.

This module provides:
- Hashing functions (Keccak-256, SHA-256)
- Hex encoding helpers
- Ethereum address parsing

Design Notes:
-------------
Keccak-256 is the digest used by the on-chain registry, so every value that
is published or compared on-chain (name hashes, leaves, Merkle nodes) goes
through `keccak256`. Note this is the original Keccak padding, not NIST SHA3-256.

SHA-256 is retained for alternate hash strategies in tests and tooling.
"""

import hashlib
import re

from Crypto.Hash import keccak


# =============================================================================
# Constants
# =============================================================================

ADDRESS_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")

ADDRESS_SIZE = 20
HASH_SIZE = 32

ZERO_HASH = bytes(HASH_SIZE)


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """Compute SHA-256 hash."""
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).
    
    Used for: name hashes, allowlist leaves, Merkle nodes.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to lowercase hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def is_valid_address(address: str) -> bool:
    """Check if string is a 0x-prefixed 40-hex-character address."""
    if not isinstance(address, str):
        return False
    return ADDRESS_PATTERN.fullmatch(address) is not None


def address_to_bytes(address: str) -> bytes:
    """
    Decode an address string into its raw 20 bytes.
    
    Case is irrelevant to the decoded value, so checksummed and lowercase
    forms of the same address yield identical bytes.
    
    Raises:
        ValueError: If the string is not a 20-byte hex address
    """
    raw = hex_to_bytes(address.strip().lower())
    if len(raw) != ADDRESS_SIZE:
        raise ValueError(f"Address must be {ADDRESS_SIZE} bytes, got {len(raw)}")
    return raw
