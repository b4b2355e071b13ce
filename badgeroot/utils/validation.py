"""
Input Validation - checks for values arriving from outside the library.

Every validator returns `(is_valid, error_message)`; callers decide whether
a failure becomes an exception or a negative response.
"""

import re
from typing import Any, Optional, Tuple

from badgeroot.crypto import ADDRESS_PATTERN, HASH_SIZE

# =============================================================================
# Constants
# =============================================================================

MAX_NAME_LENGTH = 256
MAX_SLUG_LENGTH = 128
MAX_PROOF_LENGTH = 64  # Depth bound; 2**64 leaves is far beyond any allowlist

SLUG_PATTERN = r"[a-z0-9][a-z0-9._-]*"


# =============================================================================
# Validation Functions
# =============================================================================


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_NAME_LENGTH,
    pattern: Optional[str] = None,
) -> Tuple[bool, str]:
    """
    Validate string input.
    
    Args:
        value: Value to validate
        name: Field name for error messages
        max_length: Maximum string length
        pattern: Optional regex pattern
        
    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"
    
    if not value.strip():
        return False, f"{name} is required"
    
    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"
    
    if pattern and not re.fullmatch(pattern, value):
        return False, f"{name} does not match required pattern"
    
    return True, ""


def validate_hex_string(value: Any, name: str, expected_bytes: Optional[int] = None) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).
    
    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded
        
    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"
    
    hex_str = value[2:] if value.startswith("0x") else value
    
    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"
    
    try:
        bytes.fromhex(hex_str)
    except ValueError:
        return False, f"{name} contains invalid hex characters"
    
    if expected_bytes is not None:
        actual_bytes = len(hex_str) // 2
        if actual_bytes != expected_bytes:
            return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"
    
    return True, ""


def validate_address(address: Any) -> Tuple[bool, str]:
    """Validate a 0x-prefixed 40-hex-character address."""
    if not isinstance(address, str):
        return False, f"address must be str, got {type(address).__name__}"
    if not ADDRESS_PATTERN.fullmatch(address):
        return False, "Invalid address"
    return True, ""


def validate_name(value: Any) -> Tuple[bool, str]:
    """Validate a claimable name."""
    return validate_string(value, "name", MAX_NAME_LENGTH)


def validate_slug(value: Any) -> Tuple[bool, str]:
    """Validate a project slug (compared lowercased)."""
    if isinstance(value, str):
        value = value.strip().lower()
    return validate_string(value, "slug", MAX_SLUG_LENGTH, SLUG_PATTERN)


def validate_hash_hex(value: Any, name: str = "hash") -> Tuple[bool, str]:
    """Validate a 32-byte hash in hex form."""
    return validate_hex_string(value, name, expected_bytes=HASH_SIZE)


def validate_proof(proof: Any) -> Tuple[bool, str]:
    """Validate a list of hex sibling hashes."""
    if not isinstance(proof, (list, tuple)):
        return False, f"proof must be list/tuple, got {type(proof).__name__}"
    
    if len(proof) > MAX_PROOF_LENGTH:
        return False, f"proof exceeds max length {MAX_PROOF_LENGTH}, got {len(proof)}"
    
    for i, item in enumerate(proof):
        valid, err = validate_hash_hex(item, f"proof[{i}]")
        if not valid:
            return False, err
    
    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_string",
    "validate_hex_string",
    "validate_address",
    "validate_name",
    "validate_slug",
    "validate_hash_hex",
    "validate_proof",
    "MAX_NAME_LENGTH",
    "MAX_SLUG_LENGTH",
    "MAX_PROOF_LENGTH",
]
