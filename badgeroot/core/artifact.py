"""
Published proofs document.

Hand-off format between the allowlist publisher and claimants:

    {
      "slug": "...",                      (optional)
      "merkleRoot": "0x...",
      "rowCount": 3,
      "entries": {
        "0xabc...": {"name": "alice", "nameHash": "0x...", "proof": ["0x...", ...]}
      }
    }

Keys are lowercased addresses and `name` is the normalized name the
contract will hash. All hashes are 0x-prefixed lowercase hex. An address
listed under several names keeps only its last entry here; per-name lookups
go through the registry instead.
"""

import json
from typing import Any, Dict, Optional

from badgeroot.crypto import address_to_bytes, hex_to_bytes
from badgeroot.core.merkle import (
    DEFAULT_STRATEGY,
    AllowlistTree,
    HashStrategy,
    generate_proof,
    normalize_name,
    verify_proof,
)
from badgeroot.utils.validation import validate_hash_hex, validate_proof


def build_proofs_document(tree: AllowlistTree, slug: Optional[str] = None) -> Dict[str, Any]:
    """Build the proofs document for every entry of `tree`."""
    entries: Dict[str, Dict[str, Any]] = {}
    for entry in tree.entries:
        result = generate_proof(tree, entry.address, entry.name)
        entries[entry.address.lower()] = {
            "name": normalize_name(entry.name),
            "nameHash": result.name_hash_hex,
            "proof": result.proof_hex,
        }
    
    document: Dict[str, Any] = {}
    if slug is not None:
        document["slug"] = slug
    document["merkleRoot"] = tree.root_hex
    document["rowCount"] = len(tree.entries)
    document["entries"] = entries
    return document


def dump_proofs_document(document: Dict[str, Any], indent: Optional[int] = 2) -> str:
    return json.dumps(document, indent=indent)


def load_proofs_document(text: str) -> Dict[str, Any]:
    """
    Parse and sanity-check a proofs document.
    
    Raises:
        ValueError: If required fields are missing or hashes are malformed
    """
    document = json.loads(text)
    if not isinstance(document, dict):
        raise ValueError("Proofs document must be a JSON object")
    
    valid, err = validate_hash_hex(document.get("merkleRoot"), "merkleRoot")
    if not valid:
        raise ValueError(err)
    
    entries = document.get("entries")
    if not isinstance(entries, dict):
        raise ValueError("Proofs document is missing 'entries'")
    
    for address, item in entries.items():
        if not isinstance(item, dict):
            raise ValueError(f"Entry for {address} must be an object")
        valid, err = validate_hash_hex(item.get("nameHash"), f"{address}.nameHash")
        if not valid:
            raise ValueError(err)
        valid, err = validate_proof(item.get("proof"))
        if not valid:
            raise ValueError(f"{address}: {err}")
    
    return document


def verify_document_entry(
    document: Dict[str, Any],
    address: str,
    strategy: Optional[HashStrategy] = None,
) -> bool:
    """
    Check one address's published proof against the document's root.
    
    The leaf is rebuilt from the address and published name hash, the same
    way the registry contract does at claim time.
    """
    item = document["entries"].get(address.lower())
    if item is None:
        return False

    strategy = strategy or DEFAULT_STRATEGY
    leaf = strategy.digest(address_to_bytes(address) + hex_to_bytes(item["nameHash"]))
    return verify_proof(leaf, item["proof"], document["merkleRoot"], strategy)
