"""
Badgeroot

Merkle allowlists for soulbound identity badges:
- Deterministic name/leaf hashing compatible with the on-chain registry
- Sorted-pair Merkle trees over (name, address) entries
- Proof generation and verification
- Project storage and eligibility lookups
"""

__version__ = "0.1.0"
