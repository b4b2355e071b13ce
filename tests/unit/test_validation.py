"""
Unit tests for input validation helpers.
"""

import pytest

from badgeroot.utils.validation import (
    MAX_PROOF_LENGTH,
    validate_address,
    validate_hash_hex,
    validate_hex_string,
    validate_name,
    validate_proof,
    validate_slug,
)


class TestAddress:
    
    def test_valid(self):
        assert validate_address("0x" + "aB" * 20) == (True, "")
    
    @pytest.mark.parametrize("value", ["0x123", "aa" * 20, "0x" + "z" * 40, "0x" + "a" * 40 + "\n", 42, None])
    def test_invalid(self, value):
        valid, err = validate_address(value)
        assert not valid
        assert err


class TestSlug:
    
    @pytest.mark.parametrize("slug", ["genesis", "My-Project", "a.b_c-1"])
    def test_valid(self, slug):
        assert validate_slug(slug)[0]
    
    @pytest.mark.parametrize("slug", ["", "   ", "-leading", "has space", "x" * 200, 5])
    def test_invalid(self, slug):
        assert not validate_slug(slug)[0]


class TestName:
    
    def test_valid(self):
        assert validate_name("Alice")[0]
    
    def test_blank(self):
        valid, err = validate_name("  ")
        assert not valid
        assert "required" in err


class TestHex:
    
    def test_hash(self):
        assert validate_hash_hex("0x" + "00" * 32)[0]
        assert not validate_hash_hex("0x" + "00" * 31)[0]
    
    def test_odd_length(self):
        valid, err = validate_hex_string("0xabc", "value")
        assert not valid
        assert "odd length" in err
    
    def test_proof(self):
        assert validate_proof([])[0]
        assert validate_proof(["0x" + "11" * 32])[0]
        assert not validate_proof("0x" + "11" * 32)[0]
        assert not validate_proof(["0x11"])[0]
        assert not validate_proof(["0x" + "11" * 32] * (MAX_PROOF_LENGTH + 1))[0]
