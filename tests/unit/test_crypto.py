"""
Unit tests for address derivation and input validation.
"""

import pytest

from xstake.crypto import (
    ADDRESS_SIZE,
    address_from_public_key,
    bytes_to_hex,
    contract_address,
    generate_keypair,
    hex_to_bytes,
    is_valid_address,
    keccak256,
)
from xstake.utils.validation import (
    validate_address,
    validate_amount,
    validate_integer,
    validate_symbol,
)


class TestAddresses:
    """Tests for address derivation."""

    def test_keccak_empty(self):
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_keypair_address(self):
        kp = generate_keypair()
        assert len(kp.public_key) == 64
        assert kp.address == address_from_public_key(kp.public_key)
        assert len(kp.address) == ADDRESS_SIZE

    def test_keypairs_distinct(self):
        assert generate_keypair().address != generate_keypair().address

    def test_invalid_public_key(self):
        with pytest.raises(ValueError):
            address_from_public_key(b"\x00" * 63)

    def test_contract_address_deterministic(self):
        assert contract_address("staking-ledger") == contract_address("staking-ledger")
        assert contract_address("staking-ledger") != contract_address("delegate-manager")

    def test_hex_roundtrip(self):
        address = contract_address("x")
        text = bytes_to_hex(address)
        assert is_valid_address(text)
        assert hex_to_bytes(text) == address

    def test_is_valid_address(self):
        assert not is_valid_address("1234")
        assert not is_valid_address("0x" + "zz" * 20)


class TestValidation:
    """Tests for input validation helpers."""

    def test_validate_address(self):
        assert validate_address(b"\x01" * 20) == (True, "")
        valid, err = validate_address(b"\x01" * 19)
        assert not valid
        assert "20 bytes" in err
        valid, err = validate_address("0x01")
        assert not valid

    def test_validate_amount(self):
        assert validate_amount(1)[0]
        assert not validate_amount(0)[0]
        assert not validate_amount(-5)[0]
        assert not validate_amount(2**256)[0]
        assert not validate_amount(True)[0]
        assert not validate_amount("10")[0]

    def test_validate_integer_bounds(self):
        valid, err = validate_integer(5, "x", min_val=10)
        assert not valid
        assert ">= 10" in err

    def test_validate_symbol(self):
        assert validate_symbol("XAUDIO")[0]
        assert not validate_symbol("")[0]
        assert not validate_symbol("X AUDIO")[0]
        assert not validate_symbol("1XAUDIO")[0]
        assert not validate_symbol("X" * 12)[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
