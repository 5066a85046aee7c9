"""Tests for ledger addresses and program-derived addresses."""

import pytest

from vrf_oracle.errors import ConfigError
from vrf_oracle.ledger.pubkey import (
    SYSTEM_PROGRAM_ID,
    Pubkey,
    create_program_address,
    find_program_address,
)
from vrf_oracle.shared.edwards25519 import BASE, compress, is_on_curve, public_from_secret


class TestPubkey:

    def test_text_round_trip(self):
        key = Pubkey(bytes(range(32)))
        assert Pubkey.from_string(str(key)) == key

    def test_system_program_renders_as_ones(self):
        assert str(SYSTEM_PROGRAM_ID) == "1" * 32

    def test_invalid_base58_is_config_error(self):
        with pytest.raises(ConfigError):
            Pubkey.from_string("0OIl-not-base58")

    def test_wrong_length_is_config_error(self):
        with pytest.raises(ConfigError):
            Pubkey.from_string("3yZe7d")

    def test_raw_length_is_checked(self):
        with pytest.raises(ValueError):
            Pubkey(bytes(31))

    def test_equality_and_hash(self):
        a = Pubkey(bytes([1]) * 32)
        b = Pubkey(bytes([1]) * 32)
        assert a == b
        assert len({a, b}) == 1
        assert a != Pubkey(bytes([2]) * 32)
        assert a != bytes([1]) * 32


class TestCurveCheck:

    def test_base_point_and_public_keys_are_on_curve(self):
        assert is_on_curve(compress(BASE))
        assert is_on_curve(public_from_secret(bytes(32)))

    def test_wrong_length_is_off_curve(self):
        assert not is_on_curve(bytes(31))


class TestProgramDerivedAddress:

    PROGRAM = Pubkey(bytes([7]) * 32)

    def test_found_address_is_off_curve_and_reproducible(self):
        seeds = [b"vrf_result", bytes([101]) * 32]
        address, bump = find_program_address(seeds, self.PROGRAM)
        assert 0 <= bump <= 255
        assert not is_on_curve(bytes(address))
        assert create_program_address(seeds + [bytes([bump])], self.PROGRAM) == address
        assert find_program_address(seeds, self.PROGRAM) == (address, bump)

    def test_highest_viable_bump_wins(self):
        seeds = [b"vrf_result", bytes([102]) * 32]
        _address, bump = find_program_address(seeds, self.PROGRAM)
        for higher in range(bump + 1, 256):
            assert create_program_address(seeds + [bytes([higher])], self.PROGRAM) is None

    def test_depends_on_program_and_seeds(self):
        seeds = [b"vrf_result", bytes([103]) * 32]
        a, _ = find_program_address(seeds, self.PROGRAM)
        b, _ = find_program_address(seeds, Pubkey(bytes([8]) * 32))
        c, _ = find_program_address([b"vrf_result", bytes([104]) * 32], self.PROGRAM)
        assert len({a, b, c}) == 3

    def test_seed_limits(self):
        with pytest.raises(ValueError):
            find_program_address([b"x" * 33], self.PROGRAM)
        with pytest.raises(ValueError):
            find_program_address([b"x"] * 16, self.PROGRAM)
