"""Tests for the oracle signing identity."""

import json

import pytest

from vrf_oracle.errors import ConfigError
from vrf_oracle.ledger.signer import OracleKeypair, verify_signature
from vrf_oracle.shared.edwards25519 import public_from_secret


class TestOracleKeypair:

    def test_public_key_matches_curve_derivation(self):
        for seed in (bytes(32), bytes([1]) * 32, bytes(range(32))):
            keypair = OracleKeypair.from_seed(seed)
            assert bytes(keypair.pubkey) == public_from_secret(seed)

    def test_bytes_round_trip(self):
        keypair = OracleKeypair.generate()
        restored = OracleKeypair.from_bytes(keypair.to_bytes())
        assert restored.pubkey == keypair.pubkey
        assert len(keypair.to_bytes()) == 64

    def test_mismatched_public_half_is_rejected(self):
        data = OracleKeypair.from_seed(bytes([1]) * 32).to_bytes()
        with pytest.raises(ConfigError):
            OracleKeypair.from_bytes(data[:32] + bytes(32))

    def test_from_file(self, tmp_path):
        keypair = OracleKeypair.from_seed(bytes([5]) * 32)
        path = tmp_path / "oracle.json"
        path.write_text(json.dumps(list(keypair.to_bytes())))
        assert OracleKeypair.from_file(path).pubkey == keypair.pubkey

    @pytest.mark.parametrize("content", ["not json", "[1, 2, 3]", '{"key": 1}', "[300]"])
    def test_bad_file_is_config_error(self, tmp_path, content):
        path = tmp_path / "oracle.json"
        path.write_text(content)
        with pytest.raises(ConfigError):
            OracleKeypair.from_file(path)

    def test_missing_file_is_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            OracleKeypair.from_file(tmp_path / "absent.json")

    def test_sign_and_verify(self):
        keypair = OracleKeypair.from_seed(bytes([2]) * 32)
        signature = keypair.sign(b"message")
        assert len(signature) == 64
        assert verify_signature(keypair.pubkey, b"message", signature)
        assert not verify_signature(keypair.pubkey, b"other", signature)
        assert not verify_signature(keypair.pubkey, b"message", bytes(64))
