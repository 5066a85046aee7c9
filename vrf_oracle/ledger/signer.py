"""Oracle signing identity backed by an Ed25519 key.

The oracle signs every fulfillment transaction with this key and pays its
fee. Keypair files use the ledger CLI layout: a JSON array of 64 integers,
the 32-byte secret seed followed by the 32-byte public key.
"""

from __future__ import annotations

import json
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from vrf_oracle.errors import ConfigError

from .pubkey import Pubkey


class OracleKeypair:
    """Ed25519 keypair used to sign transactions."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        raw_public = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.pubkey = Pubkey(raw_public)

    @classmethod
    def generate(cls) -> "OracleKeypair":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "OracleKeypair":
        if len(seed) != 32:
            raise ConfigError(f"keypair seed must be 32 bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def from_bytes(cls, data: bytes) -> "OracleKeypair":
        """Load from 64 bytes (seed || public key), checking they agree."""
        if len(data) != 64:
            raise ConfigError(f"keypair must be 64 bytes, got {len(data)}")
        keypair = cls.from_seed(data[:32])
        if bytes(keypair.pubkey) != data[32:]:
            raise ConfigError("keypair public half does not match its secret seed")
        return keypair

    @classmethod
    def from_file(cls, path: str | Path) -> "OracleKeypair":
        try:
            with open(path) as f:
                values = json.load(f)
            data = bytes(values)
        except (OSError, ValueError, TypeError) as e:
            raise ConfigError(f"cannot read oracle keypair {path}: {e}") from e
        return cls.from_bytes(data)

    def to_bytes(self) -> bytes:
        seed = self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return seed + bytes(self.pubkey)

    def sign(self, message: bytes) -> bytes:
        return self._private_key.sign(message)


def verify_signature(pubkey: Pubkey, message: bytes, signature: bytes) -> bool:
    """Check an Ed25519 signature against a ledger address."""
    try:
        Ed25519PublicKey.from_public_bytes(bytes(pubkey)).verify(signature, message)
        return True
    except (InvalidSignature, ValueError):
        return False


__all__ = ["OracleKeypair", "verify_signature"]
