"""Ledger addresses and program-derived addresses.

Addresses are 32 raw bytes rendered as base58 text. A program-derived
address (PDA) is a sha256 digest of seeds, a bump byte and the program id
that is deliberately *off* the edwards25519 curve, so no private key can
sign for it. The derivation is the ledger program's contract and must be
reproduced bit for bit.
"""

from __future__ import annotations

import hashlib
from typing import Sequence

import base58

from vrf_oracle.errors import ConfigError
from vrf_oracle.shared.edwards25519 import is_on_curve

PUBKEY_LENGTH = 32
MAX_SEEDS = 16
MAX_SEED_LENGTH = 32
PDA_MARKER = b"ProgramDerivedAddress"


class Pubkey:
    """A 32-byte ledger address."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes):
        raw = bytes(raw)
        if len(raw) != PUBKEY_LENGTH:
            raise ValueError(f"pubkey must be {PUBKEY_LENGTH} bytes, got {len(raw)}")
        self._raw = raw

    @classmethod
    def from_string(cls, text: str) -> "Pubkey":
        try:
            raw = base58.b58decode(text.strip())
        except ValueError as e:
            raise ConfigError(f"invalid base58 address {text!r}: {e}") from e
        if len(raw) != PUBKEY_LENGTH:
            raise ConfigError(f"address {text!r} decodes to {len(raw)} bytes, expected {PUBKEY_LENGTH}")
        return cls(raw)

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return base58.b58encode(self._raw).decode("ascii")

    def __repr__(self) -> str:
        return f"Pubkey({self})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Pubkey) and other._raw == self._raw

    def __hash__(self) -> int:
        return hash(self._raw)


SYSTEM_PROGRAM_ID = Pubkey(bytes(32))


def create_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey | None:
    """Hash seeds into an address; None when the digest lands on the curve."""
    if len(seeds) > MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS} seeds allowed, got {len(seeds)}")
    h = hashlib.sha256()
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise ValueError(f"seed longer than {MAX_SEED_LENGTH} bytes")
        h.update(seed)
    h.update(bytes(program_id))
    h.update(PDA_MARKER)
    digest = h.digest()
    if is_on_curve(digest):
        return None
    return Pubkey(digest)


def find_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> tuple[Pubkey, int]:
    """Search bump seeds from 255 down for the first off-curve address."""
    seeds = list(seeds)
    if len(seeds) >= MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS - 1} seeds allowed before the bump")
    for bump in range(255, -1, -1):
        address = create_program_address(seeds + [bytes([bump])], program_id)
        if address is not None:
            return address, bump
    raise ValueError("unable to find a viable program address bump seed")


__all__ = [
    "PUBKEY_LENGTH",
    "Pubkey",
    "SYSTEM_PROGRAM_ID",
    "create_program_address",
    "find_program_address",
]
