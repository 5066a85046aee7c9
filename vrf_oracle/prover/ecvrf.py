"""In-process ECVRF prover (ECVRF-EDWARDS25519-SHA512-TAI, RFC 9381).

Proof layout (80 bytes): Gamma (32) || c (16, little-endian) || s (32,
little-endian). The VRF output is the 64-byte proof-to-hash of Gamma.
The public key is the RFC 8032 public key of the 32-byte secret, so it
is always derived from the secret rather than generated alongside it.
"""

from __future__ import annotations

import hashlib
import secrets

from vrf_oracle.errors import ProofGenerationFailed
from vrf_oracle.ledger.models import ProofArtifact
from vrf_oracle.shared.edwards25519 import (
    BASE,
    IDENTITY,
    L,
    Point,
    compress,
    decompress,
    expand_secret,
    point_add,
    point_equal,
    point_mul,
    point_neg,
    public_from_secret,
)

from .interface import VrfKeypair

SUITE = b"\x03"
COFACTOR = 8
C_LEN = 16
PROOF_LENGTH = 32 + C_LEN + 32


def _hash(*parts: bytes) -> bytes:
    return hashlib.sha512(b"".join(parts)).digest()


def encode_to_curve(public_key: bytes, alpha: bytes) -> Point:
    """Try-and-increment hash of `alpha` onto the prime-order subgroup."""
    for ctr in range(256):
        digest = _hash(SUITE, b"\x01", public_key, alpha, bytes([ctr]), b"\x00")
        point = decompress(digest[:32])
        if point is not None:
            return point_mul(COFACTOR, point)
    raise ValueError("no valid curve point after 256 attempts")


def _challenge(*points: Point) -> int:
    digest = _hash(SUITE, b"\x02", *(compress(p) for p in points), b"\x00")
    return int.from_bytes(digest[:C_LEN], "little")


def prove(secret_key: bytes, alpha: bytes) -> bytes:
    x, prefix = expand_secret(secret_key)
    y_point = point_mul(x, BASE)
    public_key = compress(y_point)
    h_point = encode_to_curve(public_key, alpha)
    gamma = point_mul(x, h_point)
    k = int.from_bytes(_hash(prefix, compress(h_point)), "little") % L
    c = _challenge(y_point, h_point, gamma, point_mul(k, BASE), point_mul(k, h_point))
    s = (k + c * x) % L
    return compress(gamma) + c.to_bytes(C_LEN, "little") + s.to_bytes(32, "little")


def proof_to_hash(proof: bytes) -> bytes:
    if len(proof) != PROOF_LENGTH:
        raise ValueError(f"proof must be {PROOF_LENGTH} bytes, got {len(proof)}")
    gamma = decompress(proof[:32])
    if gamma is None:
        raise ValueError("proof Gamma is not a curve point")
    return _hash(SUITE, b"\x03", compress(point_mul(COFACTOR, gamma)), b"\x00")


def verify(public_key: bytes, proof: bytes, alpha: bytes) -> bool:
    y_point = decompress(public_key)
    if y_point is None or point_equal(point_mul(COFACTOR, y_point), IDENTITY):
        return False
    if len(proof) != PROOF_LENGTH:
        return False
    gamma = decompress(proof[:32])
    if gamma is None:
        return False
    c = int.from_bytes(proof[32:32 + C_LEN], "little")
    s = int.from_bytes(proof[32 + C_LEN:], "little")
    if s >= L:
        return False

    h_point = encode_to_curve(public_key, alpha)
    u = point_add(point_mul(s, BASE), point_neg(point_mul(c, y_point)))
    v = point_add(point_mul(s, h_point), point_neg(point_mul(c, gamma)))
    return _challenge(y_point, h_point, gamma, u, v) == c


class EcvrfProver:
    """ProverClient backed by the in-process ECVRF above."""

    name = "ecvrf"

    async def keypair(self) -> VrfKeypair:
        secret = secrets.token_bytes(32)
        return VrfKeypair(secret_key=secret, public_key=public_from_secret(secret))

    async def prove(self, secret_key: bytes, seed: bytes) -> ProofArtifact:
        try:
            pi = prove(secret_key, seed)
            return ProofArtifact(
                proof=pi,
                output=proof_to_hash(pi),
                public_key=public_from_secret(secret_key),
            )
        except ValueError as e:
            raise ProofGenerationFailed(f"ecvrf prove failed: {e}") from e

    async def verify(self, proof: bytes, output: bytes, public_key: bytes, seed: bytes) -> bool:
        if not verify(public_key, proof, seed):
            return False
        return proof_to_hash(proof) == output


__all__ = [
    "EcvrfProver",
    "encode_to_curve",
    "proof_to_hash",
    "prove",
    "verify",
]
