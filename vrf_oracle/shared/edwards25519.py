"""Edwards25519 group arithmetic.

Extended twisted-Edwards coordinates (X, Y, Z, T) following the RFC 8032
reference code. Used by the in-process ECVRF prover and by the ledger's
off-curve test for program-derived addresses. Not constant time; never
feed it long-lived secrets outside a trusted host.
"""

from __future__ import annotations

import hashlib

P = 2**255 - 19
L = 2**252 + 27742317777372353535851937790883648493  # group order
D = -121665 * pow(121666, P - 2, P) % P
SQRT_M1 = pow(2, (P - 1) // 4, P)

Point = tuple[int, int, int, int]

IDENTITY: Point = (0, 1, 1, 0)

_GY = 4 * pow(5, P - 2, P) % P
_GX = 15112221349535400772501151409588531511454012693041857206046113283949847762202
BASE: Point = (_GX, _GY, 1, _GX * _GY % P)


def _inv(x: int) -> int:
    return pow(x, P - 2, P)


def point_add(a: Point, b: Point) -> Point:
    A = (a[1] - a[0]) * (b[1] - b[0]) % P
    B = (a[1] + a[0]) * (b[1] + b[0]) % P
    C = 2 * a[3] * b[3] * D % P
    Dd = 2 * a[2] * b[2] % P
    E, F, G, H = B - A, Dd - C, Dd + C, B + A
    return (E * F % P, G * H % P, F * G % P, E * H % P)


def point_neg(a: Point) -> Point:
    return ((-a[0]) % P, a[1], a[2], (-a[3]) % P)


def point_mul(s: int, a: Point) -> Point:
    q = IDENTITY
    while s > 0:
        if s & 1:
            q = point_add(q, a)
        a = point_add(a, a)
        s >>= 1
    return q


def point_equal(a: Point, b: Point) -> bool:
    if (a[0] * b[2] - b[0] * a[2]) % P != 0:
        return False
    return (a[1] * b[2] - b[1] * a[2]) % P == 0


def _recover_x(y: int, sign: int) -> int | None:
    if y >= P:
        return None
    x2 = (y * y - 1) * _inv(D * y * y + 1) % P
    if x2 == 0:
        return None if sign else 0
    x = pow(x2, (P + 3) // 8, P)
    if (x * x - x2) % P != 0:
        x = x * SQRT_M1 % P
    if (x * x - x2) % P != 0:
        return None
    if (x & 1) != sign:
        x = P - x
    return x


def compress(a: Point) -> bytes:
    zinv = _inv(a[2])
    x = a[0] * zinv % P
    y = a[1] * zinv % P
    return int.to_bytes(y | ((x & 1) << 255), 32, "little")


def decompress(data: bytes) -> Point | None:
    """Strict RFC 8032 decoding. Returns None for invalid encodings."""
    if len(data) != 32:
        return None
    y = int.from_bytes(data, "little")
    sign = y >> 255
    y &= (1 << 255) - 1
    x = _recover_x(y, sign)
    if x is None:
        return None
    return (x, y, 1, x * y % P)


def is_on_curve(data: bytes) -> bool:
    """Whether 32 bytes decompress to a curve point.

    Matches the ledger's own check: the y coordinate is reduced mod p
    rather than rejected, and the sign bit of a zero x is accepted.
    """
    if len(data) != 32:
        return False
    y = (int.from_bytes(data, "little") & ((1 << 255) - 1)) % P
    u = (y * y - 1) % P
    v = (D * y * y + 1) % P
    x2 = u * _inv(v) % P
    return x2 == 0 or pow(x2, (P - 1) // 2, P) == 1


def expand_secret(secret: bytes) -> tuple[int, bytes]:
    """RFC 8032 key expansion: (clamped scalar, nonce prefix)."""
    if len(secret) != 32:
        raise ValueError(f"secret key must be 32 bytes, got {len(secret)}")
    h = hashlib.sha512(secret).digest()
    a = int.from_bytes(h[:32], "little")
    a &= (1 << 254) - 8
    a |= 1 << 254
    return a, h[32:]


def public_from_secret(secret: bytes) -> bytes:
    a, _ = expand_secret(secret)
    return compress(point_mul(a, BASE))


__all__ = [
    "BASE",
    "IDENTITY",
    "L",
    "P",
    "Point",
    "compress",
    "decompress",
    "expand_secret",
    "is_on_curve",
    "point_add",
    "point_equal",
    "point_mul",
    "point_neg",
    "public_from_secret",
]
