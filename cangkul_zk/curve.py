"""
BLS12-381 G1 primitives.

- Scalars live in Fr (order r ~ 2^255); every scalar is reduced mod r before
  it touches a point.
- Points are serialized uncompressed: x(48) || y(48), big-endian affine. The
  identity uses the zcash-style infinity flag (0x40 followed by zeros).
- H is derived by hash-to-curve over a fixed label, so nobody knows log_G(H).
"""

from __future__ import annotations

import hashlib
from functools import lru_cache
from typing import Final, Iterable, Tuple

from py_ecc.bls.hash_to_curve import hash_to_G1
from py_ecc.fields import optimized_bls12_381_FQ as FQ
from py_ecc.optimized_bls12_381 import (
    G1,
    Z1,
    add,
    b,
    curve_order,
    eq,
    field_modulus,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    normalize,
)

from .errors import MalformedInput

Point = Tuple[FQ, FQ, FQ]

ORDER: Final[int] = curve_order
POINT_SIZE: Final[int] = 96
SCALAR_SIZE: Final[int] = 32
COORD_SIZE: Final[int] = 48

H_MESSAGE: Final[bytes] = b"PEDERSEN_H"
H_DST: Final[bytes] = b"SGS_CANGKULAN_V1"

_FLAG_COMPRESSED = 0x80
_FLAG_INFINITY = 0x40
_FLAG_SORT = 0x20

G: Final[Point] = G1
IDENTITY: Final[Point] = Z1


@lru_cache(maxsize=1)
def generator_h() -> Point:
    """H = hash_to_G1("PEDERSEN_H", DST="SGS_CANGKULAN_V1"), SHA-256 XMD SSWU."""
    return hash_to_G1(H_MESSAGE, H_DST, hashlib.sha256)


def scalar(data: bytes) -> int:
    """Interpret 32 big-endian bytes as an Fr scalar (reduced mod r)."""
    if len(data) != SCALAR_SIZE:
        raise MalformedInput(f"scalar input must be 32 bytes, got {len(data)}")
    return int.from_bytes(data, "big") % ORDER


def scalar_to_bytes(x: int) -> bytes:
    return (x % ORDER).to_bytes(SCALAR_SIZE, "big")


def parse_scalar(data: bytes) -> int:
    """Strict decoding for proof scalars: non-canonical values are malformed."""
    if len(data) != SCALAR_SIZE:
        raise MalformedInput(f"scalar must be 32 bytes, got {len(data)}")
    x = int.from_bytes(data, "big")
    if x >= ORDER:
        raise MalformedInput("scalar not reduced modulo the group order")
    return x


def mul(pt: Point, k: int) -> Point:
    return multiply(pt, k % ORDER)


def sub(p: Point, q: Point) -> Point:
    return add(p, neg(q))


def point_sum(points: Iterable[Point]) -> Point:
    acc = IDENTITY
    for pt in points:
        acc = add(acc, pt)
    return acc


def points_equal(p: Point, q: Point) -> bool:
    return eq(p, q)


def in_subgroup(pt: Point) -> bool:
    """(r-1)*P == -P holds exactly for points of order dividing r."""
    if is_inf(pt):
        return True
    return eq(multiply(pt, ORDER - 1), neg(pt))


def encode_point(pt: Point) -> bytes:
    if is_inf(pt):
        return bytes([_FLAG_INFINITY]) + b"\x00" * (POINT_SIZE - 1)
    x, y = normalize(pt)
    return x.n.to_bytes(COORD_SIZE, "big") + y.n.to_bytes(COORD_SIZE, "big")


def decode_point(data: bytes) -> Point:
    """
    Decode a 96-byte uncompressed G1 point.

    Raises:
        MalformedInput: wrong length, flag bits set, coordinate >= p,
            point off the curve or outside the prime-order subgroup
    """
    if len(data) != POINT_SIZE:
        raise MalformedInput(f"point must be {POINT_SIZE} bytes, got {len(data)}")
    flags = data[0] & 0xE0
    if flags == _FLAG_INFINITY:
        if (data[0] & 0x1F) or any(data[1:]):
            raise MalformedInput("non-canonical point at infinity")
        return IDENTITY
    if flags & (_FLAG_COMPRESSED | _FLAG_SORT | _FLAG_INFINITY):
        raise MalformedInput("unexpected flag bits in uncompressed point")
    x = int.from_bytes(data[:COORD_SIZE], "big")
    y = int.from_bytes(data[COORD_SIZE:], "big")
    if x >= field_modulus or y >= field_modulus:
        raise MalformedInput("point coordinate out of field range")
    pt: Point = (FQ(x), FQ(y), FQ.one())
    if not is_on_curve(pt, b):
        raise MalformedInput("point not on curve")
    if not in_subgroup(pt):
        raise MalformedInput("point not in the G1 subgroup")
    return pt
