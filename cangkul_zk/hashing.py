"""
Hashing primitives and byte codecs shared by every proof.

keccak256 (eth_utils) drives commitments, nullifiers and Fiat-Shamir
challenges; blake2s is the circuit-friendly seed hash. Transcripts are
domain separated by 4-byte tags: NULL (nullifier), ZKV2 (hash proof),
ZKP4 (Pedersen), ZKP7 (ring) and ZKP8 (aggregate hand).
"""

from __future__ import annotations

import hashlib
from typing import Final, Union

from eth_utils import keccak

from .errors import MalformedInput

# Domain tags, one per derived value. Changing any of these changes every
# transcript and must come with a new protocol version.
TAG_NULLIFIER: Final[bytes] = b"NULL"
TAG_HASH_MODE: Final[bytes] = b"ZKV2"
TAG_PEDERSEN: Final[bytes] = b"ZKP4"
TAG_RING: Final[bytes] = b"ZKP7"
TAG_AGGREGATE: Final[bytes] = b"ZKP8"

U32_MAX: Final[int] = 0xFFFFFFFF
MIN_SEED_DISTINCT_BYTES: Final[int] = 4


def keccak256(*parts: bytes) -> bytes:
    """Keccak-256 over the concatenation of parts."""
    return keccak(b"".join(parts))


def blake2s256(data: bytes) -> bytes:
    return hashlib.blake2s(data, digest_size=32).digest()


def b32(x: bytes, what: str = "value") -> bytes:
    """Validate 32-byte input."""
    if len(x) != 32:
        raise MalformedInput(f"expected 32-byte {what}, got {len(x)} bytes")
    return bytes(x)


def fits_u32(x: int) -> bool:
    return 0 <= x <= U32_MAX


def u32_be(x: int) -> bytes:
    if not fits_u32(x):
        raise MalformedInput(f"u32 out of range: {x}")
    return int(x).to_bytes(4, "big")


def read_u32(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 4], "big")


def player_bytes(player: Union[str, bytes]) -> bytes:
    """UTF-8 encoding of a player address; empty addresses are rejected."""
    if not player:
        raise MalformedInput("player address must be non-empty")
    if isinstance(player, bytes):
        return player
    return player.encode("utf-8")


def keccak_seed_hash(seed: bytes) -> bytes:
    """seed_hash = keccak256(seed) for the algebraic and hash modes."""
    return keccak(b32(seed, "seed"))


def blake2s_seed_hash(seed: bytes) -> bytes:
    """seed_hash = blake2s(seed), matching the external circuit's native hash."""
    return blake2s256(b32(seed, "seed"))


def distinct_bytes(data: bytes) -> int:
    return len(set(data))


def has_seed_entropy(seed_hash: bytes) -> bool:
    """Reject trivially weak seed hashes (fewer than 4 distinct byte values)."""
    return distinct_bytes(seed_hash) >= MIN_SEED_DISTINCT_BYTES


def to_hex32(b: bytes) -> str:
    """Convert 32-byte value to 0x-prefixed hex string."""
    return "0x" + b32(b).hex()


def from_hex(s: str) -> bytes:
    s = s.strip()
    if s.startswith(("0x", "0X")):
        s = s[2:]
    try:
        return bytes.fromhex(s)
    except ValueError as exc:
        raise MalformedInput(f"invalid hex string: {exc}") from exc
