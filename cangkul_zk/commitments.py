"""
Commitment construction.

Hash commitments (keccak256, domain-separated) and Pedersen commitments over
BLS12-381 G1:

    C = value * G + blinding * H

The published commit hash is always keccak256 over the commitment object, so
the point itself stays hidden until reveal.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from .cards import CANNOT_FOLLOW_SENTINEL
from .curve import (
    IDENTITY,
    ORDER,
    G,
    Point,
    add,
    encode_point,
    generator_h,
    mul,
    scalar,
    scalar_to_bytes,
)
from .errors import DegenerateSecret, MalformedInput
from .hashing import (
    TAG_NULLIFIER,
    b32,
    blake2s_seed_hash,
    keccak256,
    keccak_seed_hash,
    player_bytes,
    u32_be,
)
from .models import ProofMode


def seed_hash_for(seed: bytes, mode: ProofMode) -> bytes:
    """blake2s for the external circuit mode, keccak256 otherwise."""
    if mode == ProofMode.NOIR:
        return blake2s_seed_hash(seed)
    return keccak_seed_hash(seed)


def _nonzero_blinding(blinding: bytes) -> int:
    r = scalar(b32(blinding, "blinding"))
    if r == 0:
        raise DegenerateSecret("blinding reduces to zero; commitment would not hide")
    return r


# --- hash mode -------------------------------------------------------------

def hash_commitment(seed_hash: bytes, blinding: bytes, player: str) -> bytes:
    """keccak256(seed_hash || blinding || player)."""
    if not any(b32(blinding, "blinding")):
        raise DegenerateSecret("all-zero blinding")
    return keccak256(b32(seed_hash, "seed hash"), blinding, player_bytes(player))


def nullifier(seed_hash: bytes, session_id: int) -> bytes:
    """keccak256(seed_hash || "NULL" || session_id_be4)."""
    return keccak256(b32(seed_hash, "seed hash"), TAG_NULLIFIER, u32_be(session_id))


def circuit_commit_hash(seed_hash: bytes) -> bytes:
    """Commit hash for the external circuit mode: keccak256(blake2s_seed_hash)."""
    return keccak256(b32(seed_hash, "seed hash"))


def play_commit_hash(action: int, salt: bytes) -> bytes:
    """Legacy play commitment: keccak256(action_be4 || salt)."""
    return keccak256(u32_be(action), b32(salt, "salt"))


# --- Pedersen --------------------------------------------------------------

def pedersen_point(value: int, r: int) -> Point:
    """value*G + r*H; a zero value omits the G term."""
    v = value % ORDER
    rh = mul(generator_h(), r)
    if v == 0:
        return rh
    return add(mul(G, v), rh)


def point_commit_hash(pt: Point) -> bytes:
    return keccak256(encode_point(pt))


def seed_commitment_point(seed_hash: bytes, blinding: bytes) -> Point:
    """C = Fr(seed_hash)*G + Fr(blinding)*H."""
    return pedersen_point(scalar(b32(seed_hash, "seed hash")), _nonzero_blinding(blinding))


def seed_commitment(seed_hash: bytes, blinding: bytes) -> bytes:
    return encode_point(seed_commitment_point(seed_hash, blinding))


def seed_commit_hash(seed_hash: bytes, blinding: bytes) -> bytes:
    return point_commit_hash(seed_commitment_point(seed_hash, blinding))


def card_commitment_point(card: int, blinding: bytes) -> Point:
    """C = card*G + Fr(blinding)*H."""
    u32_be(card)
    return pedersen_point(card, _nonzero_blinding(blinding))


def card_commit_hash(card: int, blinding: bytes) -> bytes:
    return point_commit_hash(card_commitment_point(card, blinding))


def aggregate_commitment(hand: Sequence[int], blindings: Sequence[bytes]) -> Tuple[Point, int]:
    """
    A = sum(card_i*G + r_i*H) = (sum card_i)*G + r_agg*H.

    Returns:
        (A, r_agg) with r_agg = sum r_i mod r

    Raises:
        MalformedInput: hand/blinding count mismatch or empty hand
        DegenerateSecret: any r_i or r_agg is zero
    """
    if not hand:
        raise MalformedInput("hand must be non-empty")
    if len(hand) != len(blindings):
        raise MalformedInput(f"{len(hand)} cards but {len(blindings)} blindings")
    acc = IDENTITY
    r_agg = 0
    for card, blinding in zip(hand, blindings):
        if card == CANNOT_FOLLOW_SENTINEL:
            raise MalformedInput("sentinel is not a card")
        r_i = _nonzero_blinding(blinding)
        acc = add(acc, pedersen_point(card, r_i))
        r_agg = (r_agg + r_i) % ORDER
    if r_agg == 0:
        raise DegenerateSecret("aggregate blinding sums to zero")
    return acc, r_agg


def aggregate_commit_hash(hand: Sequence[int], blindings: Sequence[bytes]) -> bytes:
    a, _ = aggregate_commitment(hand, blindings)
    return point_commit_hash(a)


def aggregate_reveal_salt(hand: Sequence[int], blindings: Sequence[bytes]) -> bytes:
    """r_agg as 32 big-endian bytes; opens A as a single Pedersen commitment to sum(hand)."""
    _, r_agg = aggregate_commitment(hand, blindings)
    return scalar_to_bytes(r_agg)
