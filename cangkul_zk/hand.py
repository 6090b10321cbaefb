"""
Aggregate hand proof (228 bytes) behind a "cannot follow suit" claim.

    A     = sum(card_i*G + r_i*H) = (sum card_i)*G + r_agg*H
    R     = nonce*H
    e     = Fr(keccak256(A || R || trick_suit_be4 || k_be4 || session_id_be4 || player || "ZKP8"))
    z     = nonce + e*r_agg
    proof = k_be4(4) || A(96) || R(96) || z(32)

The proof shows the prover can open A to the sum of a k-card hand. It does
not itself prove that no card is of the trick suit: the verifier enforces
that against the hand listed in the public inputs.

Public inputs: commit_hash(32) || trick_suit(4) || k(4) || cards(4 each) || session_id(4) || player
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Final, Optional, Sequence, Tuple, Union

from .cards import DECK_SIZE, SUITS, card_suit
from .commitments import aggregate_commitment
from .curve import (
    G,
    ORDER,
    POINT_SIZE,
    add,
    decode_point,
    encode_point,
    generator_h,
    mul,
    parse_scalar,
    points_equal,
    scalar,
    scalar_to_bytes,
    sub,
)
from .errors import MalformedInput, PreconditionError, Reason, VerifyResult
from .hashing import TAG_AGGREGATE, b32, fits_u32, keccak256, player_bytes, read_u32, u32_be
from .rng import RandomSource, default_random, random_scalar

logger = logging.getLogger(__name__)

KIND: Final[str] = "aggregate"
PROOF_SIZE: Final[int] = 4 + 2 * POINT_SIZE + 32
MAX_HAND: Final[int] = 18


def challenge(
    a_bytes: bytes,
    r_bytes: bytes,
    trick_suit: int,
    count: int,
    session_id: int,
    player: Union[str, bytes],
) -> int:
    digest = keccak256(
        a_bytes,
        r_bytes,
        u32_be(trick_suit),
        u32_be(count),
        u32_be(session_id),
        player_bytes(player),
        TAG_AGGREGATE,
    )
    return scalar(digest)


def _check_hand(hand: Sequence[int], trick_suit: int, max_hand: int) -> Optional[Reason]:
    if not 1 <= len(hand) <= max_hand:
        return Reason.HAND_CARD_COUNT_MISMATCH
    if not 0 <= trick_suit < SUITS:
        return Reason.HAND_SUIT_VIOLATION
    for card in hand:
        if not 0 <= card < DECK_SIZE or card_suit(card) == trick_suit:
            return Reason.HAND_SUIT_VIOLATION
    return None


def build_hand_proof(
    hand: Sequence[int],
    blindings: Sequence[bytes],
    trick_suit: int,
    session_id: int,
    player: str,
    rng: Optional[RandomSource] = None,
    max_hand: int = MAX_HAND,
) -> bytes:
    """
    Build k || A || R || z for a hand holding no card of trick_suit.

    Raises:
        PreconditionError: empty/oversized hand, trick suit out of range,
            or a card of the trick suit present (the claim would be false)
        MalformedInput: blinding count mismatch, empty player
        DegenerateSecret: zero blinding, or blindings summing to zero
    """
    problem = _check_hand(hand, trick_suit, max_hand)
    if problem is not None:
        raise PreconditionError(f"hand cannot back a cannot-follow claim: {problem.value}")
    player_raw = player_bytes(player)
    u32_be(session_id)

    a_point, r_agg = aggregate_commitment(hand, blindings)
    a_bytes = encode_point(a_point)
    nonce = random_scalar(rng or default_random())
    r_bytes = encode_point(mul(generator_h(), nonce))

    count = len(hand)
    e = challenge(a_bytes, r_bytes, trick_suit, count, session_id, player_raw)
    z = (nonce + e * r_agg) % ORDER
    return u32_be(count) + a_bytes + r_bytes + scalar_to_bytes(z)


@dataclass(frozen=True)
class HandStatement:
    commit_hash: bytes
    trick_suit: int
    cards: Tuple[int, ...]
    session_id: int
    player: bytes


def encode_inputs(commit_hash: bytes, trick_suit: int, cards: Sequence[int], session_id: int, player: str) -> bytes:
    return (
        b32(commit_hash, "commit hash")
        + u32_be(trick_suit)
        + u32_be(len(cards))
        + b"".join(u32_be(c) for c in cards)
        + u32_be(session_id)
        + player_bytes(player)
    )


def _reject(reason: Reason) -> VerifyResult:
    logger.warning(f"aggregate proof rejected: {reason.value}")
    return VerifyResult.reject(reason, KIND)


def verify_statement(
    proof: bytes,
    st: HandStatement,
    check_commit: bool = True,
    max_hand: int = MAX_HAND,
) -> VerifyResult:
    if len(proof) != PROOF_SIZE:
        return _reject(Reason.PROOF_WRONG_LENGTH)
    if not st.player:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)

    count = read_u32(proof, 0)
    if not 1 <= count <= max_hand or count != len(st.cards):
        return _reject(Reason.HAND_CARD_COUNT_MISMATCH)
    problem = _check_hand(st.cards, st.trick_suit, max_hand)
    if problem is not None:
        return _reject(problem)

    a_bytes, r_bytes, z_bytes = proof[4:100], proof[100:196], proof[196:]
    try:
        a_point = decode_point(a_bytes)
        r_point = decode_point(r_bytes)
    except MalformedInput:
        return _reject(Reason.POINT_NOT_ON_CURVE)
    try:
        z = parse_scalar(z_bytes)
    except MalformedInput:
        return _reject(Reason.MALFORMED_SCALAR)

    if check_commit and not hmac.compare_digest(keccak256(a_bytes), st.commit_hash):
        return _reject(Reason.COMMITMENT_MISMATCH)

    total = sum(st.cards)
    delta = a_point if total == 0 else sub(a_point, mul(G, total))
    e = challenge(a_bytes, r_bytes, st.trick_suit, count, st.session_id, st.player)
    if not points_equal(mul(generator_h(), z), add(r_point, mul(delta, e))):
        return _reject(Reason.HAND_SCHNORR_CHECK_FAILED)

    logger.debug(f"aggregate proof accepted (k={count}, session {st.session_id})")
    return VerifyResult.accept(KIND)


def verify_hand_proof(
    proof: bytes,
    *,
    hand: Sequence[int],
    trick_suit: int,
    session_id: int,
    player: str,
    commit_hash: Optional[bytes] = None,
    max_hand: int = MAX_HAND,
) -> VerifyResult:
    if not fits_u32(session_id):
        return _reject(Reason.MALFORMED_SCALAR)
    st = HandStatement(commit_hash or b"", trick_suit, tuple(hand), session_id, player.encode("utf-8"))
    return verify_statement(proof, st, check_commit=commit_hash is not None, max_hand=max_hand)


def verify_encoded(public_inputs: bytes, proof: bytes, max_hand: int = MAX_HAND) -> VerifyResult:
    if len(public_inputs) < 40:
        return _reject(Reason.INPUTS_TOO_SHORT)
    count = read_u32(public_inputs, 36)
    if count > max_hand:
        return _reject(Reason.HAND_CARD_COUNT_MISMATCH)
    fixed = 40 + 4 * count + 4
    if len(public_inputs) < fixed:
        return _reject(Reason.INPUTS_TOO_SHORT)
    if len(public_inputs) == fixed:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)
    st = HandStatement(
        commit_hash=public_inputs[:32],
        trick_suit=read_u32(public_inputs, 32),
        cards=tuple(read_u32(public_inputs, 40 + 4 * i) for i in range(count)),
        session_id=read_u32(public_inputs, 40 + 4 * count),
        player=public_inputs[fixed:],
    )
    return verify_statement(proof, st, max_hand=max_hand)
