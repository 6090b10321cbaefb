"""
1-of-N ring sigma proof: the committed card belongs to a public valid set.

    C   = id*G + r*H
    D_i = C - v_i*G                 for every candidate v_i
    R_i = z_i*H - e_i*D_i           the one branch formula
    e   = Fr(keccak256(C || R_0 .. R_{N-1} || session_id_be4 || player || "ZKP7"))
    sum(e_i) == e  (mod q)

For the real index j the prover evaluates the branch formula with
(e_j, z_j) = (0, k), which yields R_j = k*H; only afterwards are
e_j = e - sum_{i != j} e_i and z_j = k + e_j*r filled in. Every R_i is
produced by the same code path whether simulated or real.

proof = C(96) || [e_i(32) || z_i(32)] * N       (96 + 64N bytes)

Public inputs: commit_hash(32) || N(4) || valid_set(4 each) || session_id(4) || player
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Final, List, Optional, Sequence, Tuple, Union

from .commitments import card_commitment_point
from .curve import (
    G,
    ORDER,
    POINT_SIZE,
    Point,
    decode_point,
    encode_point,
    generator_h,
    mul,
    parse_scalar,
    scalar,
    scalar_to_bytes,
    sub,
)
from .errors import MalformedInput, PreconditionError, Reason, VerifyResult
from .hashing import TAG_RING, b32, fits_u32, keccak256, player_bytes, read_u32, u32_be
from .rng import RandomSource, default_random, random_scalar

logger = logging.getLogger(__name__)

KIND: Final[str] = "ring"
BRANCH_SIZE: Final[int] = 64
DEFAULT_MAX_SET: Final[int] = 9


def proof_size(n: int) -> int:
    return POINT_SIZE + BRANCH_SIZE * n


def set_size_for(length: int) -> Optional[int]:
    """N for a ring proof of this length, or None if the length is not 96 + 64N, N >= 1."""
    if length <= POINT_SIZE or (length - POINT_SIZE) % BRANCH_SIZE:
        return None
    return (length - POINT_SIZE) // BRANCH_SIZE


def _branch_nonce(h: Point, z: int, e: int, d: Point) -> Point:
    """R = z*H - e*D."""
    return sub(mul(h, z), mul(d, e))


def _offsets(c_point: Point, valid_set: Sequence[int]) -> List[Point]:
    """D_i = C - v_i*G (v_i = 0 leaves C unchanged)."""
    return [c_point if v % ORDER == 0 else sub(c_point, mul(G, v)) for v in valid_set]


def challenge(c_bytes: bytes, r_points: Sequence[Point], session_id: int, player: Union[str, bytes]) -> int:
    digest = keccak256(
        c_bytes,
        *(encode_point(r) for r in r_points),
        u32_be(session_id),
        player_bytes(player),
        TAG_RING,
    )
    return scalar(digest)


def build_ring_proof(
    card: int,
    blinding: bytes,
    valid_set: Sequence[int],
    session_id: int,
    player: str,
    rng: Optional[RandomSource] = None,
    max_set: int = DEFAULT_MAX_SET,
) -> bytes:
    """
    Prove that Pedersen(card, blinding) hides a member of valid_set.

    Raises:
        PreconditionError: empty or oversized set, card not in the set
            (checked before any hashing or group arithmetic)
        MalformedInput: wrong-length blinding, empty player
        DegenerateSecret: blinding reduces to zero
    """
    n = len(valid_set)
    if n == 0:
        raise PreconditionError("valid set is empty; commit the cannot-follow sentinel instead")
    if n > max_set:
        raise PreconditionError(f"valid set of {n} exceeds maximum {max_set}")
    if card not in valid_set:
        raise PreconditionError("committed card is not in the valid set")
    for v in valid_set:
        u32_be(v)
    player_raw = player_bytes(player)
    u32_be(session_id)

    rng = rng or default_random()
    j = list(valid_set).index(card)
    r = scalar(b32(blinding, "blinding"))
    h = generator_h()

    c_point = card_commitment_point(card, blinding)
    c_bytes = encode_point(c_point)
    d_points = _offsets(c_point, valid_set)

    k = random_scalar(rng)
    e_vals = [random_scalar(rng) for _ in range(n)]
    z_vals = [random_scalar(rng) for _ in range(n)]
    e_vals[j], z_vals[j] = 0, k

    r_points = [_branch_nonce(h, z_vals[i], e_vals[i], d_points[i]) for i in range(n)]
    e = challenge(c_bytes, r_points, session_id, player_raw)

    e_vals[j] = (e - sum(e_vals)) % ORDER
    z_vals[j] = (k + e_vals[j] * r) % ORDER

    return c_bytes + b"".join(scalar_to_bytes(ei) + scalar_to_bytes(zi) for ei, zi in zip(e_vals, z_vals))


def parse_branches(proof: bytes) -> List[Tuple[int, int]]:
    n = set_size_for(len(proof))
    if n is None:
        raise MalformedInput(f"not a ring proof length: {len(proof)}")
    out = []
    for i in range(n):
        off = POINT_SIZE + i * BRANCH_SIZE
        out.append((parse_scalar(proof[off:off + 32]), parse_scalar(proof[off + 32:off + 64])))
    return out


@dataclass(frozen=True)
class RingStatement:
    commit_hash: bytes
    valid_set: Tuple[int, ...]
    session_id: int
    player: bytes


def encode_inputs(commit_hash: bytes, valid_set: Sequence[int], session_id: int, player: str) -> bytes:
    return (
        b32(commit_hash, "commit hash")
        + u32_be(len(valid_set))
        + b"".join(u32_be(v) for v in valid_set)
        + u32_be(session_id)
        + player_bytes(player)
    )


def _reject(reason: Reason) -> VerifyResult:
    logger.warning(f"ring proof rejected: {reason.value}")
    return VerifyResult.reject(reason, KIND)


def verify_statement(
    proof: bytes,
    st: RingStatement,
    check_commit: bool = True,
    max_set: int = DEFAULT_MAX_SET,
) -> VerifyResult:
    n = set_size_for(len(proof))
    if n is None:
        return _reject(Reason.PROOF_WRONG_LENGTH)
    if n > max_set or n != len(st.valid_set):
        return _reject(Reason.RING_INVALID_SET_SIZE)
    if not st.player:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)

    c_bytes = proof[:POINT_SIZE]
    try:
        c_point = decode_point(c_bytes)
    except MalformedInput:
        return _reject(Reason.POINT_NOT_ON_CURVE)
    try:
        branches = parse_branches(proof)
    except MalformedInput:
        return _reject(Reason.MALFORMED_SCALAR)

    if check_commit and not hmac.compare_digest(keccak256(c_bytes), st.commit_hash):
        return _reject(Reason.COMMITMENT_MISMATCH)

    h = generator_h()
    d_points = _offsets(c_point, st.valid_set)
    r_points = [_branch_nonce(h, z, e, d) for (e, z), d in zip(branches, d_points)]
    e = challenge(c_bytes, r_points, st.session_id, st.player)

    if sum(ei for ei, _ in branches) % ORDER != e:
        return _reject(Reason.RING_CHALLENGE_CHECK_FAILED)

    logger.debug(f"ring proof accepted (N={n}, session {st.session_id})")
    return VerifyResult.accept(KIND)


def verify_ring_proof(
    proof: bytes,
    *,
    valid_set: Sequence[int],
    session_id: int,
    player: str,
    commit_hash: Optional[bytes] = None,
    max_set: int = DEFAULT_MAX_SET,
) -> VerifyResult:
    if not fits_u32(session_id):
        return _reject(Reason.MALFORMED_SCALAR)
    st = RingStatement(commit_hash or b"", tuple(valid_set), session_id, player.encode("utf-8"))
    return verify_statement(proof, st, check_commit=commit_hash is not None, max_set=max_set)


def verify_encoded(public_inputs: bytes, proof: bytes, max_set: int = DEFAULT_MAX_SET) -> VerifyResult:
    n = set_size_for(len(proof))
    if n is None:
        return _reject(Reason.PROOF_WRONG_LENGTH)
    if n > max_set:
        return _reject(Reason.RING_INVALID_SET_SIZE)
    fixed = 32 + 4 + 4 * n + 4
    if len(public_inputs) < fixed:
        return _reject(Reason.INPUTS_TOO_SHORT)
    if read_u32(public_inputs, 32) != n:
        return _reject(Reason.RING_INVALID_SET_SIZE)
    if len(public_inputs) == fixed:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)
    st = RingStatement(
        commit_hash=public_inputs[:32],
        valid_set=tuple(read_u32(public_inputs, 36 + 4 * i) for i in range(n)),
        session_id=read_u32(public_inputs, 36 + 4 * n),
        player=public_inputs[fixed:],
    )
    return verify_statement(proof, st, max_set=max_set)
