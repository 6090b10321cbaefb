"""
Pedersen commitment + Schnorr sigma proof on the blinding (224 bytes).

Prover (knows seed_hash s and blinding r):
    C = s*G + r*H
    D = C - s*G                (= r*H)
    R = k*H                    (k fresh per proof)
    e = Fr(keccak256(C || R || seed_hash || session_id_be4 || player || "ZKP4"))
    z = k + e*r mod q
    proof = C(96) || R(96) || z(32)

Verifier:
    keccak256(C) == commit_hash
    z*H == R + e*D

seed_hash sits in both D and the challenge, so swapping the seed after
commit breaks the equation.

Public inputs: commit_hash(32) || seed_hash(32) || session_id(4) || player
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Final, Optional, Union

from .commitments import seed_commitment_point
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
from .errors import MalformedInput, Reason, VerifyResult
from .hashing import TAG_PEDERSEN, b32, fits_u32, keccak256, player_bytes, read_u32, u32_be
from .rng import RandomSource, default_random, random_scalar

logger = logging.getLogger(__name__)

KIND: Final[str] = "pedersen"
PROOF_SIZE: Final[int] = 2 * POINT_SIZE + 32
_FIXED_INPUTS: Final[int] = 32 + 32 + 4


def challenge(c_bytes: bytes, r_bytes: bytes, seed_hash: bytes, session_id: int, player: Union[str, bytes]) -> int:
    digest = keccak256(c_bytes, r_bytes, seed_hash, u32_be(session_id), player_bytes(player), TAG_PEDERSEN)
    return scalar(digest)


def build_pedersen_proof(
    seed_hash: bytes,
    blinding: bytes,
    session_id: int,
    player: str,
    rng: Optional[RandomSource] = None,
) -> bytes:
    """
    Build the 224-byte proof C || R || z.

    Raises:
        MalformedInput: wrong-length seed hash / blinding, empty player
        DegenerateSecret: blinding reduces to zero
    """
    player_raw = player_bytes(player)
    u32_be(session_id)
    r = scalar(blinding)
    c_point = seed_commitment_point(seed_hash, blinding)
    c_bytes = encode_point(c_point)

    k = random_scalar(rng or default_random())
    r_bytes = encode_point(mul(generator_h(), k))

    e = challenge(c_bytes, r_bytes, seed_hash, session_id, player_raw)
    z = (k + e * r) % ORDER
    return c_bytes + r_bytes + scalar_to_bytes(z)


@dataclass(frozen=True)
class PedersenStatement:
    commit_hash: bytes
    seed_hash: bytes
    session_id: int
    player: bytes


def encode_inputs(commit_hash: bytes, seed_hash: bytes, session_id: int, player: str) -> bytes:
    return b32(commit_hash, "commit hash") + b32(seed_hash, "seed hash") + u32_be(session_id) + player_bytes(player)


def decode_inputs(public_inputs: bytes) -> PedersenStatement:
    if len(public_inputs) <= _FIXED_INPUTS:
        raise MalformedInput("pedersen public inputs too short")
    return PedersenStatement(
        commit_hash=public_inputs[0:32],
        seed_hash=public_inputs[32:64],
        session_id=read_u32(public_inputs, 64),
        player=public_inputs[68:],
    )


def _reject(reason: Reason) -> VerifyResult:
    logger.warning(f"pedersen proof rejected: {reason.value}")
    return VerifyResult.reject(reason, KIND)


def verify_statement(proof: bytes, st: PedersenStatement, check_commit: bool = True) -> VerifyResult:
    if len(proof) != PROOF_SIZE:
        return _reject(Reason.PROOF_WRONG_LENGTH)
    if not st.player:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)
    if len(st.seed_hash) != 32:
        return _reject(Reason.INPUTS_TOO_SHORT)

    c_bytes, r_bytes, z_bytes = proof[:96], proof[96:192], proof[192:]
    try:
        c_point = decode_point(c_bytes)
        r_point = decode_point(r_bytes)
    except MalformedInput:
        return _reject(Reason.POINT_NOT_ON_CURVE)
    try:
        z = parse_scalar(z_bytes)
    except MalformedInput:
        return _reject(Reason.MALFORMED_SCALAR)

    if check_commit and not hmac.compare_digest(keccak256(c_bytes), st.commit_hash):
        return _reject(Reason.COMMITMENT_MISMATCH)

    h = generator_h()
    d_point = sub(c_point, mul(G, scalar(st.seed_hash)))
    e = challenge(c_bytes, r_bytes, st.seed_hash, st.session_id, st.player)

    if not points_equal(mul(h, z), add(r_point, mul(d_point, e))):
        return _reject(Reason.SIGMA_CHECK_FAILED)

    logger.debug(f"pedersen proof accepted (session {st.session_id})")
    return VerifyResult.accept(KIND)


def verify_pedersen_proof(
    proof: bytes,
    *,
    seed_hash: bytes,
    session_id: int,
    player: str,
    commit_hash: Optional[bytes] = None,
) -> VerifyResult:
    """
    Verify a 224-byte proof for (seed_hash, session_id, player).

    commit_hash, when given, must equal keccak256(C); without it only the
    sigma equation is checked (the caller binds C some other way).
    """
    if not fits_u32(session_id):
        return _reject(Reason.MALFORMED_SCALAR)
    st = PedersenStatement(commit_hash or b"", seed_hash, session_id, player.encode("utf-8"))
    return verify_statement(proof, st, check_commit=commit_hash is not None)


def verify_encoded(public_inputs: bytes, proof: bytes) -> VerifyResult:
    if len(public_inputs) < _FIXED_INPUTS:
        return _reject(Reason.INPUTS_TOO_SHORT)
    if len(public_inputs) == _FIXED_INPUTS:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)
    return verify_statement(proof, decode_inputs(public_inputs))
