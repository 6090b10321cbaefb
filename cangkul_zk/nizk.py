"""
Hash-based seed proof (compact mode, 64 bytes).

    commitment = keccak256(seed_hash || blinding || player)
    challenge  = keccak256(commitment || session_id_be4 || player || "ZKV2")
    response   = keccak256(seed_hash || challenge || blinding)
    proof      = blinding(32) || response(32)

Public inputs: seed_hash(32) || commitment(32) || nullifier(32) || session_id(4) || player

Soundness rests on keccak preimage resistance only; cheapest mode, weakest
margin.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Final, Optional, Union

from .commitments import hash_commitment, nullifier
from .errors import MalformedInput, Reason, VerifyResult
from .hashing import (
    TAG_HASH_MODE,
    b32,
    fits_u32,
    has_seed_entropy,
    keccak256,
    player_bytes,
    read_u32,
    u32_be,
)
from .rng import RandomSource, default_random, random_blinding

logger = logging.getLogger(__name__)

KIND: Final[str] = "hash"
PROOF_SIZE: Final[int] = 64
_FIXED_INPUTS: Final[int] = 32 + 32 + 32 + 4


def challenge(commitment: bytes, session_id: int, player: Union[str, bytes]) -> bytes:
    return keccak256(b32(commitment, "commitment"), u32_be(session_id), player_bytes(player), TAG_HASH_MODE)


def response(seed_hash: bytes, chal: bytes, blinding: bytes) -> bytes:
    return keccak256(b32(seed_hash, "seed hash"), b32(chal, "challenge"), b32(blinding, "blinding"))


def build_hash_proof(seed_hash: bytes, blinding: bytes, session_id: int, player: str) -> bytes:
    """Deterministic 64-byte proof for a previously committed (seed_hash, blinding)."""
    commitment = hash_commitment(seed_hash, blinding, player)
    resp = response(seed_hash, challenge(commitment, session_id, player), blinding)
    return bytes(blinding) + resp


def new_hash_blinding(rng: Optional[RandomSource] = None) -> bytes:
    return random_blinding(rng or default_random())


@dataclass(frozen=True)
class HashStatement:
    seed_hash: bytes
    commitment: bytes
    nullifier: bytes
    session_id: int
    player: bytes


def encode_inputs(seed_hash: bytes, commitment: bytes, session_id: int, player: str) -> bytes:
    return (
        b32(seed_hash, "seed hash")
        + b32(commitment, "commitment")
        + nullifier(seed_hash, session_id)
        + u32_be(session_id)
        + player_bytes(player)
    )


def decode_inputs(public_inputs: bytes) -> HashStatement:
    if len(public_inputs) <= _FIXED_INPUTS:
        raise MalformedInput("hash-mode public inputs too short")
    return HashStatement(
        seed_hash=public_inputs[0:32],
        commitment=public_inputs[32:64],
        nullifier=public_inputs[64:96],
        session_id=read_u32(public_inputs, 96),
        player=public_inputs[100:],
    )


def _reject(reason: Reason) -> VerifyResult:
    logger.warning(f"hash proof rejected: {reason.value}")
    return VerifyResult.reject(reason, KIND)


def verify_statement(proof: bytes, st: HashStatement) -> VerifyResult:
    """
    Check order: commitment binding, nullifier, response, seed entropy.
    """
    if len(proof) != PROOF_SIZE:
        return _reject(Reason.PROOF_WRONG_LENGTH)
    if not st.player:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)
    if len(st.seed_hash) != 32 or len(st.commitment) != 32 or len(st.nullifier) != 32:
        return _reject(Reason.INPUTS_TOO_SHORT)

    blinding, resp = proof[:32], proof[32:]
    player = player_bytes(st.player)

    if not hmac.compare_digest(keccak256(st.seed_hash, blinding, player), st.commitment):
        return _reject(Reason.COMMITMENT_MISMATCH)
    if not hmac.compare_digest(nullifier(st.seed_hash, st.session_id), st.nullifier):
        return _reject(Reason.NULLIFIER_MISMATCH)
    chal = challenge(st.commitment, st.session_id, st.player)
    if not hmac.compare_digest(response(st.seed_hash, chal, blinding), resp):
        return _reject(Reason.RESPONSE_MISMATCH)
    if not has_seed_entropy(st.seed_hash):
        return _reject(Reason.WEAK_SEED_ENTROPY)

    logger.debug(f"hash proof accepted (session {st.session_id})")
    return VerifyResult.accept(KIND)


def verify_hash_proof(
    proof: bytes,
    *,
    seed_hash: bytes,
    commitment: bytes,
    session_id: int,
    player: str,
) -> VerifyResult:
    if not fits_u32(session_id):
        return _reject(Reason.MALFORMED_SCALAR)
    null = nullifier(seed_hash, session_id) if len(seed_hash) == 32 else b""
    st = HashStatement(seed_hash, commitment, null, session_id, player.encode("utf-8"))
    return verify_statement(proof, st)


def verify_encoded(public_inputs: bytes, proof: bytes) -> VerifyResult:
    if len(public_inputs) < _FIXED_INPUTS:
        return _reject(Reason.INPUTS_TOO_SHORT)
    if len(public_inputs) == _FIXED_INPUTS:
        return _reject(Reason.EMPTY_PLAYER_ADDRESS)
    return verify_statement(proof, decode_inputs(public_inputs))
