"""
External circuit mode.

The seed reveal may carry a SNARK produced by an out-of-process prover. This
module only knows its framing: seed_hash = blake2s(seed), each seed-hash byte
encoded as one 32-byte big-endian field element, proof blobs longer than the
circuit threshold. Soundness is entirely the job of the CircuitVerifier.

Public inputs (dispatch wire): commit_hash(32) || field-encoded seed_hash(1024)
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Final, Optional, Protocol, runtime_checkable

from .errors import MalformedInput, Reason, VerifyResult
from .hashing import b32, keccak256

logger = logging.getLogger(__name__)

KIND: Final[str] = "circuit"
PROOF_MIN_SIZE: Final[int] = 4000
PROOF_EXPECTED_SIZE: Final[int] = 14592
FIELD_SIZE: Final[int] = 32
PUBLIC_INPUTS_SIZE: Final[int] = 32 * FIELD_SIZE


@runtime_checkable
class CircuitVerifier(Protocol):
    """Backend that checks a circuit proof against its field-encoded public inputs."""

    def verify_proof(self, public_inputs: bytes, proof: bytes) -> bool:
        ...


@runtime_checkable
class CircuitProver(Protocol):
    """Backend that proves knowledge of a seed whose blake2s hash is public."""

    def prove(self, seed: bytes) -> bytes:
        ...


def encode_seed_hash_inputs(seed_hash: bytes) -> bytes:
    """Each byte becomes 31 zero bytes followed by the byte (1024 bytes total)."""
    return b"".join(bytes(FIELD_SIZE - 1) + bytes([b]) for b in b32(seed_hash, "seed hash"))


def decode_seed_hash_inputs(public_inputs: bytes) -> bytes:
    if len(public_inputs) != PUBLIC_INPUTS_SIZE:
        raise MalformedInput(f"public inputs must be {PUBLIC_INPUTS_SIZE} bytes, got {len(public_inputs)}")
    out = bytearray()
    for i in range(0, PUBLIC_INPUTS_SIZE, FIELD_SIZE):
        field = public_inputs[i:i + FIELD_SIZE]
        if any(field[:-1]):
            raise MalformedInput(f"field element {i // FIELD_SIZE} does not encode a single byte")
        out.append(field[-1])
    return bytes(out)


def is_circuit_proof(proof: bytes, min_size: int = PROOF_MIN_SIZE) -> bool:
    return len(proof) > min_size


@dataclass(frozen=True)
class CircuitProofInfo:
    is_circuit: bool
    proof_size: int
    public_inputs_size: int
    seed_hash: Optional[bytes] = None


def parse_circuit_blob(blob: bytes, min_size: int = PROOF_MIN_SIZE) -> CircuitProofInfo:
    """Split a prover's combined public_inputs || proof output."""
    if len(blob) <= min_size:
        return CircuitProofInfo(False, len(blob), 0)
    public_inputs, proof = blob[:PUBLIC_INPUTS_SIZE], blob[PUBLIC_INPUTS_SIZE:]
    return CircuitProofInfo(True, len(proof), len(public_inputs), decode_seed_hash_inputs(public_inputs))


def encode_inputs(commit_hash: bytes, seed_hash: bytes) -> bytes:
    return b32(commit_hash, "commit hash") + encode_seed_hash_inputs(seed_hash)


def _reject(reason: Reason) -> VerifyResult:
    logger.warning(f"circuit proof rejected: {reason.value}")
    return VerifyResult.reject(reason, KIND)


def verify_circuit_proof(
    proof: bytes,
    *,
    seed_hash: bytes,
    commit_hash: bytes,
    verifier: Optional[CircuitVerifier],
    min_size: int = PROOF_MIN_SIZE,
    strict: bool = True,
) -> VerifyResult:
    """
    Bind seed_hash to commit_hash, then hand the proof to the external verifier.

    With no verifier configured, or one that raises, the result is
    CIRCUIT_VERIFIER_UNAVAILABLE unless strict is off, in which case only the
    commitment binding is checked.
    """
    if not is_circuit_proof(proof, min_size):
        return _reject(Reason.PROOF_WRONG_LENGTH)
    if len(seed_hash) != 32 or len(commit_hash) != 32:
        return _reject(Reason.INPUTS_TOO_SHORT)
    if not hmac.compare_digest(keccak256(seed_hash), commit_hash):
        return _reject(Reason.COMMITMENT_MISMATCH)
    if verifier is None:
        if strict:
            return _reject(Reason.CIRCUIT_VERIFIER_UNAVAILABLE)
        logger.warning("circuit proof accepted without verification (strict mode off)")
        return VerifyResult.accept(KIND)
    try:
        verdict = verifier.verify_proof(encode_seed_hash_inputs(seed_hash), proof)
    except Exception as e:
        logger.warning(f"circuit verifier failed: {e!r}")
        if strict:
            return _reject(Reason.CIRCUIT_VERIFIER_UNAVAILABLE)
        logger.warning("circuit proof accepted without verification (strict mode off)")
        return VerifyResult.accept(KIND)
    if not verdict:
        return _reject(Reason.CIRCUIT_PROOF_REJECTED)
    logger.debug(f"circuit proof accepted ({len(proof)} bytes)")
    return VerifyResult.accept(KIND)


def verify_encoded(
    public_inputs: bytes,
    proof: bytes,
    verifier: Optional[CircuitVerifier],
    min_size: int = PROOF_MIN_SIZE,
    strict: bool = True,
) -> VerifyResult:
    if len(public_inputs) < 32 + PUBLIC_INPUTS_SIZE:
        return _reject(Reason.INPUTS_TOO_SHORT)
    try:
        seed_hash = decode_seed_hash_inputs(public_inputs[32:32 + PUBLIC_INPUTS_SIZE])
    except MalformedInput:
        return _reject(Reason.MALFORMED_SCALAR)
    return verify_circuit_proof(
        proof,
        seed_hash=seed_hash,
        commit_hash=public_inputs[:32],
        verifier=verifier,
        min_size=min_size,
        strict=strict,
    )
