"""
Error types and verification verdicts.

Builders raise; verifiers return a VerifyResult carrying a Reason so that a
rejected proof is a value, never an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ZkError(Exception):
    """Base class for all commitment/proof errors."""
    pass


class MalformedInput(ZkError, ValueError):
    """Wrong-length buffer, out-of-range integer or invalid curve point."""
    pass


class PreconditionError(ZkError, ValueError):
    """Protocol misuse detected before any proof material is computed."""
    pass


class DegenerateSecret(ZkError, ValueError):
    """Secret that collapses the hiding term (e.g. zero blinding)."""
    pass


class OpeningMismatch(ZkError):
    """Revealed secret does not re-derive the published commitment."""
    pass


class UnknownProofLength(ZkError, ValueError):
    """Proof length maps to no proof kind."""
    pass


class Reason(str, Enum):
    """Verification outcome codes."""

    OK = "OK"
    PROOF_WRONG_LENGTH = "PROOF_WRONG_LENGTH"
    INPUTS_TOO_SHORT = "INPUTS_TOO_SHORT"
    EMPTY_PLAYER_ADDRESS = "EMPTY_PLAYER_ADDRESS"
    MALFORMED_SCALAR = "MALFORMED_SCALAR"
    # hash mode
    NULLIFIER_MISMATCH = "NULLIFIER_MISMATCH"
    RESPONSE_MISMATCH = "RESPONSE_MISMATCH"
    WEAK_SEED_ENTROPY = "WEAK_SEED_ENTROPY"
    COMMITMENT_MISMATCH = "COMMITMENT_MISMATCH"
    # pedersen
    POINT_NOT_ON_CURVE = "POINT_NOT_ON_CURVE"
    SIGMA_CHECK_FAILED = "SIGMA_CHECK_FAILED"
    # ring
    RING_INVALID_SET_SIZE = "RING_INVALID_SET_SIZE"
    RING_CHALLENGE_CHECK_FAILED = "RING_CHALLENGE_CHECK_FAILED"
    # aggregate
    HAND_SUIT_VIOLATION = "HAND_SUIT_VIOLATION"
    HAND_CARD_COUNT_MISMATCH = "HAND_CARD_COUNT_MISMATCH"
    HAND_SCHNORR_CHECK_FAILED = "HAND_SCHNORR_CHECK_FAILED"
    # external circuit
    CIRCUIT_VERIFIER_UNAVAILABLE = "CIRCUIT_VERIFIER_UNAVAILABLE"
    CIRCUIT_PROOF_REJECTED = "CIRCUIT_PROOF_REJECTED"


@dataclass(frozen=True)
class VerifyResult:
    """Result of a single verification attempt."""

    ok: bool
    reason: Reason = Reason.OK
    kind: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @staticmethod
    def accept(kind: str) -> VerifyResult:
        return VerifyResult(True, Reason.OK, kind)

    @staticmethod
    def reject(reason: Reason, kind: Optional[str] = None) -> VerifyResult:
        return VerifyResult(False, reason, kind)
