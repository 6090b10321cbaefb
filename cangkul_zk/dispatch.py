"""
Length-keyed proof dispatch.

A proof's kind is chosen from its length alone, never from its contents.
Lengths are resolved inside a domain: seed reveals (hash / Pedersen /
circuit) and play commits (ring / aggregate). A two-member ring proof is
224 bytes, the same as a Pedersen proof, so the domain is part of the key;
within one domain the rules are checked to be disjoint when the table is
built.

    SEED:  64 -> hash    224 -> pedersen    > circuit threshold -> circuit
    PLAY:  96 + 64N (1 <= N <= ring max) -> ring    228 -> aggregate
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from . import circuit, hand, nizk, ring, sigma
from .errors import Reason, UnknownProofLength, VerifyResult
from .metrics import Metrics
from .settings import Settings

logger = logging.getLogger(__name__)


class ProofKind(str, Enum):
    HASH = nizk.KIND
    PEDERSEN = sigma.KIND
    RING = ring.KIND
    AGGREGATE = hand.KIND
    CIRCUIT = circuit.KIND


class ProofDomain(str, Enum):
    SEED = "seed"
    PLAY = "play"


@dataclass(frozen=True)
class LengthRule:
    kind: ProofKind
    matches: Callable[[int], bool]
    describe: str


def _ring_matcher(max_set: int) -> Callable[[int], bool]:
    def matches(length: int) -> bool:
        n = ring.set_size_for(length)
        return n is not None and 1 <= n <= max_set

    return matches


def build_rules(settings: Settings) -> Dict[ProofDomain, List[LengthRule]]:
    threshold = settings.CIRCUIT_MIN_PROOF
    rules = {
        ProofDomain.SEED: [
            LengthRule(ProofKind.HASH, lambda n: n == nizk.PROOF_SIZE, f"== {nizk.PROOF_SIZE}"),
            LengthRule(ProofKind.PEDERSEN, lambda n: n == sigma.PROOF_SIZE, f"== {sigma.PROOF_SIZE}"),
            LengthRule(ProofKind.CIRCUIT, lambda n: n > threshold, f"> {threshold}"),
        ],
        ProofDomain.PLAY: [
            LengthRule(
                ProofKind.RING,
                _ring_matcher(settings.RING_MAX_SIZE),
                f"96 + 64N, 1 <= N <= {settings.RING_MAX_SIZE}",
            ),
            LengthRule(ProofKind.AGGREGATE, lambda n: n == hand.PROOF_SIZE, f"== {hand.PROOF_SIZE}"),
        ],
    }
    check_exclusive(rules, horizon=threshold + 1)
    return rules


def check_exclusive(rules: Dict[ProofDomain, Sequence[LengthRule]], horizon: int) -> None:
    """
    Raise RuntimeError if two rules of one domain accept the same length.

    Every length up to horizon is probed; above it only the circuit rule
    can match.
    """
    for domain, domain_rules in rules.items():
        for length in range(horizon + 1):
            hits = [r.kind.value for r in domain_rules if r.matches(length)]
            if len(hits) > 1:
                raise RuntimeError(f"proof length {length} is ambiguous in {domain.value}: {hits}")


def classify(length: int, domain: ProofDomain, settings: Optional[Settings] = None) -> ProofKind:
    """
    Map a proof length to its kind within a domain.

    Raises:
        UnknownProofLength: if no rule accepts the length
    """
    rules = _DEFAULT_RULES if settings is None else build_rules(settings)
    for rule in rules[domain]:
        if rule.matches(length):
            return rule.kind
    raise UnknownProofLength(f"no {domain.value} proof kind has length {length}")


_DEFAULT_RULES = build_rules(Settings())


class Dispatcher:
    """
    Single verify entry point over every proof kind.

    Args:
        settings: size limits and circuit threshold
        circuit_verifier: external verifier for circuit proofs (None fails closed)
        metrics: outcome counters, optional
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        circuit_verifier: Optional[circuit.CircuitVerifier] = None,
        metrics: Optional[Metrics] = None,
    ):
        self.settings = settings or Settings()
        self.circuit_verifier = circuit_verifier
        self.metrics = metrics
        self.rules = build_rules(self.settings)

    def classify(self, length: int, domain: ProofDomain) -> ProofKind:
        for rule in self.rules[domain]:
            if rule.matches(length):
                return rule.kind
        raise UnknownProofLength(f"no {domain.value} proof kind has length {length}")

    def _run(self, kind: ProofKind, public_inputs: bytes, proof: bytes) -> VerifyResult:
        s = self.settings
        if kind is ProofKind.HASH:
            return nizk.verify_encoded(public_inputs, proof)
        if kind is ProofKind.PEDERSEN:
            return sigma.verify_encoded(public_inputs, proof)
        if kind is ProofKind.RING:
            return ring.verify_encoded(public_inputs, proof, max_set=s.RING_MAX_SIZE)
        if kind is ProofKind.AGGREGATE:
            return hand.verify_encoded(public_inputs, proof, max_hand=s.HAND_MAX_SIZE)
        return circuit.verify_encoded(
            public_inputs,
            proof,
            self.circuit_verifier,
            min_size=s.CIRCUIT_MIN_PROOF,
            strict=s.STRICT_CIRCUIT,
        )

    def verify(self, domain: ProofDomain, public_inputs: bytes, proof: bytes) -> VerifyResult:
        """Verify proof against its encoded public inputs; never raises on bad input."""
        started = time.perf_counter()
        try:
            kind = self.classify(len(proof), domain)
        except UnknownProofLength:
            logger.warning(f"{domain.value} proof of length {len(proof)} matches no kind")
            result = VerifyResult.reject(Reason.PROOF_WRONG_LENGTH)
        else:
            result = self._run(kind, public_inputs, proof)
        if self.metrics is not None:
            self.metrics.record(result, time.perf_counter() - started)
        return result
