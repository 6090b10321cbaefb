"""
Commit and reveal flows built on the proof modules.

Seed side: a fresh seed and blinding are committed under one ProofMode and
persisted as a SeedSecret; at reveal time the seed hash and the proof for
that mode are rebuilt from the secret alone.

Play side: a card (or the cannot-follow sentinel) is committed either with
the legacy keccak commitment or, when a ZK proof applies, with a Pedersen
commitment backed by a ring proof (following suit) or an aggregate
commitment backed by a hand proof (cannot follow).
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from . import circuit, hand as hand_proof, nizk, ring, sigma
from .cards import CANNOT_FOLLOW_SENTINEL, can_follow, card_suit, check_card, valid_set
from .circuit import CircuitProver
from .commitments import (
    aggregate_commit_hash,
    aggregate_reveal_salt,
    card_commit_hash,
    circuit_commit_hash,
    hash_commitment,
    pedersen_point,
    play_commit_hash,
    point_commit_hash,
    seed_commit_hash,
    seed_hash_for,
)
from .curve import scalar
from .errors import OpeningMismatch, PreconditionError
from .hashing import b32
from .models import PlayCommitSecret, ProofMode, SeedSecret
from .rng import RandomSource, default_random, random_blinding, random_secret
from .settings import Settings

logger = logging.getLogger(__name__)


# --- seed ------------------------------------------------------------------

@dataclass(frozen=True)
class SeedCommitment:
    commit_hash: bytes
    seed_hash: bytes
    secret: SeedSecret


@dataclass(frozen=True)
class SeedReveal:
    mode: ProofMode
    seed_hash: bytes
    proof: bytes
    public_inputs: bytes


def seed_commit_hash_for(secret: SeedSecret, player: str) -> bytes:
    """The commit hash a SeedSecret publishes under its proof mode."""
    seed_hash = seed_hash_for(secret.seed_bytes(), secret.proof_mode)
    if secret.proof_mode == ProofMode.NIZK:
        return hash_commitment(seed_hash, secret.blinding_bytes(), player)
    if secret.proof_mode == ProofMode.NOIR:
        return circuit_commit_hash(seed_hash)
    return seed_commit_hash(seed_hash, secret.blinding_bytes())


def commit_seed(
    player: str,
    mode: ProofMode = ProofMode.PEDERSEN,
    rng: Optional[RandomSource] = None,
) -> SeedCommitment:
    """Draw a seed and blinding and commit to them under mode."""
    rng = rng or default_random()
    secret = SeedSecret.from_bytes(random_secret(rng), random_blinding(rng), mode)
    commit_hash = seed_commit_hash_for(secret, player)
    logger.info(f"seed committed ({mode.value})")
    return SeedCommitment(commit_hash, seed_hash_for(secret.seed_bytes(), mode), secret)


def rebuild_seed_reveal(
    secret: SeedSecret,
    session_id: int,
    player: str,
    commit_hash: bytes,
    rng: Optional[RandomSource] = None,
    prover: Optional[CircuitProver] = None,
) -> SeedReveal:
    """
    Rebuild seed hash, proof and public inputs from a persisted secret.

    Raises:
        OpeningMismatch: secret does not re-derive commit_hash
        PreconditionError: circuit mode without a prover
    """
    if not hmac.compare_digest(seed_commit_hash_for(secret, player), b32(commit_hash, "commit hash")):
        raise OpeningMismatch("stored seed secret does not match the published commitment")

    mode = secret.proof_mode
    seed_hash = seed_hash_for(secret.seed_bytes(), mode)
    blinding = secret.blinding_bytes()

    if mode == ProofMode.NIZK:
        proof = nizk.build_hash_proof(seed_hash, blinding, session_id, player)
        inputs = nizk.encode_inputs(seed_hash, commit_hash, session_id, player)
    elif mode == ProofMode.PEDERSEN:
        proof = sigma.build_pedersen_proof(seed_hash, blinding, session_id, player, rng)
        inputs = sigma.encode_inputs(commit_hash, seed_hash, session_id, player)
    else:
        if prover is None:
            raise PreconditionError("circuit mode reveal needs a circuit prover")
        proof = prover.prove(secret.seed_bytes())
        inputs = circuit.encode_inputs(commit_hash, seed_hash)

    logger.info(f"seed reveal rebuilt ({mode.value}, {len(proof)}-byte proof)")
    return SeedReveal(mode, seed_hash, proof, inputs)


# --- play ------------------------------------------------------------------

@dataclass(frozen=True)
class PlayCommitment:
    kind: str  # "legacy", "ring" or "aggregate"
    commit_hash: bytes
    secret: PlayCommitSecret
    proof: Optional[bytes] = None
    public_inputs: Optional[bytes] = None


def check_play(card: int, hand: Sequence[int], trick_suit: int) -> None:
    """
    Game-rule check for a play against the player's hand.

    Raises:
        PreconditionError: card not held, card off the trick suit, or
            cannot-follow declared while holding the trick suit
    """
    if card == CANNOT_FOLLOW_SENTINEL:
        if can_follow(hand, trick_suit):
            raise PreconditionError("cannot-follow declared while holding the trick suit")
        return
    check_card(card)
    if card not in hand:
        raise PreconditionError(f"card {card} is not in hand")
    if card_suit(card) != trick_suit:
        raise PreconditionError("card does not follow the trick suit; declare cannot-follow instead")


def _legacy(card: int, rng: RandomSource) -> PlayCommitment:
    salt = random_secret(rng)
    secret = PlayCommitSecret(card_id=card, salt=salt.hex(), zk_mode=False)
    return PlayCommitment("legacy", play_commit_hash(card, salt), secret)


def commit_play(
    card: int,
    hand: Sequence[int],
    trick_suit: int,
    session_id: int,
    player: str,
    zk: bool = True,
    rng: Optional[RandomSource] = None,
    settings: Optional[Settings] = None,
) -> PlayCommitment:
    """
    Commit one move.

    With zk on, a followed suit gets a ring proof over the hand's cards of
    that suit and a cannot-follow declaration gets an aggregate hand proof;
    everything else falls back to the legacy keccak commitment.
    """
    check_play(card, hand, trick_suit)
    rng = rng or default_random()
    settings = settings or Settings()

    if not zk:
        return _legacy(card, rng)

    if card == CANNOT_FOLLOW_SENTINEL:
        if not hand:
            return _legacy(card, rng)
        blindings = [random_blinding(rng) for _ in hand]
        commit_hash = aggregate_commit_hash(hand, blindings)
        proof = hand_proof.build_hand_proof(
            hand, blindings, trick_suit, session_id, player, rng, max_hand=settings.HAND_MAX_SIZE
        )
        salt = aggregate_reveal_salt(hand, blindings)
        secret = PlayCommitSecret(card_id=card, salt=salt.hex(), zk_mode=True)
        inputs = hand_proof.encode_inputs(commit_hash, trick_suit, hand, session_id, player)
        return PlayCommitment("aggregate", commit_hash, secret, proof, inputs)

    members = valid_set(hand, trick_suit)
    if not members or len(members) > settings.RING_MAX_SIZE:
        return _legacy(card, rng)
    blinding = random_blinding(rng)
    commit_hash = card_commit_hash(card, blinding)
    proof = ring.build_ring_proof(card, blinding, members, session_id, player, rng, max_set=settings.RING_MAX_SIZE)
    secret = PlayCommitSecret(card_id=card, salt=blinding.hex(), zk_mode=True)
    inputs = ring.encode_inputs(commit_hash, members, session_id, player)
    return PlayCommitment("ring", commit_hash, secret, proof, inputs)


def play_opening_hash(card: int, salt: bytes, zk_mode: bool, hand: Optional[Sequence[int]] = None) -> bytes:
    """Recompute the commit hash a revealed (card, salt) opens."""
    if not zk_mode:
        return play_commit_hash(card, salt)
    if card == CANNOT_FOLLOW_SENTINEL:
        if not hand:
            raise PreconditionError("aggregate opening needs the revealed hand")
        return point_commit_hash(pedersen_point(sum(hand), scalar(b32(salt, "salt"))))
    return card_commit_hash(card, salt)


def open_play_commitment(
    card: int,
    salt: bytes,
    commit_hash: bytes,
    zk_mode: bool,
    hand: Optional[Sequence[int]] = None,
) -> None:
    """
    Check a revealed play against its published commit hash.

    Raises:
        OpeningMismatch: the opening does not reproduce commit_hash
    """
    if not hmac.compare_digest(play_opening_hash(card, salt, zk_mode, hand), b32(commit_hash, "commit hash")):
        raise OpeningMismatch("revealed play does not match the published commitment")
