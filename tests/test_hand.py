"""
Aggregate hand proof for cannot-follow (228 bytes).

Verifies:
- completeness and layout k || A || R || z
- builder refuses a hand that holds the trick suit
- verifier enforces suit exclusion against the public hand
- count, commit hash, session and tamper rejections
"""

from __future__ import annotations

import pytest

from cangkul_zk import hand
from cangkul_zk.commitments import aggregate_commit_hash
from cangkul_zk.errors import PreconditionError, Reason
from cangkul_zk.hashing import keccak256, read_u32

from conftest import OTHER_PLAYER, PLAYER, SESSION

# spades, diamonds, clubs; no hearts (suit 1)
HAND = [0, 4, 20, 30, 35]
TRICK = 1
BLINDINGS = [bytes([0x10 + i]) * 32 for i in range(len(HAND))]


@pytest.fixture
def proof(rng):
    return hand.build_hand_proof(HAND, BLINDINGS, TRICK, SESSION, PLAYER, rng)


def _verify(proof, **overrides):
    kw = dict(hand=HAND, trick_suit=TRICK, session_id=SESSION, player=PLAYER)
    kw.update(overrides)
    return hand.verify_hand_proof(proof, **kw)


class TestCompleteness:
    def test_layout(self, proof):
        assert len(proof) == hand.PROOF_SIZE == 228
        assert read_u32(proof, 0) == len(HAND)
        assert keccak256(proof[4:100]) == aggregate_commit_hash(HAND, BLINDINGS)

    def test_valid(self, proof):
        res = _verify(proof, commit_hash=aggregate_commit_hash(HAND, BLINDINGS))
        assert res.ok and res.kind == "aggregate"


class TestBuilderPreconditions:
    def test_hand_with_trick_suit_refused(self, rng):
        """A player holding the trick suit cannot claim cannot-follow."""
        with pytest.raises(PreconditionError):
            hand.build_hand_proof([0, 10], BLINDINGS[:2], TRICK, SESSION, PLAYER, rng)

    def test_empty_hand_refused(self, rng):
        with pytest.raises(PreconditionError):
            hand.build_hand_proof([], [], TRICK, SESSION, PLAYER, rng)

    def test_bad_trick_suit(self, rng):
        with pytest.raises(PreconditionError):
            hand.build_hand_proof(HAND, BLINDINGS, 4, SESSION, PLAYER, rng)


class TestVerifierChecks:
    def test_public_hand_with_trick_suit(self, proof):
        """Exclusion is checked on the public hand, not assumed from the proof."""
        res = _verify(proof, hand=[0, 4, 20, 30, 10])
        assert res.reason == Reason.HAND_SUIT_VIOLATION

    def test_card_out_of_range(self, proof):
        assert _verify(proof, hand=[0, 4, 20, 30, 36]).reason == Reason.HAND_SUIT_VIOLATION

    def test_count_mismatch(self, proof):
        assert _verify(proof, hand=HAND[:4]).reason == Reason.HAND_CARD_COUNT_MISMATCH

    def test_different_hand_same_size(self, proof):
        """Swapping one card changes sum(cards) and breaks the opening."""
        assert _verify(proof, hand=[0, 4, 20, 30, 34]).reason == Reason.HAND_SCHNORR_CHECK_FAILED

    def test_wrong_trick_suit(self, proof):
        assert _verify(proof, trick_suit=2).reason == Reason.HAND_SUIT_VIOLATION

    def test_wrong_session(self, proof):
        assert _verify(proof, session_id=SESSION + 1).reason == Reason.HAND_SCHNORR_CHECK_FAILED

    @pytest.mark.parametrize("session_id", [-1, 2 ** 32])
    def test_session_out_of_u32_range(self, proof, session_id):
        assert _verify(proof, session_id=session_id).reason == Reason.MALFORMED_SCALAR

    def test_wrong_player(self, proof):
        assert _verify(proof, player=OTHER_PLAYER).reason == Reason.HAND_SCHNORR_CHECK_FAILED

    def test_commit_mismatch(self, proof):
        assert _verify(proof, commit_hash=b"\x00" * 32).reason == Reason.COMMITMENT_MISMATCH

    def test_tampered_count(self, proof):
        bad = (6).to_bytes(4, "big") + proof[4:]
        assert _verify(bad).reason == Reason.HAND_CARD_COUNT_MISMATCH

    def test_count_above_max(self, proof):
        bad = (19).to_bytes(4, "big") + proof[4:]
        assert _verify(bad).reason == Reason.HAND_CARD_COUNT_MISMATCH


class TestEncodedInputs:
    def test_encoded_valid(self, proof):
        inputs = hand.encode_inputs(aggregate_commit_hash(HAND, BLINDINGS), TRICK, HAND, SESSION, PLAYER)
        assert hand.verify_encoded(inputs, proof).ok

    def test_encoded_short(self, proof):
        inputs = hand.encode_inputs(aggregate_commit_hash(HAND, BLINDINGS), TRICK, HAND, SESSION, PLAYER)
        assert hand.verify_encoded(inputs[:39], proof).reason == Reason.INPUTS_TOO_SHORT
        assert hand.verify_encoded(inputs[:64], proof).reason == Reason.EMPTY_PLAYER_ADDRESS
