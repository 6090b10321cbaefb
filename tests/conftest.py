from __future__ import annotations

import pytest

from cangkul_zk.hashing import keccak256
from cangkul_zk.rng import HmacDrbgRandom

PLAYER = "GAPLAYERONEXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"
OTHER_PLAYER = "GAPLAYERTWOXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"

# Fixed Schnorr vector inputs
SEED_HASH_AA = keccak256(b"\xaa" * 32)
BLINDING_BB = b"\xbb" * 32
SESSION = 42


@pytest.fixture
def rng():
    """Deterministic randomness so proofs are reproducible across runs."""
    return HmacDrbgRandom(b"cangkul-zk test vectors")


@pytest.fixture
def player():
    return PLAYER
