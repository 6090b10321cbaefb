"""
Randomness sources.

Verifies:
- HMAC-DRBG determinism and personalization separation
- consecutive reads never repeat
- scalar sampling stays in [1, r)
- blindings never reduce to zero
"""

from __future__ import annotations

from cangkul_zk.curve import ORDER
from cangkul_zk.rng import (
    HmacDrbgRandom,
    SystemRandom,
    default_random,
    random_blinding,
    random_scalar,
    random_secret,
)


class ZeroThenOnes:
    """Yields an all-zero block first, then 0x01 bytes."""

    def __init__(self):
        self.calls = 0

    def random_bytes(self, n: int) -> bytes:
        self.calls += 1
        return b"\x00" * n if self.calls == 1 else b"\x01" * n


class OrderThenTwo:
    """Yields r as 32 bytes (a zero blinding) first."""

    def __init__(self):
        self.calls = 0

    def random_bytes(self, n: int) -> bytes:
        self.calls += 1
        return ORDER.to_bytes(32, "big") if self.calls == 1 else (2).to_bytes(32, "big")


class TestHmacDrbg:
    def test_determinism(self):
        assert HmacDrbgRandom(b"seed").random_bytes(64) == HmacDrbgRandom(b"seed").random_bytes(64)

    def test_personalization(self):
        a = HmacDrbgRandom(b"seed", b"nonce").random_bytes(32)
        b = HmacDrbgRandom(b"seed", b"blinding").random_bytes(32)
        assert a != b

    def test_state_advances(self):
        d = HmacDrbgRandom(b"seed")
        assert d.random_bytes(32) != d.random_bytes(32)

    def test_lengths(self):
        d = HmacDrbgRandom(b"seed")
        assert len(d.random_bytes(1)) == 1
        assert len(d.random_bytes(100)) == 100


class TestSampling:
    def test_scalar_rejects_zero(self):
        src = ZeroThenOnes()
        k = random_scalar(src)
        assert k == int.from_bytes(b"\x01" * 32, "big")
        assert src.calls == 2

    def test_scalar_range(self):
        d = HmacDrbgRandom(b"range")
        for _ in range(20):
            assert 1 <= random_scalar(d) < ORDER

    def test_blinding_never_zero_mod_order(self):
        src = OrderThenTwo()
        assert random_blinding(src) == (2).to_bytes(32, "big")

    def test_secret_size(self):
        assert len(random_secret(SystemRandom())) == 32

    def test_default_is_system(self):
        assert isinstance(default_random(), SystemRandom)
