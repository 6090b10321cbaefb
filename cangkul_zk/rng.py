"""
Randomness sources for secrets, nonces and simulated ring branches.

Proof builders take a RandomSource instead of reaching for a global, so tests
can substitute a deterministic stream without touching proof logic.

- SystemRandom: os.urandom, safe to share between threads
- HmacDrbgRandom: deterministic HMAC-SHA256 DRBG built from the RFC6979
  section 3.2 K/V chain; reproducible vectors only, never for real games

Scalar sampling uses rejection (never k % r) so nonces carry no modulo bias.

References:
- RFC6979: https://datatracker.ietf.org/doc/html/rfc6979
"""

from __future__ import annotations

import hashlib
import hmac
import os
import threading
from typing import Protocol

from .curve import ORDER, SCALAR_SIZE


class RandomSource(Protocol):
    def random_bytes(self, n: int) -> bytes:
        ...


class SystemRandom:
    """Operating system CSPRNG."""

    def random_bytes(self, n: int) -> bytes:
        return os.urandom(n)


def _hmac_sha256(key: bytes, data: bytes) -> bytes:
    """HMAC-SHA256 as specified in RFC6979."""
    return hmac.new(key, data, hashlib.sha256).digest()


class HmacDrbgRandom:
    """
    Deterministic byte stream from (seed, personalization).

    Args:
        seed: Entropy input; same seed -> same stream
        personalization: Optional domain separation data, hashed to 32 bytes
            and mixed into the initial K/V state

    Note:
        Calls are serialized with a lock so one instance can be shared, but
        the stream then depends on call interleaving. Use one instance per
        caller when reproducibility matters.
    """

    def __init__(self, seed: bytes, personalization: bytes = b"") -> None:
        holen = hashlib.sha256().digest_size
        extra_h = hashlib.sha256(personalization).digest() if personalization else b""

        V = b"\x01" * holen
        K = b"\x00" * holen
        K = _hmac_sha256(K, V + b"\x00" + seed + extra_h)
        V = _hmac_sha256(K, V)
        K = _hmac_sha256(K, V + b"\x01" + seed + extra_h)
        V = _hmac_sha256(K, V)

        self._K = K
        self._V = V
        self._lock = threading.Lock()

    def random_bytes(self, n: int) -> bytes:
        with self._lock:
            T = b""
            while len(T) < n:
                self._V = _hmac_sha256(self._K, self._V)
                T += self._V
            # Advance state so consecutive calls never overlap
            self._K = _hmac_sha256(self._K, self._V + b"\x00")
            self._V = _hmac_sha256(self._K, self._V)
            return T[:n]


_SYSTEM = SystemRandom()


def default_random() -> RandomSource:
    return _SYSTEM


def random_scalar(rng: RandomSource) -> int:
    """Uniform scalar in [1, r-1] by rejection sampling."""
    while True:
        k = int.from_bytes(rng.random_bytes(SCALAR_SIZE), "big")
        if 1 <= k < ORDER:
            return k


def random_secret(rng: RandomSource) -> bytes:
    """32 random bytes (seed, salt)."""
    return rng.random_bytes(32)


def random_blinding(rng: RandomSource) -> bytes:
    """32-byte blinding whose reduction mod r is non-zero."""
    while True:
        blinding = rng.random_bytes(32)
        if int.from_bytes(blinding, "big") % ORDER:
            return blinding
