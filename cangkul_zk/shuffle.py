"""
Verifiable shuffle from two revealed seed hashes.

    shuffle_seed = keccak256(seed_hash1 || seed_hash2 || session_id_be4)
    block_i      = keccak256(shuffle_seed || i_be8)          i = 0, 1, 2, ...

The block stream is read 8 bytes at a time as big-endian integers; indices
are drawn by rejection sampling so every value in [0, bound) is equally
likely. The deck [0..36) is Fisher-Yates shuffled back to front and dealt
5 / 5 / rest (draw pile). Anyone holding both seed hashes can recompute it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .cards import DECK_SIZE, HAND_SIZE
from .hashing import b32, keccak256, u32_be

_WORD = 8
_WORD_SPACE = 1 << (8 * _WORD)


def derive_shuffle_seed(seed_hash1: bytes, seed_hash2: bytes, session_id: int) -> bytes:
    return keccak256(b32(seed_hash1, "seed hash"), b32(seed_hash2, "seed hash"), u32_be(session_id))


class KeccakStream:
    """Deterministic keccak counter-mode stream."""

    def __init__(self, seed: bytes):
        self._seed = b32(seed, "shuffle seed")
        self._counter = 0
        self._buf = b""

    def read(self, n: int) -> bytes:
        while len(self._buf) < n:
            self._buf += keccak256(self._seed, self._counter.to_bytes(8, "big"))
            self._counter += 1
        out, self._buf = self._buf[:n], self._buf[n:]
        return out

    def below(self, bound: int) -> int:
        """Uniform integer in [0, bound)."""
        if bound <= 0:
            raise ValueError("bound must be positive")
        limit = _WORD_SPACE - (_WORD_SPACE % bound)
        while True:
            x = int.from_bytes(self.read(_WORD), "big")
            if x < limit:
                return x % bound


def shuffle_deck(seed: bytes, size: int = DECK_SIZE) -> List[int]:
    deck = list(range(size))
    stream = KeccakStream(seed)
    for idx in range(size - 1, 0, -1):
        j = stream.below(idx + 1)
        deck[idx], deck[j] = deck[j], deck[idx]
    return deck


@dataclass(frozen=True)
class Deal:
    hand1: Tuple[int, ...]
    hand2: Tuple[int, ...]
    draw_pile: Tuple[int, ...]

    @property
    def deck(self) -> List[int]:
        return list(self.hand1 + self.hand2 + self.draw_pile)


def deal(deck: List[int], hand_size: int = HAND_SIZE) -> Deal:
    return Deal(
        hand1=tuple(deck[:hand_size]),
        hand2=tuple(deck[hand_size:2 * hand_size]),
        draw_pile=tuple(deck[2 * hand_size:]),
    )


def shuffle_and_deal(seed_hash1: bytes, seed_hash2: bytes, session_id: int) -> Deal:
    return deal(shuffle_deck(derive_shuffle_seed(seed_hash1, seed_hash2, session_id)))
