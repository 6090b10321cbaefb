"""
Hashing and wire-encoding helpers.

Verifies:
- keccak256 known vector (empty input)
- big-endian u32 encoding and range checks
- player address encoding
- seed entropy threshold
"""

from __future__ import annotations

import pytest

from cangkul_zk.errors import MalformedInput
from cangkul_zk.hashing import (
    TAG_AGGREGATE,
    TAG_HASH_MODE,
    TAG_NULLIFIER,
    TAG_PEDERSEN,
    TAG_RING,
    b32,
    blake2s_seed_hash,
    from_hex,
    has_seed_entropy,
    keccak256,
    keccak_seed_hash,
    player_bytes,
    read_u32,
    to_hex32,
    u32_be,
)


class TestKeccak:
    def test_empty_vector(self):
        """keccak256("") matches the Ethereum reference value."""
        assert keccak256().hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"

    def test_concatenation(self):
        """Multiple parts hash as their concatenation."""
        assert keccak256(b"ab", b"cd") == keccak256(b"abcd")

    def test_seed_hash_modes_differ(self):
        """keccak and blake2s seed hashes are distinct 32-byte values."""
        seed = b"\x07" * 32
        assert len(keccak_seed_hash(seed)) == 32
        assert len(blake2s_seed_hash(seed)) == 32
        assert keccak_seed_hash(seed) != blake2s_seed_hash(seed)

    def test_seed_must_be_32_bytes(self):
        with pytest.raises(MalformedInput):
            keccak_seed_hash(b"\x01" * 31)

    def test_domain_tags_distinct(self):
        tags = {TAG_NULLIFIER, TAG_HASH_MODE, TAG_PEDERSEN, TAG_RING, TAG_AGGREGATE}
        assert len(tags) == 5
        assert all(len(t) == 4 for t in tags)


class TestIntegers:
    def test_u32_big_endian(self):
        assert u32_be(42) == b"\x00\x00\x00\x2a"
        assert u32_be(0xFFFFFFFF) == b"\xff\xff\xff\xff"

    def test_u32_range(self):
        with pytest.raises(MalformedInput):
            u32_be(-1)
        with pytest.raises(MalformedInput):
            u32_be(1 << 32)

    def test_read_u32(self):
        assert read_u32(b"\x00" + u32_be(0x01020304), 1) == 0x01020304


class TestPlayerAndHex:
    def test_player_utf8(self):
        assert player_bytes("GABC") == b"GABC"
        assert player_bytes(b"raw") == b"raw"

    def test_empty_player_rejected(self):
        with pytest.raises(MalformedInput):
            player_bytes("")

    def test_b32_length(self):
        with pytest.raises(MalformedInput):
            b32(b"\x00" * 33)

    def test_hex_roundtrip_with_prefix(self):
        v = bytes(range(32))
        assert from_hex(to_hex32(v)) == v
        assert from_hex(v.hex()) == v

    def test_bad_hex(self):
        with pytest.raises(MalformedInput):
            from_hex("0xzz")


class TestEntropy:
    def test_weak_seed_hash(self):
        """Fewer than 4 distinct byte values is weak."""
        assert not has_seed_entropy(b"\x01\x02\x03" * 10 + b"\x01\x02")
        assert not has_seed_entropy(b"\x00" * 32)

    def test_four_distinct_is_enough(self):
        assert has_seed_entropy(b"\x01\x02\x03\x04" * 8)
