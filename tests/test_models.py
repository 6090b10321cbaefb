"""Persisted secret models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cangkul_zk import __schema__
from cangkul_zk.cards import CANNOT_FOLLOW_SENTINEL
from cangkul_zk.models import PlayCommitSecret, ProofMode, SeedSecret


class TestSeedSecret:
    def test_json_uses_aliases(self):
        s = SeedSecret.from_bytes(b"\x01" * 32, b"\x02" * 32, ProofMode.NOIR)
        data = s.model_dump(by_alias=True)
        assert data["proofMode"] == "noir"
        assert data["schema"] == __schema__
        assert SeedSecret.model_validate_json(s.model_dump_json(by_alias=True)) == s

    def test_hex_normalized(self):
        s = SeedSecret(seed="0x" + "AB" * 32, blinding="cd" * 32)
        assert s.seed == "ab" * 32
        assert s.proof_mode == ProofMode.PEDERSEN

    def test_bad_hex(self):
        with pytest.raises(ValidationError):
            SeedSecret(seed="ab" * 31, blinding="cd" * 32)

    def test_unsupported_schema_rejected(self):
        """Secrets written under an unknown schema are refused on load."""
        data = SeedSecret.from_bytes(b"\x01" * 32, b"\x02" * 32).model_dump(by_alias=True)
        data["schema"] = "cangkul-zk/v0"
        with pytest.raises(ValidationError):
            SeedSecret.model_validate(data)


class TestPlayCommitSecret:
    def test_sentinel_allowed(self):
        p = PlayCommitSecret(cardId=CANNOT_FOLLOW_SENTINEL, salt="00" * 32, zkMode=True)
        assert p.is_cannot_follow

    def test_card_range(self):
        with pytest.raises(ValidationError):
            PlayCommitSecret(card_id=36, salt="00" * 32)

    def test_unsupported_schema_rejected(self):
        with pytest.raises(ValidationError):
            PlayCommitSecret(card_id=3, salt="ff" * 32, schema="other/v9")

    def test_salt_bytes(self):
        assert PlayCommitSecret(card_id=3, salt="ff" * 32).salt_bytes() == b"\xff" * 32
