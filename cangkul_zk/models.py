from __future__ import annotations

import time
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from cangkul_zk import SUPPORTED_SCHEMAS, __schema__

from .cards import CANNOT_FOLLOW_SENTINEL, DECK_SIZE


class ProofMode(str, Enum):
    """
    How a seed commitment is bound and later proven.

    - NIZK: keccak seed hash, 64-byte hash proof
    - PEDERSEN: keccak seed hash, 224-byte Pedersen/Schnorr proof
    - NOIR: blake2s seed hash, external circuit proof
    """
    NIZK = "nizk"
    PEDERSEN = "pedersen"
    NOIR = "noir"


def now_utc() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _hex32(v: str) -> str:
    s = v[2:] if v.startswith(("0x", "0X")) else v
    try:
        raw = bytes.fromhex(s)
    except ValueError as exc:
        raise ValueError(f"invalid hex: {exc}") from exc
    if len(raw) != 32:
        raise ValueError("expected 32-byte hex value")
    return raw.hex()


def _supported_schema(v: str) -> str:
    if v not in SUPPORTED_SCHEMAS:
        raise ValueError(f"Unsupported schema '{v}'. Supported: {SUPPORTED_SCHEMAS}")
    return v


class SeedSecret(BaseModel):
    """Pending seed secret, persisted between commit and reveal."""
    kind: Literal["SeedSecret"] = "SeedSecret"
    schema_version: str = Field(default=__schema__, alias="schema")
    created_utc: str = Field(default_factory=now_utc)
    seed: str  # hex
    blinding: str  # hex
    proof_mode: ProofMode = Field(default=ProofMode.PEDERSEN, alias="proofMode")

    model_config = {"populate_by_name": True}

    @field_validator("schema_version")
    @classmethod
    def check_schema(cls, v: str) -> str:
        return _supported_schema(v)

    @field_validator("seed", "blinding")
    @classmethod
    def check_hex(cls, v: str) -> str:
        return _hex32(v)

    @classmethod
    def from_bytes(cls, seed: bytes, blinding: bytes, mode: ProofMode = ProofMode.PEDERSEN) -> SeedSecret:
        return cls(seed=seed.hex(), blinding=blinding.hex(), proof_mode=mode)

    def seed_bytes(self) -> bytes:
        return bytes.fromhex(self.seed)

    def blinding_bytes(self) -> bytes:
        return bytes.fromhex(self.blinding)


class PlayCommitSecret(BaseModel):
    """
    Pending play secret for one move.

    salt is the legacy hash salt, the Pedersen blinding (zk_mode) or, for a
    zk "cannot follow" declaration, the aggregate blinding r_agg.
    """
    kind: Literal["PlayCommitSecret"] = "PlayCommitSecret"
    schema_version: str = Field(default=__schema__, alias="schema")
    created_utc: str = Field(default_factory=now_utc)
    card_id: int = Field(alias="cardId")
    salt: str  # hex
    zk_mode: bool = Field(default=False, alias="zkMode")

    model_config = {"populate_by_name": True}

    @field_validator("schema_version")
    @classmethod
    def check_schema(cls, v: str) -> str:
        return _supported_schema(v)

    @field_validator("salt")
    @classmethod
    def check_salt(cls, v: str) -> str:
        return _hex32(v)

    @field_validator("card_id")
    @classmethod
    def check_card(cls, v: int) -> int:
        if v != CANNOT_FOLLOW_SENTINEL and not (0 <= v < DECK_SIZE):
            raise ValueError(f"card_id out of range: {v}")
        return v

    def salt_bytes(self) -> bytes:
        return bytes.fromhex(self.salt)

    @property
    def is_cannot_follow(self) -> bool:
        return self.card_id == CANNOT_FOLLOW_SENTINEL
