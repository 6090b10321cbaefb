"""
Runtime configuration with fail-closed defaults.

Environment variables:
- CANGKUL_RING_MAX_SIZE: largest accepted ring set (default: 9, one suit)
- CANGKUL_HAND_MAX_SIZE: largest hand an aggregate proof may cover (default: 18)
- CANGKUL_CIRCUIT_MIN_PROOF: proofs longer than this go to the circuit verifier (default: 4000)
- CANGKUL_STRICT_CIRCUIT: reject circuit proofs when no verifier is wired (default: true)
- CANGKUL_VAULT_DIR: directory for sealed secrets (default: ./vault_data)
- CANGKUL_STORE_KEY: 32-byte hex master key for sealed secrets
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .hashing import from_hex


def _opt(name: str, default: str) -> str:
    """Get optional environment variable with default."""
    return os.getenv(name, default)


def _opt_bool(name: str, default: bool) -> bool:
    """Parse boolean environment variable."""
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _opt_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v.strip())
    except ValueError as exc:
        raise RuntimeError(f"Env var {name} must be an integer, got {v!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Verifier and storage configuration."""

    RING_MAX_SIZE: int = 9
    HAND_MAX_SIZE: int = 18
    CIRCUIT_MIN_PROOF: int = 4000

    # Fail-closed behavior (default: strict)
    STRICT_CIRCUIT: bool = True

    VAULT_DIR: str = "vault_data"
    STORE_KEY_HEX: str = ""

    def __post_init__(self) -> None:
        if self.RING_MAX_SIZE < 1:
            raise RuntimeError("RING_MAX_SIZE must be at least 1")
        if self.HAND_MAX_SIZE < 1:
            raise RuntimeError("HAND_MAX_SIZE must be at least 1")
        if self.CIRCUIT_MIN_PROOF < 228:
            raise RuntimeError("CIRCUIT_MIN_PROOF must exceed every fixed proof size")

    @property
    def store_key(self) -> Optional[bytes]:
        """Master key bytes, or None when unset."""
        if not self.STORE_KEY_HEX:
            return None
        key = from_hex(self.STORE_KEY_HEX)
        if len(key) != 32:
            raise RuntimeError("CANGKUL_STORE_KEY must be 32 bytes of hex")
        return key

    @staticmethod
    def load() -> Settings:
        """Load settings from environment variables."""
        return Settings(
            RING_MAX_SIZE=_opt_int("CANGKUL_RING_MAX_SIZE", 9),
            HAND_MAX_SIZE=_opt_int("CANGKUL_HAND_MAX_SIZE", 18),
            CIRCUIT_MIN_PROOF=_opt_int("CANGKUL_CIRCUIT_MIN_PROOF", 4000),
            STRICT_CIRCUIT=_opt_bool("CANGKUL_STRICT_CIRCUIT", True),
            VAULT_DIR=_opt("CANGKUL_VAULT_DIR", "vault_data"),
            STORE_KEY_HEX=_opt("CANGKUL_STORE_KEY", ""),
        )
