"""
Sealed persistence for pending seed and play secrets.

A secret must survive between commit and reveal or the player can never
reveal. SecretStore writes every value to a primary and an optional backup
backend and reads the primary first.
"""

from __future__ import annotations

import hashlib
import logging
import os
from threading import Lock
from typing import Dict, List, Optional, Protocol, Type, TypeVar

from cryptography.exceptions import InvalidTag
from pydantic import BaseModel, ValidationError

from cangkul_zk.models import PlayCommitSecret, SeedSecret

from .crypto import open_entry, seal_entry

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def seed_key(session_id: int, player: str) -> str:
    return f"cangkulan-seed:{session_id}:{player}"


def play_key(session_id: int, player: str) -> str:
    return f"cangkulan-play-commit:{session_id}:{player}"


class SecretBackend(Protocol):
    def put(self, key: str, blob: bytes) -> None:
        ...

    def get(self, key: str) -> Optional[bytes]:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryBackend:
    """In-process backend (tests, single-run CLI use)."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = Lock()

    def put(self, key: str, blob: bytes) -> None:
        with self._lock:
            self._data[key] = blob

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class FileBackend:
    """One sealed file per key; file names are hashed so keys never hit the filesystem."""

    def __init__(self, dirpath: str):
        self.dirpath = dirpath
        os.makedirs(dirpath, exist_ok=True)

    def _path(self, key: str) -> str:
        name = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.dirpath, f"{name}.sealed")

    def put(self, key: str, blob: bytes) -> None:
        path = self._path(key)
        tmp = path + ".tmp"
        with open(tmp, "wb") as f:
            f.write(blob)
        os.replace(tmp, path)

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "rb") as f:
            return f.read()

    def delete(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass


class StoreWriteError(RuntimeError):
    """No backend accepted a write."""
    pass


class SecretStore:
    def __init__(self, master_key: bytes, primary: SecretBackend, backup: Optional[SecretBackend] = None):
        if len(master_key) != 32:
            raise ValueError("master key must be 32 bytes")
        self._master_key = master_key
        self.backends: List[SecretBackend] = [primary] if backup is None else [primary, backup]

    def _put(self, key: str, model: BaseModel) -> None:
        blob = seal_entry(self._master_key, key, model.model_dump_json(by_alias=True).encode("utf-8"))
        written = 0
        for backend in self.backends:
            try:
                backend.put(key, blob)
                written += 1
            except OSError as exc:
                logger.warning(f"secret backend {type(backend).__name__} rejected write: {exc}")
        if not written:
            raise StoreWriteError("secret could not be persisted to any backend")

    def _load(self, key: str, model: Type[M]) -> Optional[M]:
        for backend in self.backends:
            try:
                blob = backend.get(key)
            except OSError as exc:
                logger.warning(f"secret backend {type(backend).__name__} read failed: {exc}")
                continue
            if blob is None:
                continue
            try:
                return model.model_validate_json(open_entry(self._master_key, key, blob))
            except (InvalidTag, ValueError, ValidationError) as exc:
                logger.warning(f"stored {model.__name__} unreadable in {type(backend).__name__}: {type(exc).__name__}")
        return None

    def _clear(self, key: str) -> None:
        for backend in self.backends:
            try:
                backend.delete(key)
            except OSError as exc:
                logger.warning(f"secret backend {type(backend).__name__} delete failed: {exc}")

    def put_seed(self, session_id: int, player: str, secret: SeedSecret) -> None:
        self._put(seed_key(session_id, player), secret)

    def load_seed(self, session_id: int, player: str) -> Optional[SeedSecret]:
        return self._load(seed_key(session_id, player), SeedSecret)

    def clear_seed(self, session_id: int, player: str) -> None:
        self._clear(seed_key(session_id, player))

    def put_play(self, session_id: int, player: str, secret: PlayCommitSecret) -> None:
        self._put(play_key(session_id, player), secret)

    def load_play(self, session_id: int, player: str) -> Optional[PlayCommitSecret]:
        return self._load(play_key(session_id, player), PlayCommitSecret)

    def clear_play(self, session_id: int, player: str) -> None:
        self._clear(play_key(session_id, player))
