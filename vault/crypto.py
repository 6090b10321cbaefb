from __future__ import annotations

import binascii
import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

SCHEME_V1 = 0x01
NONCE_SIZE = 12


def new_key() -> bytes:
    return os.urandom(32)

def key_to_hex(k: bytes) -> str:
    return binascii.hexlify(k).decode()

def key_from_hex(s: str) -> bytes:
    return binascii.unhexlify(s.strip())

def derive_entry_key(master_key: bytes, storage_key: str) -> bytes:
    """Per-entry key: HKDF-SHA256(master, info = scheme label | storage key)."""
    if len(master_key) != 32:
        raise ValueError("master key must be 32 bytes")
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=b"cangkul-zk/vault|" + storage_key.encode("utf-8"),
    )
    return hkdf.derive(master_key)

def seal_bytes(key: bytes, plaintext: bytes, aad: bytes) -> bytes:
    """
    Encrypt with ChaCha20-Poly1305 AEAD.

    Scheme: chacha20poly1305-v1
    - version(1) || nonce(12) || ciphertext+tag
    - 96-bit random nonce per seal; keys are per entry
    - AAD binding prevents moving a sealed value to another storage key
    """
    aead = ChaCha20Poly1305(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = aead.encrypt(nonce, plaintext, aad)
    return bytes([SCHEME_V1]) + nonce + ct

def open_bytes(key: bytes, blob: bytes, aad: bytes) -> bytes:
    """Decrypt with ChaCha20-Poly1305 AEAD."""
    if not blob or blob[0] != SCHEME_V1:
        raise ValueError("unknown sealed-value scheme")
    aead = ChaCha20Poly1305(key)
    nonce, ct = blob[1:1 + NONCE_SIZE], blob[1 + NONCE_SIZE:]
    return aead.decrypt(nonce, ct, aad)

def seal_entry(master_key: bytes, storage_key: str, plaintext: bytes) -> bytes:
    aad = storage_key.encode("utf-8")
    return seal_bytes(derive_entry_key(master_key, storage_key), plaintext, aad)

def open_entry(master_key: bytes, storage_key: str, blob: bytes) -> bytes:
    aad = storage_key.encode("utf-8")
    return open_bytes(derive_entry_key(master_key, storage_key), blob, aad)
