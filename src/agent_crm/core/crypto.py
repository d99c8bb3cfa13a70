"""AES-256-GCM protection for resident registration numbers."""

from __future__ import annotations

import base64
import hashlib
import os
from dataclasses import dataclass

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12
KEY_SIZE = 32


@dataclass
class CryptoService:
    """Encrypts and decrypts text using AES-256-GCM."""

    key: bytes

    @classmethod
    def from_base64_key(cls, key_b64: str) -> "CryptoService":
        key = base64.urlsafe_b64decode(key_b64.encode("utf-8"))
        if len(key) != KEY_SIZE:
            raise RuntimeError("Encryption key must decode to 32 bytes for AES-256.")
        return cls(key=key)

    @staticmethod
    def generate_base64_key() -> str:
        return base64.urlsafe_b64encode(os.urandom(KEY_SIZE)).decode("utf-8")

    def encrypt_text(self, plain_text: str, associated_data: bytes | None = None) -> bytes:
        """Encrypt UTF-8 text and return nonce+ciphertext bytes."""
        nonce = os.urandom(NONCE_SIZE)
        return nonce + AESGCM(self.key).encrypt(nonce, plain_text.encode("utf-8"), associated_data)

    def decrypt_text(self, encrypted: bytes, associated_data: bytes | None = None) -> str:
        """Decrypt nonce+ciphertext bytes into UTF-8 text."""
        nonce, cipher_text = encrypted[:NONCE_SIZE], encrypted[NONCE_SIZE:]
        return AESGCM(self.key).decrypt(nonce, cipher_text, associated_data).decode("utf-8")

    def encrypt_resident_id(self, digits: str, client_id: int) -> bytes:
        """Encrypt an RRN bound to its client row."""
        return self.encrypt_text(digits, _client_aad(client_id))

    def decrypt_resident_id(self, encrypted: bytes, client_id: int) -> str:
        return self.decrypt_text(encrypted, _client_aad(client_id))


def _client_aad(client_id: int) -> bytes:
    return f"client:{client_id}".encode("utf-8")


def fingerprint(value: str) -> str:
    """SHA-256 hex digest used for duplicate detection without storing plain text."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
