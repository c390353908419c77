"""Encryption of custodial wallet secrets at rest."""

from __future__ import annotations

import os
from typing import Protocol

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

KEY_LENGTH = 32
IV_LENGTH = 16


class SecretStoreError(RuntimeError):
    """Raised when a secret cannot be encrypted or decrypted."""


class SecretStore(Protocol):
    def encrypt(self, plaintext: bytes) -> str: ...

    def decrypt(self, blob: str) -> bytes: ...


def derive_key(secret: str) -> bytes:
    """Truncate or zero-pad the configured secret to a 256-bit key."""

    raw = secret.encode("utf-8")
    return raw[:KEY_LENGTH].ljust(KEY_LENGTH, b"\x00")


class AesCbcSecretStore:
    """AES-256-CBC with PKCS7 padding, serialised as ``ivHex:cipherHex``."""

    def __init__(self, secret: str | None) -> None:
        if not secret:
            raise SecretStoreError("Encryption key is not configured")
        self._key = derive_key(secret)

    def encrypt(self, plaintext: bytes) -> str:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, blob: str) -> bytes:
        iv_hex, sep, cipher_hex = blob.partition(":")
        if not sep:
            raise SecretStoreError("Malformed encrypted secret")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(cipher_hex)
        except ValueError as exc:
            raise SecretStoreError("Malformed encrypted secret") from exc
        if len(iv) != IV_LENGTH:
            raise SecretStoreError("Malformed encrypted secret")
        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        try:
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            raise SecretStoreError("Unable to decrypt secret") from exc


__all__ = ["AesCbcSecretStore", "SecretStore", "SecretStoreError", "derive_key"]
