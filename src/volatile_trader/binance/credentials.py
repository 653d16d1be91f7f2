"""XOR + hex credential cipher for stored Binance API keys.

Kept byte-compatible with rows written by earlier deployments. This is
obfuscation, not encryption: anyone holding the key can reverse it.
"""

from __future__ import annotations

from volatile_trader.errors import CredentialCipherError


class CredentialCipher:
    def __init__(self, key: str) -> None:
        if not key:
            raise CredentialCipherError("Encryption key must not be empty")
        self._key = key.encode("utf-8")

    def encrypt(self, text: str) -> str:
        data = text.encode("utf-8")
        return self._xor(data).hex()

    def decrypt(self, encrypted: str) -> str:
        try:
            data = bytes.fromhex(encrypted)
        except ValueError as e:
            raise CredentialCipherError(f"Malformed encrypted credential: {e}") from e
        try:
            return self._xor(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise CredentialCipherError("Credential does not decrypt with this key") from e

    def _xor(self, data: bytes) -> bytes:
        key = self._key
        return bytes(b ^ key[i % len(key)] for i, b in enumerate(data))
