"""AES-256-GCM codec for small JSON payloads carried in cookies.

Token layout is ``base64url(nonce || ciphertext || tag)`` without padding.
The GCM tag authenticates the whole payload, so any bit flip, truncation or
wrong key fails decryption.
"""

import base64
import binascii
import json
import os
import re
from typing import Any

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from peoplehub.core.exceptions import ConfigurationError

logger = structlog.get_logger()

KEY_BYTES = 32
NONCE_BYTES = 12
TAG_BYTES = 16

_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(token: str) -> bytes:
    padding = "=" * (-len(token) % 4)
    return base64.urlsafe_b64decode(token + padding)


class EncryptionCodec:
    """Authenticated symmetric encryption of JSON values."""

    def __init__(self, key: bytes) -> None:
        """Initialize with a raw 32-byte key.

        Args:
            key: AES-256 key.

        Raises:
            ConfigurationError: If the key is not 32 bytes.
        """
        if len(key) != KEY_BYTES:
            raise ConfigurationError(f"Encryption key must be {KEY_BYTES} bytes")
        self._aead = AESGCM(key)

    @classmethod
    def from_hex(cls, hex_key: str | None) -> "EncryptionCodec":
        """Build a codec from a 64 character hex string (``openssl rand -hex 32``).

        Raises:
            ConfigurationError: If the key is missing or malformed.
        """
        if not hex_key:
            raise ConfigurationError(
                "ENCRYPTION_KEY is not set. Generate one using: openssl rand -hex 32"
            )
        if not _HEX_KEY_RE.match(hex_key):
            raise ConfigurationError("ENCRYPTION_KEY must be 64 hexadecimal characters (32 bytes)")
        return cls(bytes.fromhex(hex_key))

    def encrypt(self, payload: Any) -> str:
        """Encrypt a JSON-serializable value into a URL-safe token."""
        plaintext = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        nonce = os.urandom(NONCE_BYTES)
        ciphertext = self._aead.encrypt(nonce, plaintext, None)
        return _b64encode(nonce + ciphertext)

    def decrypt(self, token: str | None) -> Any | None:
        """Decrypt a token produced by :meth:`encrypt`.

        Returns:
            The decoded JSON value, or None if the token is missing, malformed,
            tampered with, or was encrypted under another key.
        """
        if not token:
            return None
        try:
            raw = _b64decode(token)
            if len(raw) < NONCE_BYTES + TAG_BYTES + 1:
                return None
            nonce, ciphertext = raw[:NONCE_BYTES], raw[NONCE_BYTES:]
            plaintext = self._aead.decrypt(nonce, ciphertext, None)
            return json.loads(plaintext.decode("utf-8"))
        except (InvalidTag, binascii.Error, ValueError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.debug("token_decrypt_failed", error_type=type(e).__name__)
            return None
