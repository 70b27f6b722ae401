"""Symmetric encryption of chat message bodies."""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from projectflow_chat.core.settings import settings

logger = logging.getLogger(__name__)

TOKEN_VERSION = b"\x01"
SALT_BYTES = 16
NONCE_BYTES = 12
KEY_BYTES = 32
_HKDF_INFO = b"projectflow-chat/message-body"
# version + salt + nonce + at least the 16-byte GCM tag
_MIN_TOKEN_BYTES = len(TOKEN_VERSION) + SALT_BYTES + NONCE_BYTES + 16


class MessageCipher:
    """Encrypts and decrypts message bodies under a shared secret.

    Every call to :meth:`encrypt` draws a fresh salt and nonce, so encrypting
    the same text twice yields different tokens. Tokens are URL-safe base64 of
    ``version | salt | nonce | ciphertext+tag``.

    Neither method raises on cipher trouble: failures are logged and reported
    as ``None`` so callers can fall back to the stored plaintext.
    """

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Encryption secret must not be empty")
        self._secret = secret.encode("utf-8")

    def _derive_key(self, salt: bytes) -> bytes:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=KEY_BYTES,
            salt=salt,
            info=_HKDF_INFO,
        )
        return hkdf.derive(self._secret)

    def encrypt(self, plaintext: str) -> str | None:
        """Encrypt a message body.

        Args:
            plaintext: Message text as authored

        Returns:
            Encoded token, or None if encryption failed
        """
        try:
            salt = secrets.token_bytes(SALT_BYTES)
            nonce = secrets.token_bytes(NONCE_BYTES)
            sealed = AESGCM(self._derive_key(salt)).encrypt(
                nonce, plaintext.encode("utf-8"), TOKEN_VERSION
            )
        except (TypeError, ValueError, OverflowError, AttributeError) as err:
            logger.warning("Message encryption failed: %s", type(err).__name__)
            return None
        return base64.urlsafe_b64encode(TOKEN_VERSION + salt + nonce + sealed).decode("ascii")

    def decrypt(self, token: str) -> str | None:
        """Decrypt a token produced by :meth:`encrypt`.

        Args:
            token: Encoded ciphertext

        Returns:
            The original text, or None if the token is malformed or was
            produced under a different secret
        """
        try:
            raw = base64.urlsafe_b64decode(token.encode("ascii"))
        except (binascii.Error, ValueError, AttributeError, UnicodeEncodeError):
            logger.warning("Message decryption failed: token is not valid base64")
            return None

        if len(raw) < _MIN_TOKEN_BYTES or raw[:1] != TOKEN_VERSION:
            logger.warning("Message decryption failed: unrecognised token layout")
            return None

        offset = len(TOKEN_VERSION)
        salt = raw[offset:offset + SALT_BYTES]
        nonce = raw[offset + SALT_BYTES:offset + SALT_BYTES + NONCE_BYTES]
        sealed = raw[offset + SALT_BYTES + NONCE_BYTES:]
        try:
            plaintext = AESGCM(self._derive_key(salt)).decrypt(nonce, sealed, TOKEN_VERSION)
            return plaintext.decode("utf-8")
        except (InvalidTag, ValueError) as err:
            logger.warning("Message decryption failed: %s", type(err).__name__)
            return None


@lru_cache(maxsize=1)
def get_message_cipher() -> MessageCipher:
    """Return the process-wide cipher keyed by the configured secret."""
    return MessageCipher(settings.encryption_secret)
