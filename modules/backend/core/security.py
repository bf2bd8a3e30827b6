"""
Security Utilities.

At-rest encryption of note content.

Content is encrypted with AES-GCM under a single shared key taken from the
NOTE_ENCRYPTION_KEY secret. Each encryption draws a fresh 12-byte nonce,
stored in front of the ciphertext; the whole blob is base64 encoded so it
can live in a text column:

    base64( nonce[12] || ciphertext || tag[16] )

Usage:
    from modules.backend.core.security import ContentCipher

    cipher = ContentCipher(key="configured secret")
    token = cipher.encrypt("<b>hi</b>")
    cipher.decrypt(token)  # -> "<b>hi</b>"
"""

import base64
import binascii
import os
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from modules.backend.core.config import get_settings
from modules.backend.core.exceptions import CryptoError
from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

KEY_LENGTH = 16
NONCE_LENGTH = 12
TAG_LENGTH = 16


def normalize_key(key: str) -> bytes:
    """
    Fit a configured key to the AES-128 key length.

    Longer keys are truncated and shorter keys are padded with zero bytes,
    so any configured string is usable as a key.

    Args:
        key: Key as configured

    Returns:
        Exactly KEY_LENGTH bytes
    """
    raw = key.encode("utf-8")
    return raw[:KEY_LENGTH].ljust(KEY_LENGTH, b"\0")


class ContentCipher:
    """
    Symmetric cipher for note content.

    The key is fixed at construction and never rotated at runtime.
    """

    def __init__(self, key: str) -> None:
        self._aead = AESGCM(normalize_key(key))

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt plaintext into a base64 text token.

        Raises:
            CryptoError: If the content cannot be encrypted
        """
        try:
            nonce = os.urandom(NONCE_LENGTH)
            sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        except (UnicodeEncodeError, ValueError, OverflowError) as e:
            raise CryptoError("Content encryption failed") from e
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Decrypt a token produced by encrypt().

        Raises:
            CryptoError: If the token is not valid base64, is truncated,
                was produced under another key, or was tampered with
        """
        try:
            blob = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise CryptoError("Content decryption failed: malformed ciphertext") from e

        if len(blob) < NONCE_LENGTH + TAG_LENGTH:
            raise CryptoError("Content decryption failed: truncated ciphertext")

        nonce, sealed = blob[:NONCE_LENGTH], blob[NONCE_LENGTH:]
        try:
            return self._aead.decrypt(nonce, sealed, None).decode("utf-8")
        except InvalidTag as e:
            raise CryptoError("Content decryption failed: authentication failed") from e
        except UnicodeDecodeError as e:
            raise CryptoError("Content decryption failed: invalid plaintext") from e


@lru_cache
def get_content_cipher() -> ContentCipher:
    """Get the process-wide cipher built from the configured secret."""
    cipher = ContentCipher(get_settings().note_encryption_key)
    logger.debug("Content cipher initialized")
    return cipher
