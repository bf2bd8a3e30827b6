"""
Unit Tests for Content Encryption.

Tests the ContentCipher round trip, key normalization, and the
failure modes that must surface as CryptoError.
"""

import base64

import pytest

from modules.backend.core.exceptions import CryptoError
from modules.backend.core.security import (
    KEY_LENGTH,
    NONCE_LENGTH,
    TAG_LENGTH,
    ContentCipher,
    normalize_key,
)


class TestNormalizeKey:
    """Tests for key normalization."""

    def test_short_key_is_zero_padded(self):
        assert normalize_key("abc") == b"abc" + b"\0" * 13

    def test_long_key_is_truncated(self):
        assert normalize_key("x" * 40) == b"x" * KEY_LENGTH

    def test_exact_key_is_unchanged(self):
        assert normalize_key("0123456789abcdef") == b"0123456789abcdef"

    def test_multibyte_key_is_measured_in_bytes(self):
        assert len(normalize_key("ключ-ключ-ключ")) == KEY_LENGTH


class TestContentCipher:
    """Tests for ContentCipher."""

    def test_round_trip(self, cipher):
        html = "<p>Meet at <b>noon</b> ☕</p>"
        assert cipher.decrypt(cipher.encrypt(html)) == html

    def test_same_plaintext_encrypts_differently(self, cipher):
        """A fresh nonce per call means equal plaintexts give distinct tokens."""
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_token_layout(self, cipher):
        blob = base64.b64decode(cipher.encrypt("hello"))
        assert len(blob) == NONCE_LENGTH + len("hello") + TAG_LENGTH

    def test_token_is_not_plaintext(self, cipher):
        assert "secret" not in cipher.encrypt("secret")

    def test_keys_equal_after_normalization_are_interchangeable(self):
        token = ContentCipher("short").encrypt("hi")
        assert ContentCipher("short\0").decrypt(token) == "hi"

    def test_wrong_key_fails(self, cipher):
        token = cipher.encrypt("hi")
        with pytest.raises(CryptoError, match="authentication failed"):
            ContentCipher("another-key-9999").decrypt(token)

    def test_tampered_token_fails(self, cipher):
        blob = bytearray(base64.b64decode(cipher.encrypt("hello")))
        blob[-1] ^= 0x01
        with pytest.raises(CryptoError):
            cipher.decrypt(base64.b64encode(bytes(blob)).decode())

    def test_non_base64_fails(self, cipher):
        with pytest.raises(CryptoError, match="malformed"):
            cipher.decrypt("not base64 at all!")

    def test_truncated_token_fails(self, cipher):
        short = base64.b64encode(b"\0" * (NONCE_LENGTH + TAG_LENGTH - 1)).decode()
        with pytest.raises(CryptoError, match="truncated"):
            cipher.decrypt(short)

    def test_crypto_error_code(self, cipher):
        with pytest.raises(CryptoError) as exc_info:
            cipher.decrypt("%%%")
        assert exc_info.value.code == "SYS_CRYPTO_ERROR"
