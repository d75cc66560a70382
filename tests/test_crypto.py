"""Tests for encryption helpers."""

import pytest

from prakan_app.core.crypto import CryptoService


def test_encrypt_decrypt_round_trip() -> None:
    key = CryptoService.generate_base64_key()
    crypto = CryptoService.from_base64_key(key)

    cipher = crypto.encrypt_text('[{"cust_name": "สมชาย"}]')
    plain = crypto.decrypt_text(cipher)

    assert plain == '[{"cust_name": "สมชาย"}]'


def test_decrypt_with_wrong_key_fails() -> None:
    cipher = CryptoService.from_base64_key(CryptoService.generate_base64_key()).encrypt_text("data")
    other = CryptoService.from_base64_key(CryptoService.generate_base64_key())

    with pytest.raises(ValueError):
        other.decrypt_text(cipher)
    with pytest.raises(ValueError):
        other.decrypt_text(b"short")


def test_key_must_be_32_bytes() -> None:
    with pytest.raises(RuntimeError):
        CryptoService.from_base64_key("c2hvcnQ=")
