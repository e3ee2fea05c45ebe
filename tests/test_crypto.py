"""
敏感数据加密测试
Crypto Tests
"""

import base64

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from easyvinted.core.crypto import decrypt_value, encrypt_value, ensure_decrypted, is_encrypted
from easyvinted.core.error_handler import ConfigError
from easyvinted.modules.listing.models import Credentials


class TestCrypto:

    def test_encrypt_and_decrypt(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "unit-test-key")
        token = encrypt_value("hunter2")

        assert is_encrypted(token)
        assert token != "hunter2"
        assert decrypt_value(token) == "hunter2"

    def test_plain_value_passes_through(self, monkeypatch):
        monkeypatch.delenv("ENCRYPTION_KEY", raising=False)
        assert ensure_decrypted("hunter2") == "hunter2"
        assert ensure_decrypted("") == ""

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("ENCRYPTION_KEY", raising=False)
        with pytest.raises(ConfigError):
            encrypt_value("hunter2")

    def test_wrong_key(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "key-one")
        token = encrypt_value("hunter2")
        monkeypatch.setenv("ENCRYPTION_KEY", "key-two")

        with pytest.raises(ConfigError):
            decrypt_value(token)

    def test_credentials_decrypt_on_use(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "unit-test-key")
        credentials = Credentials(email="seller@example.com", password=encrypt_value("hunter2"))

        assert credentials.plain_password == "hunter2"


def gcm_ciphertext(plaintext, passphrase, salt=b"s" * 16, iv=b"i" * 12):
    """salt|iv|AES-GCM 密文，与后台加密函数的输出格式一致"""
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=100_000)
    data = AESGCM(kdf.derive(passphrase.encode("utf-8"))).encrypt(iv, plaintext.encode("utf-8"), None)
    return base64.b64encode(salt + iv + data).decode("ascii")


class TestStoredPasswordFormat:

    def test_decrypts_salted_gcm_ciphertext(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "shared-key")
        token = gcm_ciphertext("secret", "shared-key")

        assert is_encrypted(token)
        assert decrypt_value(token) == "secret"

    def test_credentials_use_decrypted_password(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "shared-key")
        credentials = Credentials(email="seller@example.com", password=gcm_ciphertext("secret", "shared-key"))

        assert credentials.plain_password == "secret"

    def test_wrong_key(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "other-key")

        with pytest.raises(ConfigError):
            ensure_decrypted(gcm_ciphertext("secret", "shared-key"))

    def test_short_base64_password_is_plaintext(self, monkeypatch):
        monkeypatch.delenv("ENCRYPTION_KEY", raising=False)
        assert not is_encrypted("Summer2024")
        assert ensure_decrypted("Summer2024") == "Summer2024"
