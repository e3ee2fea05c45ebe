"""
敏感数据加密模块
Sensitive Data Encryption

平台密码可以以密文形式保存（vinted_password_encrypted），发布前在此解密。
支持两种密文，密钥都来自环境变量 ENCRYPTION_KEY：

- Fernet 令牌（以 gAAAAA 开头），由 encrypt_value 生成
- base64(salt16 | iv12 | AES-GCM 密文)，密钥为 PBKDF2-SHA256(ENCRYPTION_KEY, salt, 100000 次)，
  即后台 encrypt-password 函数写入的格式
"""

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from easyvinted.core.error_handler import ConfigError

_KEY_ENV = "ENCRYPTION_KEY"
_FERNET_PREFIX = "gAAAAA"

GCM_SALT_BYTES = 16
GCM_IV_BYTES = 12
GCM_TAG_BYTES = 16
GCM_ITERATIONS = 100_000


def _derive_key(passphrase: str) -> bytes:
    """从口令派生 32 字节 Fernet 密钥"""
    digest = hashlib.sha256(passphrase.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def _derive_gcm_key(passphrase: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=GCM_ITERATIONS)
    return kdf.derive(passphrase.encode("utf-8"))


def _get_passphrase() -> str:
    passphrase = os.getenv(_KEY_ENV, "")
    if not passphrase:
        raise ConfigError(f"{_KEY_ENV} is not set, cannot handle encrypted credentials")
    return passphrase


def _gcm_payload(value: str) -> bytes:
    """按 salt|iv|密文 格式解码；不符合时返回空串"""
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return b""
    if len(raw) <= GCM_SALT_BYTES + GCM_IV_BYTES + GCM_TAG_BYTES:
        return b""
    return raw


def encrypt_value(plaintext: str) -> str:
    """加密字符串，返回 Fernet 令牌"""
    return Fernet(_derive_key(_get_passphrase())).encrypt(plaintext.encode("utf-8")).decode("utf-8")


def decrypt_value(ciphertext: str) -> str:
    """解密 Fernet 令牌或 AES-GCM 密文，返回明文"""
    passphrase = _get_passphrase()

    if ciphertext.startswith(_FERNET_PREFIX):
        try:
            return Fernet(_derive_key(passphrase)).decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            raise ConfigError("Encrypted credential cannot be decrypted with the configured key") from e

    raw = _gcm_payload(ciphertext)
    if not raw:
        raise ConfigError("Encrypted credential has an unknown format")

    salt = raw[:GCM_SALT_BYTES]
    iv = raw[GCM_SALT_BYTES:GCM_SALT_BYTES + GCM_IV_BYTES]
    data = raw[GCM_SALT_BYTES + GCM_IV_BYTES:]
    try:
        plaintext = AESGCM(_derive_gcm_key(passphrase, salt)).decrypt(iv, data, None)
    except InvalidTag as e:
        raise ConfigError("Encrypted credential cannot be decrypted with the configured key") from e
    return plaintext.decode("utf-8")


def is_encrypted(value: str) -> bool:
    """检查值是否为支持的密文格式"""
    return value.startswith(_FERNET_PREFIX) or bool(_gcm_payload(value))


def ensure_decrypted(value: str) -> str:
    """如果值已加密则解密，未加密则返回原值"""
    if not value or not is_encrypted(value):
        return value
    return decrypt_value(value)
