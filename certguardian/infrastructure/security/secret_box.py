"""
Symmetric encryption for certificate passwords at rest (Fernet).
"""

import base64
import hashlib
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class DecryptionError(Exception):
    """Stored ciphertext could not be decrypted with the configured key."""


def derive_key(secret: str) -> bytes:
    """Fernet key (32 url-safe base64 bytes) derived from an arbitrary secret."""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class SecretBox:
    """
    Encrypts and decrypts short secrets.

    Usage:
        box = SecretBox.from_config(app.config)
        token = box.encrypt("senha-do-certificado")
        box.decrypt(token)  # "senha-do-certificado"
    """

    def __init__(self, key: bytes):
        self._fernet = Fernet(key)

    @classmethod
    def from_config(cls, cfg) -> 'SecretBox':
        key = cfg.get("ENCRYPTION_KEY")
        if key:
            return cls(key.encode("utf-8") if isinstance(key, str) else key)

        logger.warning("ENCRYPTION_KEY ausente; derivando chave a partir de SECRET_KEY")
        return cls(derive_key(cfg["SECRET_KEY"]))

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        if plaintext is None or plaintext == "":
            return None
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except InvalidToken as e:
            raise DecryptionError("Não foi possível descriptografar a senha armazenada") from e
