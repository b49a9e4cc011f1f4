"""At-rest encryption of provider OAuth tokens"""
import base64
import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from core.config import Settings, get_settings

KDF_ITERATIONS = 100_000


def derive_fernet_key(secret_key: str, salt: str) -> bytes:
    """PBKDF2-HMAC-SHA256 over secret_key, base64url-encoded as Fernet expects"""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt.encode(),
        iterations=KDF_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(secret_key.encode()))


class CredentialEncryptor:
    """
    Seals the provider token bundle stored in email_account.credentials_encrypted.

    The bundle is a JSON object, normally {"access_token", "refresh_token"}.
    Changing SECRET_KEY or ENCRYPTION_SALT makes existing rows unreadable.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self._fernet = Fernet(
            derive_fernet_key(settings.secret_key, settings.encryption_salt)
        )

    def encrypt(self, credentials: dict[str, Any]) -> str:
        return self._fernet.encrypt(json.dumps(credentials).encode()).decode()

    def decrypt(self, encrypted: str) -> dict[str, Any]:
        """
        Raises:
            ValueError: tampered data, a different key, or a non-object payload
        """
        try:
            plaintext = self._fernet.decrypt(encrypted.encode())
        except InvalidToken as e:
            raise ValueError("Failed to decrypt credentials - invalid or corrupted data") from e

        try:
            credentials = json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise ValueError("Decrypted credentials are not valid JSON") from e

        if not isinstance(credentials, dict):
            raise ValueError("Decrypted credentials must be a dictionary")
        return credentials
