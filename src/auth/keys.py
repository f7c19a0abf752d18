"""Symmetric encryption of users' provider API keys at rest."""

from cryptography.fernet import Fernet, InvalidToken

from src.errors import ProviderError, ProviderErrorKind


class KeyCipher:
    """Encrypts and decrypts provider keys with a process-wide Fernet key."""

    def __init__(self, key: str):
        self._fernet = Fernet(key.encode("utf-8"))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        """
        Decrypt a stored key.

        Raises:
            ProviderError: If the stored value cannot be decrypted, which
                the user experiences as an unusable key
        """
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            raise ProviderError(
                ProviderErrorKind.AUTHENTICATION_FAILED,
                "Failed to decrypt API key.",
            ) from e
