"""
Encryption of provider tokens at rest.

Uses Fernet symmetric encryption from the cryptography library. The
serialized GitHub token of each user is encrypted before it is written to
Firestore and decrypted when the user is read back.
"""

import logging
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

_fernet: Optional[Fernet] = None


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""

    pass


def _get_fernet() -> Fernet:
    """
    Get or create the Fernet instance.

    The key is read from TOKEN_ENCRYPTION_KEY (URL-safe base64, 32 bytes).

    Raises:
        ValueError: If TOKEN_ENCRYPTION_KEY is not set or invalid
    """
    global _fernet

    if _fernet is not None:
        return _fernet

    key = os.getenv("TOKEN_ENCRYPTION_KEY")
    if not key:
        raise ValueError(
            "TOKEN_ENCRYPTION_KEY environment variable must be set for token encryption"
        )

    try:
        _fernet = Fernet(key.encode())
    except Exception as e:
        raise ValueError(f"Invalid TOKEN_ENCRYPTION_KEY: {e}") from e
    logger.info("Token encryption initialized")
    return _fernet


def encrypt_secret(plaintext: str) -> str:
    """
    Encrypt a secret string.

    An empty string is stored as-is; there is nothing to protect and it
    keeps zero-value users cheap to write.

    Raises:
        EncryptionError: If encryption fails
    """
    if not plaintext:
        return ""
    try:
        return _get_fernet().encrypt(plaintext.encode()).decode()
    except ValueError:
        raise
    except Exception as e:
        logger.error(f"Failed to encrypt secret: {e}")
        raise EncryptionError(f"Encryption failed: {e}") from e


def decrypt_secret(ciphertext: str) -> str:
    """
    Decrypt a string produced by encrypt_secret.

    Raises:
        EncryptionError: If decryption fails (invalid key or corrupted data)
    """
    if not ciphertext:
        return ""
    try:
        return _get_fernet().decrypt(ciphertext.encode()).decode()
    except ValueError:
        raise
    except InvalidToken as e:
        logger.error("Failed to decrypt secret: invalid token or key")
        raise EncryptionError("Decryption failed: invalid token or key mismatch") from e


def generate_encryption_key() -> str:
    """Generate a new key suitable for TOKEN_ENCRYPTION_KEY."""
    return Fernet.generate_key().decode()


def is_encryption_configured() -> bool:
    """Check if TOKEN_ENCRYPTION_KEY is set."""
    return os.getenv("TOKEN_ENCRYPTION_KEY") is not None


def reset_encryption() -> None:
    """Reset the Fernet singleton (tests switch keys between cases)."""
    global _fernet
    _fernet = None
