"""Fernet encryption for broker API keys and secrets at rest."""

from cryptography.fernet import Fernet

from tradevault.config import settings

_fernet: Fernet | None = None


def _get_fernet() -> Fernet:
    global _fernet
    if _fernet is None:
        if not settings.encryption_key:
            raise RuntimeError(
                "TV_ENCRYPTION_KEY is not set; broker credentials cannot be stored. "
                "Create one with Fernet.generate_key()."
            )
        _fernet = Fernet(settings.encryption_key.encode())
    return _fernet


def encrypt(plaintext: str) -> str:
    return _get_fernet().encrypt(plaintext.encode()).decode()


def decrypt(ciphertext: str) -> str:
    return _get_fernet().decrypt(ciphertext.encode()).decode()


def encrypt_optional(plaintext: str | None) -> str | None:
    """Encrypt an optional secret; None and "" are stored as None."""
    return encrypt(plaintext) if plaintext else None


def decrypt_optional(ciphertext: str | None) -> str | None:
    return decrypt(ciphertext) if ciphertext else None
