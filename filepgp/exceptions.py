"""
filepgp exception hierarchy.

All exceptions inherit from FilePGPError for easy catching.
"""

from typing import Any


class FilePGPError(Exception):
    """Base exception for all filepgp errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ValidationError(FilePGPError, ValueError):
    """Invalid caller input (empty names or passphrases, bad extensions, existing targets)."""


class FormatError(FilePGPError):
    """A stream does not parse as the expected OpenPGP structure."""


class KeyNotFoundError(FilePGPError):
    """No key in the supplied key rings satisfies the search."""

    def __init__(self, message: str, *, key_id: str | None = None) -> None:
        super().__init__(message, key_id=key_id)
        self.key_id = key_id


class AuthError(FilePGPError):
    """Passphrase failed to unlock a secret key."""

    def __init__(self, message: str, *, key_id: str | None = None) -> None:
        super().__init__(message, key_id=key_id)
        self.key_id = key_id


class CryptoError(FilePGPError):
    """Cryptographic operation failed."""


class EncodeError(CryptoError):
    """Building an encrypted message failed."""


class IntegrityError(CryptoError):
    """Data integrity verification failed (MDC mismatch, corrupted prefix)."""


class UnsupportedAlgorithmError(CryptoError):
    """Algorithm is known to OpenPGP but not handled by the provider."""

    def __init__(self, message: str, *, algorithm: int | None = None) -> None:
        super().__init__(message, algorithm=algorithm)
        self.algorithm = algorithm


class UnsupportedMessageError(FilePGPError):
    """Message has a recognized shape that is deliberately not handled (e.g. signed data)."""
