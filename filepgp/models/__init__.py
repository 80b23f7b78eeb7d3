"""
Domain models for filepgp.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from filepgp.models.crypto import (
    CompressionAlgorithm,
    HashAlgorithm,
    PublicKeyAlgorithm,
    SessionKey,
    SymmetricAlgorithm,
)
from filepgp.models.keys import (
    GeneratedKeyPair,
    KeyCapabilities,
    KeyKind,
    KeyRing,
    KeyRingBundle,
    PrivateKey,
    RingKey,
)
from filepgp.models.messages import (
    CompressedDataEnvelope,
    CompressedShape,
    DecodedMessage,
    DecryptResult,
    EncryptedMessage,
    LiteralDataEnvelope,
    LiteralShape,
    MessageShape,
    SessionKeyEntry,
    SignedLiteralShape,
)

__all__ = [
    # Crypto
    "SymmetricAlgorithm",
    "PublicKeyAlgorithm",
    "CompressionAlgorithm",
    "HashAlgorithm",
    "SessionKey",
    # Keys
    "KeyKind",
    "KeyCapabilities",
    "RingKey",
    "KeyRing",
    "KeyRingBundle",
    "PrivateKey",
    "GeneratedKeyPair",
    # Messages
    "LiteralDataEnvelope",
    "CompressedDataEnvelope",
    "SessionKeyEntry",
    "EncryptedMessage",
    "LiteralShape",
    "CompressedShape",
    "SignedLiteralShape",
    "MessageShape",
    "DecodedMessage",
    "DecryptResult",
]
