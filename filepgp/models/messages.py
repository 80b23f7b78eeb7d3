"""
Message envelope models.

Envelopes are ephemeral: they are built and consumed inside a single
encode or decode call.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from filepgp.models.crypto import CompressionAlgorithm, PublicKeyAlgorithm, SymmetricAlgorithm


@dataclass(frozen=True, kw_only=True)
class LiteralDataEnvelope:
    """
    Innermost unit of content: the plaintext plus its metadata.

    Attributes:
        is_binary: Binary (``b``) or text (``t``/``u``) literal format.
        file_name: Original file name, empty when not recorded.
        modified: Modification timestamp (UTC, whole seconds).
        payload: Raw plaintext bytes.
    """

    is_binary: bool = True
    file_name: str = ""
    modified: datetime
    payload: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass(frozen=True, kw_only=True)
class CompressedDataEnvelope:
    """Exactly one nested object (serialized packets) under a compression algorithm."""

    algorithm: CompressionAlgorithm
    content: bytes = field(repr=False)


@dataclass(frozen=True, kw_only=True)
class SessionKeyEntry:
    """
    Public-Key Encrypted Session Key packet (version 3).

    Attributes:
        version: Packet version.
        key_id: Recipient key identifier, 16 upper-case hex digits.
        algorithm: Recipient public key algorithm.
        encrypted_session_key: Algorithm-specific MPI block.
    """

    version: int
    key_id: str
    algorithm: PublicKeyAlgorithm
    encrypted_session_key: bytes = field(repr=False)


@dataclass(frozen=True, kw_only=True)
class EncryptedMessage:
    """
    Session-key entries plus the symmetrically encrypted payload.

    Attributes:
        session_keys: Recipient entries in stored order.
        payload: Encrypted packet body (version byte included when integrity protected).
        integrity_protected: Whether the payload carries an MDC integrity tag.
    """

    session_keys: tuple[SessionKeyEntry, ...]
    payload: bytes = field(repr=False)
    integrity_protected: bool = True


@dataclass(frozen=True, kw_only=True)
class LiteralShape:
    envelope: LiteralDataEnvelope


@dataclass(frozen=True, kw_only=True)
class SignedLiteralShape:
    """Signature packets around a literal; signatures are carried but never verified."""

    signature_count: int
    envelope: LiteralDataEnvelope


@dataclass(frozen=True, kw_only=True)
class CompressedShape:
    algorithm: CompressionAlgorithm
    inner: "LiteralShape | SignedLiteralShape"


MessageShape = LiteralShape | CompressedShape | SignedLiteralShape


@dataclass(frozen=True, kw_only=True)
class DecodedMessage:
    """
    Result of decoding an encrypted message in memory.

    Attributes:
        envelope: Extracted literal data.
        key_id: Identifier of the secret key that unwrapped the session key.
        symmetric_algorithm: Cipher of the payload.
        compression: Compression algorithm, None when the literal was not compressed.
        integrity_protected: Whether the MDC integrity tag was present and verified.
        signature_ignored: Whether a signature layer was skipped over.
    """

    envelope: LiteralDataEnvelope
    key_id: str
    symmetric_algorithm: SymmetricAlgorithm
    compression: CompressionAlgorithm | None
    integrity_protected: bool
    signature_ignored: bool = False


@dataclass(frozen=True, kw_only=True)
class DecryptResult:
    """Where a decoded message was materialized."""

    path: Path
    message: DecodedMessage

    @property
    def used_original_name(self) -> bool:
        return bool(self.message.envelope.file_name)
