"""
Message encoding.

Pipeline, each stage feeding the next:
literal data -> compression -> symmetric encryption -> session key
wrapped for the recipient -> optional ASCII armor.
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

import structlog

from filepgp.armor import armor as armor_message
from filepgp.config import FilePGPConfig
from filepgp.crypto.pgpy_backend import PgpyProvider
from filepgp.crypto.protocol import CryptoProvider
from filepgp.envelopes import encode_compressed, encode_literal, encode_session_key_entry
from filepgp.exceptions import EncodeError, ValidationError
from filepgp.models.crypto import CompressionAlgorithm
from filepgp.models.keys import RingKey
from filepgp.models.messages import CompressedDataEnvelope, EncryptedMessage, LiteralDataEnvelope
from filepgp.packets import PacketTag, encode_packet

logger = structlog.get_logger(__name__)


def encrypt(
    output: BinaryIO,
    source: BinaryIO,
    recipient: RingKey,
    *,
    file_name: str = "",
    armor: bool | None = None,
    with_integrity: bool | None = None,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> None:
    """
    Encrypt everything readable from ``source`` to ``recipient`` and write it to ``output``.

    The source is buffered in full; the output is written once, after
    encryption succeeded.

    Raises:
        ValidationError: If the recipient cannot encrypt or ``file_name`` is too long.
        EncodeError: If any cryptographic stage fails.
    """
    message = encrypt_message(
        source.read(),
        recipient,
        file_name=file_name,
        armor=armor,
        with_integrity=with_integrity,
        config=config,
        provider=provider,
    )
    output.write(message)


def encrypt_message(
    plaintext: bytes,
    recipient: RingKey,
    *,
    file_name: str = "",
    modified: datetime | None = None,
    armor: bool | None = None,
    with_integrity: bool | None = None,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> bytes:
    """
    Encrypt ``plaintext`` for a single recipient.

    Args:
        plaintext: Content to encrypt.
        recipient: Public key with the encrypt capability.
        file_name: Name recorded in the literal data, empty for none.
        modified: Timestamp recorded in the literal data, now when omitted.
        armor: ASCII-armor the result, defaults to ``config.armor``.
        with_integrity: Add an MDC integrity tag, defaults to ``config.with_integrity_check``.
        config: Algorithm defaults.
        provider: Cryptographic provider.

    Returns:
        The serialized message, armored text encoded as ASCII when ``armor``.
    """
    config = config or FilePGPConfig()
    provider = provider or PgpyProvider()
    if armor is None:
        armor = config.armor
    if with_integrity is None:
        with_integrity = config.with_integrity_check

    if not recipient.can_encrypt:
        msg = "Recipient key cannot encrypt"
        raise ValidationError(msg, key_id=recipient.key_id)

    envelope = LiteralDataEnvelope(
        is_binary=True,
        file_name=file_name,
        modified=modified or datetime.now(timezone.utc),
        payload=plaintext,
    )
    literal = encode_literal(envelope)

    try:
        compressed = encode_compressed(
            CompressedDataEnvelope(algorithm=config.compression_algorithm, content=literal),
            config.compression_level,
        )
        session_key = provider.generate_session_key(config.symmetric_algorithm)
        payload = provider.symmetric_encrypt(session_key, compressed, with_integrity=with_integrity)
        entry = provider.wrap_session_key(recipient, session_key)
    except Exception as e:
        msg = f"Failed to encrypt message: {e}"
        raise EncodeError(msg, key_id=recipient.key_id) from e

    message = EncryptedMessage(
        session_keys=(entry,),
        payload=payload,
        integrity_protected=with_integrity,
    )
    data = serialize_message(message)
    logger.debug(
        "Message encrypted",
        key_id=recipient.key_id,
        algorithm=config.symmetric_algorithm.name,
        compression=config.compression_algorithm.name,
        integrity=with_integrity,
        size=len(plaintext),
    )

    if armor:
        return armor_message(data).encode("ascii")
    return data


def serialize_message(message: EncryptedMessage) -> bytes:
    """Serialize session-key entries followed by the encrypted data packet."""
    entries = b"".join(encode_session_key_entry(entry) for entry in message.session_keys)
    tag = (
        PacketTag.SEIPD
        if message.integrity_protected
        else PacketTag.SYMMETRICALLY_ENCRYPTED_DATA
    )
    return entries + encode_packet(tag, message.payload)


def compress_file(
    path: str | os.PathLike[str],
    algorithm: CompressionAlgorithm = CompressionAlgorithm.ZIP,
    *,
    level: int = 6,
) -> bytes:
    """
    Wrap a file as binary literal data inside a compressed data packet.

    The literal records the file's base name and modification time.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    file_path = Path(path)
    envelope = LiteralDataEnvelope(
        is_binary=True,
        file_name=file_path.name,
        modified=datetime.fromtimestamp(file_path.stat().st_mtime, tz=timezone.utc),
        payload=file_path.read_bytes(),
    )
    return encode_compressed(
        CompressedDataEnvelope(algorithm=algorithm, content=encode_literal(envelope)),
        level,
    )
