"""
Message decoding.

Reverses the encoder pipeline as a small state machine over nested packet
shapes:

    encrypted list -> session key match -> symmetric payload
        -> compressed or literal -> (literal | signature then literal)

The nested content is parsed by a single recursive-descent step into a
``MessageShape`` variant, so every accepted and rejected shape is spelled
out in one ``match``.
"""

import os
from pathlib import Path

import structlog

from filepgp.armor import dearmor
from filepgp.config import FilePGPConfig
from filepgp.crypto.pgpy_backend import PgpyProvider
from filepgp.crypto.protocol import CryptoProvider
from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.envelopes import parse_compressed, parse_literal, parse_session_key_entry
from filepgp.exceptions import (
    AuthError,
    FormatError,
    KeyNotFoundError,
    UnsupportedMessageError,
    ValidationError,
)
from filepgp.keyring import find_secret_key_by_id, unlock_private_key
from filepgp.models.crypto import CompressionAlgorithm, SessionKey
from filepgp.models.keys import KeyRingBundle
from filepgp.models.messages import (
    CompressedShape,
    DecodedMessage,
    DecryptResult,
    EncryptedMessage,
    LiteralDataEnvelope,
    LiteralShape,
    MessageShape,
    SignedLiteralShape,
)
from filepgp.packets import Packet, PacketTag, read_packets

logger = structlog.get_logger(__name__)

_SESSION_KEY_TAGS = frozenset({PacketTag.PKESK, PacketTag.SKESK})
_SIGNATURE_TAGS = frozenset({PacketTag.ONE_PASS_SIGNATURE, PacketTag.SIGNATURE})
_UNSAFE_NAMES = frozenset({"", ".", ".."})


def decode_message(
    data: bytes | str,
    secret_bundle: KeyRingBundle,
    passphrase: SecureBytes | str | bytes,
    *,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> DecodedMessage:
    """
    Decrypt a message in memory and return its literal data.

    Args:
        data: Armored or binary encrypted message.
        secret_bundle: Secret key rings of the holder.
        passphrase: Passphrase of the holder's secret keys.
        config: Limits (``max_payload_size``).
        provider: Cryptographic provider.

    Raises:
        FormatError: If the message does not parse.
        KeyNotFoundError: If no recipient entry names an owned secret key.
        AuthError: If owned keys were found but none could be unlocked.
        CryptoError: If the session key or payload cannot be decrypted.
        IntegrityError: If the integrity tag does not verify.
        UnsupportedMessageError: If the nested content has an unhandled shape.
    """
    config = config or FilePGPConfig()
    provider = provider or PgpyProvider()

    message = read_encrypted_message(dearmor(data))

    secret = SecureBytes.coerce(passphrase)
    try:
        session_key, key_id = _recover_session_key(message, secret_bundle, secret, provider)
    finally:
        if secret is not passphrase:
            secret.clear()

    # Integrity is verified here, before any nested content is parsed
    plaintext = provider.symmetric_decrypt(
        session_key, message.payload, with_integrity=message.integrity_protected
    )
    shape = parse_shape(plaintext, max_size=config.max_payload_size)
    envelope, compression, signed = _unwrap(shape)

    if signed:
        logger.warning("Signature layer ignored, signatures are not verified", key_id=key_id)
    if not message.integrity_protected:
        logger.warning("Message has no integrity protection", key_id=key_id)

    logger.debug(
        "Message decoded",
        key_id=key_id,
        algorithm=session_key.algorithm.name,
        compression=None if compression is None else compression.name,
        size=envelope.size,
    )
    return DecodedMessage(
        envelope=envelope,
        key_id=key_id,
        symmetric_algorithm=session_key.algorithm,
        compression=compression,
        integrity_protected=message.integrity_protected,
        signature_ignored=signed,
    )


def decrypt_message(
    data: bytes | str,
    secret_bundle: KeyRingBundle,
    passphrase: SecureBytes | str | bytes,
    target_path: str | os.PathLike[str],
    *,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> DecryptResult:
    """
    Decrypt a message and write its literal data to storage.

    A non-empty original file name wins: the output is written under that
    name in the directory of ``target_path``. An empty name writes exactly
    to ``target_path``. Existing files are never overwritten.

    Raises:
        ValidationError: If ``target_path`` or the chosen output file already
            exists, or the original file name is unsafe.
        Everything ``decode_message`` raises.
    """
    target = Path(target_path)
    if target.exists():
        msg = "Decryption target already exists"
        raise ValidationError(msg, path=str(target))

    decoded = decode_message(data, secret_bundle, passphrase, config=config, provider=provider)
    path = output_path(target, decoded.envelope.file_name)
    _write_new_file(path, decoded.envelope.payload)

    logger.info("Decrypted file written", path=str(path), size=decoded.envelope.size)
    return DecryptResult(path=path, message=decoded)


def read_encrypted_message(data: bytes) -> EncryptedMessage:
    """
    Group the top-level packets into session-key entries and the encrypted payload.

    One leading object that is not a session-key packet (e.g. a marker) is
    skipped; the next one must start the list.

    Raises:
        FormatError: If no session-key list or encrypted data packet is found.
    """
    packets = read_packets(data)
    packet = next(packets, None)
    if packet is None:
        msg = "Message is empty"
        raise FormatError(msg)

    if packet.tag not in _SESSION_KEY_TAGS:
        logger.debug("Skipping leading packet", tag=packet.tag)
        packet = next(packets, None)
        if packet is None or packet.tag not in _SESSION_KEY_TAGS:
            msg = "Expected an encrypted session key list"
            raise FormatError(msg)

    entries = []
    while packet.tag in _SESSION_KEY_TAGS:
        if packet.tag == PacketTag.PKESK:
            entries.append(parse_session_key_entry(packet.body))
        else:
            logger.debug("Skipping symmetric session key packet")
        packet = next(packets, None)
        if packet is None:
            msg = "Message has no encrypted data packet"
            raise FormatError(msg)

    match packet.known_tag:
        case PacketTag.SEIPD:
            integrity_protected = True
        case PacketTag.SYMMETRICALLY_ENCRYPTED_DATA:
            integrity_protected = False
        case _:
            msg = f"Expected encrypted data packet, found tag {packet.tag}"
            raise FormatError(msg)

    if next(packets, None) is not None:
        msg = "Unexpected data after encrypted data packet"
        raise FormatError(msg)

    return EncryptedMessage(
        session_keys=tuple(entries),
        payload=packet.body,
        integrity_protected=integrity_protected,
    )


def parse_shape(data: bytes, *, max_size: int, nested: bool = False) -> MessageShape:
    """
    Parse decrypted content into its shape.

    Accepted shapes: a literal; a compressed envelope holding a literal; a
    compressed envelope holding signatures followed by a literal.

    Raises:
        FormatError: If the content does not parse.
        UnsupportedMessageError: For any other shape.
    """
    packets = list(read_packets(data))
    if not packets:
        msg = "Decrypted content is empty"
        raise FormatError(msg)

    first = packets[0]
    match first.known_tag:
        case PacketTag.LITERAL_DATA:
            return LiteralShape(envelope=parse_literal(first.body))
        case PacketTag.COMPRESSED_DATA if not nested:
            envelope = parse_compressed(first.body, max_size)
            inner = parse_shape(envelope.content, max_size=max_size, nested=True)
            return CompressedShape(algorithm=envelope.algorithm, inner=inner)
        case PacketTag.ONE_PASS_SIGNATURE | PacketTag.SIGNATURE if nested:
            return _parse_signed(packets)
        case PacketTag.COMPRESSED_DATA:
            msg = "Nested compressed data is not supported"
            raise UnsupportedMessageError(msg)
        case PacketTag.ONE_PASS_SIGNATURE | PacketTag.SIGNATURE:
            msg = "Signed content outside compressed data is not supported"
            raise UnsupportedMessageError(msg)
        case _:
            msg = f"Unsupported packet in decrypted content: tag {first.tag}"
            raise UnsupportedMessageError(msg)


def output_path(target: Path, file_name: str) -> Path:
    """
    Choose where the literal data is written.

    The original name is reduced to its last path component so it can only
    land in the target's directory.

    Raises:
        ValidationError: If the original name has no usable last component.
    """
    if not file_name:
        return target

    name = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    if name in _UNSAFE_NAMES or "\x00" in name:
        msg = "Unsafe file name in literal data"
        raise ValidationError(msg, file_name=file_name)
    return target.parent / name


def _recover_session_key(
    message: EncryptedMessage,
    bundle: KeyRingBundle,
    passphrase: SecureBytes,
    provider: CryptoProvider,
) -> tuple[SessionKey, str]:
    """Commit to the first recipient entry whose owned key unlocks."""
    auth_failure: AuthError | None = None

    for entry in message.session_keys:
        try:
            secret_key = find_secret_key_by_id(bundle, entry.key_id)
        except KeyNotFoundError:
            logger.debug("Skipping recipient entry for unowned key", key_id=entry.key_id)
            continue

        try:
            with unlock_private_key(secret_key, passphrase, provider=provider) as private_key:
                session_key = provider.unwrap_session_key(private_key, entry)
        except AuthError as e:
            logger.warning("Failed to unlock recipient key", key_id=entry.key_id)
            auth_failure = e
            continue

        logger.debug("Session key recovered", key_id=secret_key.key_id)
        return session_key, secret_key.key_id

    if auth_failure is not None:
        msg = "No recipient key could be unlocked with the given passphrase"
        raise AuthError(msg, key_id=auth_failure.key_id) from auth_failure

    msg = "No usable decryption key among message recipients"
    raise KeyNotFoundError(msg)


def _parse_signed(packets: list[Packet]) -> SignedLiteralShape:
    signature_count = 0
    for packet in packets:
        if packet.tag in _SIGNATURE_TAGS:
            signature_count += 1
            continue
        if packet.tag == PacketTag.LITERAL_DATA:
            return SignedLiteralShape(
                signature_count=signature_count,
                envelope=parse_literal(packet.body),
            )
        break

    msg = "Signed content has no literal data"
    raise UnsupportedMessageError(msg)


def _unwrap(shape: MessageShape) -> tuple[LiteralDataEnvelope, CompressionAlgorithm | None, bool]:
    """Return the literal, the compression it was under, and whether signatures were skipped."""
    match shape:
        case LiteralShape(envelope=envelope):
            return envelope, None, False
        case SignedLiteralShape(envelope=envelope):
            return envelope, None, True
        case CompressedShape(algorithm=algorithm, inner=inner):
            envelope, _, signed = _unwrap(inner)
            return envelope, algorithm, signed


def _write_new_file(path: Path, payload: bytes) -> None:
    try:
        with path.open("xb") as f:
            f.write(payload)
    except FileExistsError as e:
        msg = "Output file already exists"
        raise ValidationError(msg, path=str(path)) from e
