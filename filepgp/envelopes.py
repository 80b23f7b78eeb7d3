"""
Packet bodies for the message envelopes.

Literal data (tag 11), compressed data (tag 8) and public-key encrypted
session key (tag 1) packets: building them for the encoder and parsing
them for the decoder.
"""

import bz2
import zlib
from datetime import datetime, timezone

from filepgp.exceptions import FormatError, UnsupportedAlgorithmError, ValidationError
from filepgp.models.crypto import CompressionAlgorithm, PublicKeyAlgorithm
from filepgp.models.messages import CompressedDataEnvelope, LiteralDataEnvelope, SessionKeyEntry
from filepgp.packets import PacketTag, encode_packet

_BINARY_FORMAT = ord("b")
_TEXT_FORMATS = frozenset(b"tu1lm")
_MAX_NAME_LENGTH = 255
_PKESK_VERSION = 3
_MIN_PKESK_BODY_LENGTH = 10
_ZIP_WBITS = -15


def encode_literal(envelope: LiteralDataEnvelope) -> bytes:
    """
    Build a literal data packet.

    Packet body: [format(1)] + [name_len(1)] + [name] + [date(4)] + [data]

    Raises:
        ValidationError: If the UTF-8 file name exceeds 255 bytes.
    """
    name = envelope.file_name.encode("utf-8")
    if len(name) > _MAX_NAME_LENGTH:
        msg = f"File name too long for literal data: {len(name)} bytes"
        raise ValidationError(msg, file_name=envelope.file_name)

    data_format = _BINARY_FORMAT if envelope.is_binary else ord("t")
    timestamp = int(envelope.modified.timestamp()) & 0xFFFFFFFF
    body = (
        bytes([data_format, len(name)])
        + name
        + timestamp.to_bytes(4, "big")
        + envelope.payload
    )
    return encode_packet(PacketTag.LITERAL_DATA, body)


def parse_literal(body: bytes) -> LiteralDataEnvelope:
    """
    Parse a literal data packet body.

    Raises:
        FormatError: If the body is truncated or declares an unknown format.
    """
    if len(body) < 6:
        msg = f"Literal data packet too short: {len(body)} bytes"
        raise FormatError(msg)

    data_format = body[0]
    if data_format != _BINARY_FORMAT and data_format not in _TEXT_FORMATS:
        msg = f"Unknown literal data format: 0x{data_format:02x}"
        raise FormatError(msg)

    name_length = body[1]
    offset = 2 + name_length
    if len(body) < offset + 4:
        msg = "Literal data packet truncated in header"
        raise FormatError(msg)

    file_name = body[2:offset].decode("utf-8", errors="replace")
    timestamp = int.from_bytes(body[offset : offset + 4], "big")

    return LiteralDataEnvelope(
        is_binary=data_format == _BINARY_FORMAT,
        file_name=file_name,
        modified=datetime.fromtimestamp(timestamp, tz=timezone.utc),
        payload=body[offset + 4 :],
    )


def encode_compressed(envelope: CompressedDataEnvelope, level: int = 6) -> bytes:
    """Build a compressed data packet wrapping ``envelope.content``."""
    algorithm = envelope.algorithm
    match algorithm:
        case CompressionAlgorithm.UNCOMPRESSED:
            compressed = envelope.content
        case CompressionAlgorithm.ZIP:
            compressor = zlib.compressobj(level, zlib.DEFLATED, _ZIP_WBITS)
            compressed = compressor.compress(envelope.content) + compressor.flush()
        case CompressionAlgorithm.ZLIB:
            compressor = zlib.compressobj(level)
            compressed = compressor.compress(envelope.content) + compressor.flush()
        case CompressionAlgorithm.BZIP2:
            compressed = bz2.compress(envelope.content, level)
        case _:
            msg = f"Unsupported compression algorithm: {algorithm}"
            raise UnsupportedAlgorithmError(msg, algorithm=int(algorithm))

    return encode_packet(PacketTag.COMPRESSED_DATA, bytes([algorithm]) + compressed)


def parse_compressed(body: bytes, max_size: int) -> CompressedDataEnvelope:
    """
    Parse and decompress a compressed data packet body.

    Args:
        body: Packet body (algorithm octet followed by compressed data).
        max_size: Maximum accepted decompressed size in bytes.

    Raises:
        FormatError: If the stream is corrupt, truncated or larger than ``max_size``.
        UnsupportedAlgorithmError: If the compression algorithm is unknown.
    """
    if not body:
        msg = "Compressed data packet is empty"
        raise FormatError(msg)

    algorithm = _parse_compression_algorithm(body[0])
    data = body[1:]

    try:
        match algorithm:
            case CompressionAlgorithm.UNCOMPRESSED:
                content = data
            case CompressionAlgorithm.ZIP:
                content = _inflate(zlib.decompressobj(_ZIP_WBITS), data, max_size)
            case CompressionAlgorithm.ZLIB:
                content = _inflate(zlib.decompressobj(), data, max_size)
            case CompressionAlgorithm.BZIP2:
                content = _bunzip(data, max_size)
    except (zlib.error, OSError, EOFError) as e:
        msg = f"Corrupt {algorithm.name} stream: {e}"
        raise FormatError(msg) from e

    if len(content) > max_size:
        msg = f"Decompressed content exceeds {max_size} bytes"
        raise FormatError(msg)

    return CompressedDataEnvelope(algorithm=algorithm, content=content)


def encode_session_key_entry(entry: SessionKeyEntry) -> bytes:
    """Build a version 3 PKESK packet."""
    body = (
        bytes([entry.version])
        + bytes.fromhex(entry.key_id)
        + bytes([entry.algorithm])
        + entry.encrypted_session_key
    )
    return encode_packet(PacketTag.PKESK, body)


def parse_session_key_entry(body: bytes) -> SessionKeyEntry:
    """
    Parse a PKESK (Public-Key Encrypted Session Key) packet body.

    Raises:
        FormatError: If the body is malformed or of an unsupported version.
    """
    if len(body) < _MIN_PKESK_BODY_LENGTH:
        msg = f"PKESK body too short: {len(body)} bytes"
        raise FormatError(msg)

    version = body[0]
    if version != _PKESK_VERSION:
        msg = f"Unsupported PKESK version: {version}"
        raise FormatError(msg)

    algorithm_id = body[9]
    try:
        algorithm = PublicKeyAlgorithm(algorithm_id)
    except ValueError:
        msg = f"Unknown public key algorithm: {algorithm_id}"
        raise FormatError(msg) from None

    return SessionKeyEntry(
        version=version,
        key_id=body[1:9].hex().upper(),
        algorithm=algorithm,
        encrypted_session_key=body[10:],
    )


def _parse_compression_algorithm(algorithm_id: int) -> CompressionAlgorithm:
    try:
        return CompressionAlgorithm(algorithm_id)
    except ValueError:
        msg = f"Unknown compression algorithm: {algorithm_id}"
        raise UnsupportedAlgorithmError(msg, algorithm=algorithm_id) from None


def _inflate(decompressor: "zlib._Decompress", data: bytes, max_size: int) -> bytes:
    content = decompressor.decompress(data, max_size + 1)
    if len(content) > max_size or decompressor.unconsumed_tail:
        msg = f"Decompressed content exceeds {max_size} bytes"
        raise FormatError(msg)
    if not decompressor.eof:
        msg = "Compressed stream is truncated"
        raise FormatError(msg)
    return content


def _bunzip(data: bytes, max_size: int) -> bytes:
    decompressor = bz2.BZ2Decompressor()
    content = decompressor.decompress(data, max_length=max_size + 1)
    if len(content) > max_size or (not decompressor.eof and not decompressor.needs_input):
        msg = f"Decompressed content exceeds {max_size} bytes"
        raise FormatError(msg)
    if not decompressor.eof:
        msg = "Compressed stream is truncated"
        raise FormatError(msg)
    return content
