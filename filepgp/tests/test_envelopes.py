import bz2
import zlib
from datetime import datetime, timezone

import pytest

from filepgp.envelopes import (
    encode_compressed,
    encode_literal,
    encode_session_key_entry,
    parse_compressed,
    parse_literal,
    parse_session_key_entry,
)
from filepgp.exceptions import FormatError, UnsupportedAlgorithmError, ValidationError
from filepgp.models.crypto import CompressionAlgorithm, PublicKeyAlgorithm
from filepgp.models.messages import CompressedDataEnvelope, LiteralDataEnvelope, SessionKeyEntry
from filepgp.packets import PacketTag, read_packet

_MODIFIED = datetime(2024, 5, 17, 12, 30, tzinfo=timezone.utc)


def _literal(name: str = "report.txt", payload: bytes = b"hello") -> LiteralDataEnvelope:
    return LiteralDataEnvelope(file_name=name, modified=_MODIFIED, payload=payload)


def _body(packet: bytes) -> bytes:
    parsed, _ = read_packet(packet)
    return parsed.body


def test_encode_literal_layout() -> None:
    packet, _ = read_packet(encode_literal(_literal("a.txt", b"data")))

    assert packet.tag == PacketTag.LITERAL_DATA
    assert packet.body[:1] == b"b"
    assert packet.body[1] == 5
    assert packet.body[2:7] == b"a.txt"
    assert int.from_bytes(packet.body[7:11], "big") == int(_MODIFIED.timestamp())
    assert packet.body[11:] == b"data"


def test_parse_literal_restores_metadata() -> None:
    envelope = parse_literal(_body(encode_literal(_literal("résumé.pdf", b"\x00\x01"))))

    assert envelope.is_binary
    assert envelope.file_name == "résumé.pdf"
    assert envelope.modified == _MODIFIED
    assert envelope.payload == b"\x00\x01"


def test_parse_literal_accepts_text_format() -> None:
    envelope = parse_literal(b"u\x00\x00\x00\x00\x00text")

    assert not envelope.is_binary
    assert envelope.file_name == ""
    assert envelope.payload == b"text"


def test_encode_literal_rejects_long_name() -> None:
    with pytest.raises(ValidationError, match="too long"):
        encode_literal(_literal("n" * 256))


def test_parse_literal_rejects_unknown_format() -> None:
    with pytest.raises(FormatError, match="Unknown literal data format"):
        parse_literal(b"x\x00\x00\x00\x00\x00")


def test_parse_literal_rejects_truncated_header() -> None:
    with pytest.raises(FormatError, match="truncated"):
        parse_literal(b"b\x09abc\x00\x00\x00")


@pytest.mark.parametrize("algorithm", list(CompressionAlgorithm))
def test_compressed_roundtrip(algorithm: CompressionAlgorithm) -> None:
    content = encode_literal(_literal(payload=b"abc" * 1000))
    packet = encode_compressed(CompressedDataEnvelope(algorithm=algorithm, content=content))

    envelope = parse_compressed(_body(packet), max_size=1 << 20)

    assert envelope.algorithm == algorithm
    assert envelope.content == content


def test_zip_is_raw_deflate() -> None:
    envelope = CompressedDataEnvelope(algorithm=CompressionAlgorithm.ZIP, content=b"x" * 50)
    body = _body(encode_compressed(envelope))

    assert body[0] == CompressionAlgorithm.ZIP
    assert zlib.decompress(body[1:], -15) == b"x" * 50


def test_parse_compressed_enforces_max_size() -> None:
    body = bytes([CompressionAlgorithm.ZLIB]) + zlib.compress(b"\x00" * 10_000)

    with pytest.raises(FormatError, match="exceeds"):
        parse_compressed(body, max_size=1000)


def test_parse_compressed_bzip2_enforces_max_size() -> None:
    body = bytes([CompressionAlgorithm.BZIP2]) + bz2.compress(b"\x00" * 10_000)

    with pytest.raises(FormatError, match="exceeds"):
        parse_compressed(body, max_size=1000)


def test_parse_compressed_rejects_corrupt_stream() -> None:
    with pytest.raises(FormatError):
        parse_compressed(bytes([CompressionAlgorithm.ZLIB]) + b"not zlib", max_size=1000)


def test_parse_compressed_rejects_truncated_stream() -> None:
    data = zlib.compress(b"some content " * 20)

    with pytest.raises(FormatError, match="truncated"):
        parse_compressed(bytes([CompressionAlgorithm.ZLIB]) + data[:-6], max_size=1000)


def test_parse_compressed_rejects_unknown_algorithm() -> None:
    with pytest.raises(UnsupportedAlgorithmError):
        parse_compressed(b"\x6e" + b"data", max_size=1000)


def test_parse_compressed_rejects_empty_body() -> None:
    with pytest.raises(FormatError, match="empty"):
        parse_compressed(b"", max_size=1000)


def test_session_key_entry_roundtrip() -> None:
    entry = SessionKeyEntry(
        version=3,
        key_id="0123456789ABCDEF",
        algorithm=PublicKeyAlgorithm.RSA_ENCRYPT_OR_SIGN,
        encrypted_session_key=b"\x00\x08\xaa",
    )
    packet, _ = read_packet(encode_session_key_entry(entry))

    assert packet.tag == PacketTag.PKESK
    assert parse_session_key_entry(packet.body) == entry


def test_parse_session_key_entry_rejects_short_body() -> None:
    with pytest.raises(FormatError, match="too short"):
        parse_session_key_entry(b"\x03\x00")


def test_parse_session_key_entry_rejects_unknown_version() -> None:
    with pytest.raises(FormatError, match="Unsupported PKESK version"):
        parse_session_key_entry(b"\x06" + b"\x00" * 12)


def test_parse_session_key_entry_rejects_unknown_algorithm() -> None:
    with pytest.raises(FormatError, match="Unknown public key algorithm"):
        parse_session_key_entry(b"\x03" + b"\x11" * 8 + b"\x63" + b"\x00\x01\x01")
