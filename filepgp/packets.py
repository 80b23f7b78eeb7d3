"""
OpenPGP packet framing.

Reads and writes packet headers (old and new format), body lengths
(including partial body lengths) and multi-precision integers.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum

from filepgp.exceptions import FormatError

_PARTIAL_MIN = 224
_FIVE_OCTET = 255
_MAX_ONE_OCTET = 191
_MAX_TWO_OCTET = 8383


class PacketTag(IntEnum):
    """OpenPGP packet tags used by this package."""

    PKESK = 1
    SIGNATURE = 2
    SKESK = 3
    ONE_PASS_SIGNATURE = 4
    SECRET_KEY = 5
    PUBLIC_KEY = 6
    SECRET_SUBKEY = 7
    COMPRESSED_DATA = 8
    SYMMETRICALLY_ENCRYPTED_DATA = 9
    MARKER = 10
    LITERAL_DATA = 11
    TRUST = 12
    USER_ID = 13
    PUBLIC_SUBKEY = 14
    SEIPD = 18
    MDC = 19


@dataclass(frozen=True, kw_only=True)
class Packet:
    """A framed packet: its tag and its (reassembled) body."""

    tag: int
    body: bytes = field(repr=False)

    @property
    def known_tag(self) -> PacketTag | None:
        try:
            return PacketTag(self.tag)
        except ValueError:
            return None


def read_packet(data: bytes, offset: int = 0) -> tuple[Packet, int]:
    """
    Read one packet starting at ``offset``.

    Args:
        data: Buffer holding one or more packets.
        offset: Position of the packet's first header octet.

    Returns:
        Tuple of (packet, offset just past the packet).

    Raises:
        FormatError: If the header or length is malformed or truncated.
    """
    if offset >= len(data):
        msg = "Unexpected end of packet stream"
        raise FormatError(msg, offset=offset)

    first_byte = data[offset]
    if not _is_packet_header(first_byte):
        msg = f"Invalid packet header: 0x{first_byte:02x}"
        raise FormatError(msg, offset=offset)

    if _is_new_format_packet(first_byte):
        tag = first_byte & 0x3F
        body, end = _read_new_format_body(data, offset + 1)
    else:
        tag = (first_byte & 0x3C) >> 2
        body, end = _read_old_format_body(data, offset + 1, first_byte & 0x03)

    return Packet(tag=tag, body=body), end


def read_packets(data: bytes) -> Iterator[Packet]:
    """Iterate every packet in ``data`` in stored order."""
    offset = 0
    while offset < len(data):
        packet, offset = read_packet(data, offset)
        yield packet


def encode_packet(tag: int, body: bytes) -> bytes:
    """Frame ``body`` with a new-format header and a definite length."""
    if not 0 < tag < 64:
        msg = f"Invalid packet tag: {tag}"
        raise ValueError(msg)
    return bytes([0xC0 | tag]) + encode_length(len(body)) + body


def encode_length(length: int) -> bytes:
    """Encode a new-format definite body length."""
    if length <= _MAX_ONE_OCTET:
        return bytes([length])
    if length <= _MAX_TWO_OCTET:
        length -= 192
        return bytes([(length >> 8) + 192, length & 0xFF])
    return bytes([_FIVE_OCTET]) + length.to_bytes(4, "big")


def encode_mpi(value: int) -> bytes:
    """
    Encode a non-negative integer as an MPI.

    MPI format: [bit_count(2 bytes)] + [big-endian magnitude]
    """
    if value < 0:
        msg = "MPI value must be non-negative"
        raise ValueError(msg)
    bit_count = value.bit_length()
    return bit_count.to_bytes(2, "big") + value.to_bytes((bit_count + 7) // 8, "big")


def parse_mpi(data: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Parse an MPI (Multi-Precision Integer) from OpenPGP format.

    Returns:
        Tuple of (value, offset just past the MPI).
    """
    if len(data) < offset + 2:
        msg = "MPI too short"
        raise FormatError(msg)

    bit_count = int.from_bytes(data[offset : offset + 2], "big")
    byte_count = (bit_count + 7) // 8
    start = offset + 2

    if len(data) < start + byte_count:
        msg = f"MPI data incomplete: need {byte_count}, have {len(data) - start}"
        raise FormatError(msg)

    return int.from_bytes(data[start : start + byte_count], "big"), start + byte_count


def _is_packet_header(first_byte: int) -> bool:
    return (first_byte & 0x80) == 0x80


def _is_new_format_packet(first_byte: int) -> bool:
    return (first_byte & 0xC0) == 0xC0


def _read_new_format_body(data: bytes, offset: int) -> tuple[bytes, int]:
    chunks: list[bytes] = []
    while True:
        length, offset, partial = _parse_new_format_length(data, offset)
        end = offset + length
        if end > len(data):
            msg = f"Truncated packet body: need {length}, have {len(data) - offset}"
            raise FormatError(msg)
        chunks.append(data[offset:end])
        offset = end
        if not partial:
            return b"".join(chunks), offset


def _parse_new_format_length(data: bytes, offset: int) -> tuple[int, int, bool]:
    if offset >= len(data):
        msg = "Missing length byte"
        raise FormatError(msg)

    first_byte = data[offset]

    if first_byte < 192:
        return first_byte, offset + 1, False

    if first_byte < _PARTIAL_MIN:
        if offset + 2 > len(data):
            msg = "Incomplete two-byte length"
            raise FormatError(msg)
        length = ((first_byte - 192) << 8) + data[offset + 1] + 192
        return length, offset + 2, False

    if first_byte == _FIVE_OCTET:
        if offset + 5 > len(data):
            msg = "Incomplete five-byte length"
            raise FormatError(msg)
        return int.from_bytes(data[offset + 1 : offset + 5], "big"), offset + 5, False

    # Partial body length: 224..254
    return 1 << (first_byte & 0x1F), offset + 1, True


def _read_old_format_body(data: bytes, offset: int, length_type: int) -> tuple[bytes, int]:
    if length_type == 3:
        # Indeterminate length: the packet runs to the end of the buffer
        return data[offset:], len(data)

    size = (1, 2, 4)[length_type]
    if offset + size > len(data):
        msg = "Incomplete old-format length"
        raise FormatError(msg)

    length = int.from_bytes(data[offset : offset + size], "big")
    start = offset + size
    if start + length > len(data):
        msg = f"Truncated packet body: need {length}, have {len(data) - start}"
        raise FormatError(msg)
    return data[start : start + length], start + length
