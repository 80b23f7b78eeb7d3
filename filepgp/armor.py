"""
ASCII armor filter for encrypted messages.

Radix-64 framing and the CRC-24 checksum come from pgpy's ``Armorable``;
this module only adapts it to raw packet streams.
"""

from pgpy.types import Armorable

from filepgp.exceptions import FormatError

MESSAGE_BLOCK = "MESSAGE"


class _ArmoredBlock(Armorable):
    """An opaque packet stream that armors under a fixed block type."""

    def __init__(self, data: bytes, block_type: str) -> None:
        super().__init__()
        self._data = bytes(data)
        self._block_type = block_type

    @property
    def magic(self) -> str:
        return self._block_type

    def __bytes__(self) -> bytes:
        return self._data

    def parse(self, packet: bytes) -> None:
        self._data = bytes(packet)


def armor(data: bytes, block_type: str = MESSAGE_BLOCK) -> str:
    """Encode a binary packet stream as an ASCII-armored ``PGP <block_type>`` block."""
    return str(_ArmoredBlock(data, block_type))


def dearmor(data: bytes | str, block_type: str = MESSAGE_BLOCK) -> bytes:
    """
    Decode an ASCII-armored block back to its packet stream.

    Binary input is returned unchanged.

    Raises:
        FormatError: If text input holds no armored block, one of another type,
            or one whose CRC-24 checksum does not match its body.
    """
    try:
        unarmored = Armorable.ascii_unarmor(data)
    except (ValueError, TypeError) as e:
        msg = f"Invalid ASCII armor: {e}"
        raise FormatError(msg) from e

    magic = unarmored["magic"]
    if magic is not None and magic != block_type:
        msg = f"Expected a PGP {block_type} block, got PGP {magic}"
        raise FormatError(msg)
    body = bytes(unarmored["body"])
    crc = unarmored.get("crc")
    if crc is not None and Armorable.crc24(body) != crc:
        msg = "ASCII armor checksum mismatch"
        raise FormatError(msg)
    return body
