"""Zeroable container for passphrases handed to the key pipeline."""

import ctypes
import hmac
from typing import Self


def _secure_zero(data: bytearray) -> None:
    size = len(data)
    if size:
        buffer = (ctypes.c_char * size).from_buffer(data)
        ctypes.memset(ctypes.addressof(buffer), 0, size)


class SecureBytes:
    """
    Passphrase bytes that the pipeline wipes once a key is unlocked or protected.

    Functions that accept a ``str`` or ``bytes`` passphrase wrap it with
    ``coerce`` and wipe their own copy on return; a ``SecureBytes`` passed in
    by the caller is left for the caller to clear. ``bytes()`` and ``decode()``
    return ordinary copies that are not wiped.
    """

    __slots__ = ("_data", "_cleared")

    def __init__(self, data: bytes | bytearray) -> None:
        self._data = bytearray(data)
        self._cleared = False

    @classmethod
    def from_string(cls, s: str, encoding: str = "utf-8") -> Self:
        encoded = bytearray(s, encoding)
        try:
            return cls(encoded)
        finally:
            _secure_zero(encoded)

    @classmethod
    def coerce(cls, value: "SecureBytes | str | bytes") -> Self:
        """Wrap a passphrase given as str or bytes; SecureBytes pass through."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.from_string(value)
        return cls(value)

    @property
    def is_cleared(self) -> bool:
        return self._cleared

    def clear(self) -> None:
        if not self._cleared:
            _secure_zero(self._data)
            self._cleared = True

    def decode(self, encoding: str = "utf-8") -> str:
        return self._contents().decode(encoding)

    def _contents(self) -> bytearray:
        if self._cleared:
            raise RuntimeError("SecureBytes has been cleared")
        return self._data

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.clear()

    def __del__(self) -> None:
        self.clear()

    def __bytes__(self) -> bytes:
        return bytes(self._contents())

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return bool(self._data) and not self._cleared

    def __repr__(self) -> str:
        state = "cleared" if self._cleared else f"{len(self._data)} bytes"
        return f"SecureBytes(<{state}>)"

    def __eq__(self, other: object) -> bool:
        # Constant time; a cleared value equals nothing
        if isinstance(other, SecureBytes):
            other_data = None if other._cleared else other._data
        elif isinstance(other, (bytes, bytearray)):
            other_data = other
        else:
            return NotImplemented
        if self._cleared or other_data is None:
            return False
        return hmac.compare_digest(self._data, other_data)

    __hash__ = None  # type: ignore[assignment]
