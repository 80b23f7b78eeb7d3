"""
Key and key-ring domain models.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum

import pgpy

from filepgp.models.crypto import PublicKeyAlgorithm


class KeyKind(IntEnum):
    """Which half of a key pair a ring entry carries."""

    PUBLIC = 1
    SECRET = 2


@dataclass(frozen=True, kw_only=True)
class KeyCapabilities:
    """Usage a key is allowed for, from its algorithm and self-signature flags."""

    can_encrypt: bool = False
    can_sign: bool = False


@dataclass(frozen=True, kw_only=True)
class RingKey:
    """
    A single key (primary or subkey) inside a loaded key ring.

    Secret keys stay encrypted at rest; use ``keyring.unlock_private_key``
    to obtain usable private material.

    Attributes:
        kind: Public or secret.
        key_id: 64-bit key identifier as 16 upper-case hex digits.
        algorithm: Public key algorithm, None when not an OpenPGP-registered value.
        capabilities: Encryption/signing capability flags.
        is_primary: Whether this is the ring's primary key.
        user_ids: User IDs bound to the ring's primary key.
    """

    kind: KeyKind
    key_id: str
    algorithm: PublicKeyAlgorithm | None
    capabilities: KeyCapabilities
    is_primary: bool
    user_ids: tuple[str, ...] = ()
    pgpy_key: pgpy.PGPKey = field(repr=False, compare=False)

    @property
    def can_encrypt(self) -> bool:
        return self.capabilities.can_encrypt

    @property
    def can_sign(self) -> bool:
        return self.capabilities.can_sign

    @property
    def fingerprint(self) -> str:
        return str(self.pgpy_key.fingerprint).replace(" ", "")

    @property
    def is_protected(self) -> bool:
        return self.kind == KeyKind.SECRET and bool(self.pgpy_key.is_protected)


@dataclass(frozen=True, kw_only=True)
class KeyRing:
    """A primary key followed by its subkeys, in stored order."""

    keys: tuple[RingKey, ...]

    def __post_init__(self) -> None:
        if not self.keys:
            msg = "A key ring holds at least one key"
            raise ValueError(msg)

    @property
    def primary(self) -> RingKey:
        return self.keys[0]

    @property
    def key_id(self) -> str:
        return self.primary.key_id

    def __iter__(self) -> Iterator[RingKey]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)


@dataclass(frozen=True, kw_only=True)
class KeyRingBundle:
    """
    Ordered, immutable collection of key rings loaded from one stream.

    Attributes:
        kind: Whether the bundle holds public or secret rings.
        rings: Key rings in stored order.
    """

    kind: KeyKind
    rings: tuple[KeyRing, ...]

    def __iter__(self) -> Iterator[KeyRing]:
        return iter(self.rings)

    def __len__(self) -> int:
        return len(self.rings)

    def keys(self) -> Iterator[RingKey]:
        """Iterate every key, rings in stored order, primary before subkeys."""
        for ring in self.rings:
            yield from ring

    def get_key(self, key_id: str) -> RingKey | None:
        """Get a key by its 16-hex-digit identifier."""
        wanted = key_id.upper()
        return next((key for key in self.keys() if key.key_id == wanted), None)


@dataclass(frozen=True, kw_only=True)
class PrivateKey:
    """
    Unlocked private key, valid only inside the ``unlock_private_key`` context.

    The wrapped pgpy key has its secret material wiped when the context exits,
    after which provider calls on this object fail.
    """

    key_id: str
    algorithm: PublicKeyAlgorithm | None
    pgpy_key: pgpy.PGPKey = field(repr=False, compare=False)

    @property
    def is_unlocked(self) -> bool:
        return bool(self.pgpy_key.is_unlocked)


@dataclass(frozen=True, kw_only=True)
class GeneratedKeyPair:
    """
    Encoded output of key generation.

    Attributes:
        secret_key: Passphrase-protected transferable secret key.
        public_key: Matching transferable public key.
        key_id: Identifier of the generated primary key.
        armored: Whether both encodings are ASCII-armored.
    """

    secret_key: bytes = field(repr=False)
    public_key: bytes
    key_id: str
    armored: bool
