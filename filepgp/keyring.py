"""
Key-ring resolution.

Parses key-ring streams into immutable bundles, searches them by capability
or identifier, and unlocks secret keys for the duration of a single call.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import pgpy
import structlog
from pgpy.constants import KeyFlags

from filepgp.crypto.pgpy_backend import PgpyProvider
from filepgp.crypto.protocol import CryptoProvider
from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.exceptions import FormatError, KeyNotFoundError
from filepgp.models.crypto import PublicKeyAlgorithm
from filepgp.models.keys import (
    KeyCapabilities,
    KeyKind,
    KeyRing,
    KeyRingBundle,
    PrivateKey,
    RingKey,
)

logger = structlog.get_logger(__name__)

_ENCRYPT_FLAGS = frozenset({KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage})


def load_public_ring(data: bytes, *, provider: CryptoProvider | None = None) -> KeyRingBundle:
    """
    Load a public key-ring stream (binary or armored).

    Raises:
        FormatError: If the stream is not a public key-ring encoding.
    """
    return _load_ring(data, KeyKind.PUBLIC, provider or PgpyProvider())


def load_secret_ring(data: bytes, *, provider: CryptoProvider | None = None) -> KeyRingBundle:
    """
    Load a secret key-ring stream (binary or armored).

    Secret keys stay encrypted; nothing is unlocked while loading.

    Raises:
        FormatError: If the stream is not a secret key-ring encoding.
    """
    return _load_ring(data, KeyKind.SECRET, provider or PgpyProvider())


def find_encryption_key(bundle: KeyRingBundle) -> RingKey:
    """
    Return the first public key, rings in stored order, that can encrypt.

    Raises:
        KeyNotFoundError: If no public key in the bundle can encrypt.
    """
    for key in bundle.keys():
        if key.kind == KeyKind.PUBLIC and key.can_encrypt:
            return key
    msg = "No encryption key found in key ring"
    raise KeyNotFoundError(msg)


def find_signing_key(bundle: KeyRingBundle) -> RingKey:
    """
    Return the first secret key, rings in stored order, that can sign.

    Raises:
        KeyNotFoundError: If no secret key in the bundle can sign.
    """
    for key in bundle.keys():
        if key.kind == KeyKind.SECRET and key.can_sign:
            return key
    msg = "No signing key found in key ring"
    raise KeyNotFoundError(msg)


def find_secret_key_by_id(bundle: KeyRingBundle, key_id: str) -> RingKey:
    """
    Return the secret key whose 64-bit identifier equals ``key_id``.

    Raises:
        KeyNotFoundError: If the bundle holds no such secret key.
    """
    key = bundle.get_key(key_id)
    if key is None or key.kind != KeyKind.SECRET:
        msg = "Secret key not found"
        raise KeyNotFoundError(msg, key_id=key_id.upper())
    return key


@contextmanager
def unlock_private_key(
    secret_key: RingKey,
    passphrase: SecureBytes | str | bytes,
    *,
    provider: CryptoProvider | None = None,
) -> Iterator[PrivateKey]:
    """
    Unlock ``secret_key`` for the body of a ``with`` block.

    The unlocked key is scoped to the block and never cached.

    Raises:
        AuthError: If the passphrase is wrong or the secret material is corrupted.

    Example:
        with unlock_private_key(key, "passphrase") as private_key:
            session_key = provider.unwrap_session_key(private_key, entry)
    """
    provider = provider or PgpyProvider()
    secret = SecureBytes.coerce(passphrase)
    try:
        with provider.unlock_key(secret_key, secret) as private_key:
            logger.debug("Private key unlocked", key_id=secret_key.key_id)
            yield private_key
    finally:
        if secret is not passphrase:
            secret.clear()


def read_public_key(source: bytes, *, provider: CryptoProvider | None = None) -> RingKey:
    """Load a public key ring and return its first encryption key."""
    return find_encryption_key(load_public_ring(source, provider=provider))


def read_secret_key(source: bytes, *, provider: CryptoProvider | None = None) -> RingKey:
    """Load a secret key ring and return its first signing key."""
    return find_signing_key(load_secret_ring(source, provider=provider))


def _load_ring(data: bytes, kind: KeyKind, provider: CryptoProvider) -> KeyRingBundle:
    if not data:
        msg = "Key ring stream is empty"
        raise FormatError(msg)

    rings = []
    for primary in provider.load_keys(data):
        found = KeyKind.PUBLIC if primary.is_public else KeyKind.SECRET
        if found != kind:
            msg = f"Expected a {kind.name.lower()} key ring, found a {found.name.lower()} key"
            raise FormatError(msg, key_id=str(primary.fingerprint.keyid))
        rings.append(_build_ring(primary, kind))

    bundle = KeyRingBundle(kind=kind, rings=tuple(rings))
    logger.debug(
        "Key ring loaded",
        kind=kind.name,
        rings=len(bundle),
        keys=sum(len(ring) for ring in bundle),
    )
    return bundle


def _build_ring(primary: pgpy.PGPKey, kind: KeyKind) -> KeyRing:
    user_ids = tuple(str(uid.userid) for uid in primary.userids)
    keys = [_ring_key(primary, kind, is_primary=True, user_ids=user_ids)]
    keys.extend(
        _ring_key(subkey, kind, is_primary=False, user_ids=user_ids)
        for subkey in primary.subkeys.values()
    )
    return KeyRing(keys=tuple(keys))


def _ring_key(
    key: pgpy.PGPKey, kind: KeyKind, *, is_primary: bool, user_ids: tuple[str, ...]
) -> RingKey:
    algorithm = _public_key_algorithm(key)
    return RingKey(
        kind=kind,
        key_id=str(key.fingerprint.keyid).upper(),
        algorithm=algorithm,
        capabilities=_capabilities(key, algorithm),
        is_primary=is_primary,
        user_ids=user_ids,
        pgpy_key=key,
    )


def _public_key_algorithm(key: pgpy.PGPKey) -> PublicKeyAlgorithm | None:
    try:
        return PublicKeyAlgorithm(int(key.key_algorithm))
    except ValueError:
        return None


def _capabilities(key: pgpy.PGPKey, algorithm: PublicKeyAlgorithm | None) -> KeyCapabilities:
    """
    Combine what the algorithm can do with what the self-signature allows.

    Keys whose self-signature grants nothing beyond certification are judged
    by their algorithm alone.
    """
    can_encrypt = algorithm is not None and algorithm.can_encrypt
    can_sign = algorithm is not None and algorithm.can_sign

    flags = _key_flags(key)
    if flags - {KeyFlags.Certify}:
        can_encrypt = can_encrypt and bool(flags & _ENCRYPT_FLAGS)
        can_sign = can_sign and KeyFlags.Sign in flags

    return KeyCapabilities(can_encrypt=can_encrypt, can_sign=can_sign)


def _key_flags(key: pgpy.PGPKey) -> set[KeyFlags]:
    try:
        return set(key._get_key_flags())
    except StopIteration:
        # subkey without binding signature, or primary with only user attributes
        return set()
