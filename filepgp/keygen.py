"""
Key pair generation.

Produces a passphrase-protected, self-certified RSA secret key bound to an
identity, plus the matching public key, optionally ASCII-armored.
"""

from typing import BinaryIO

import pgpy
import structlog
from pgpy.constants import CompressionAlgorithm as PgpyCompressionAlgorithm
from pgpy.constants import HashAlgorithm as PgpyHashAlgorithm
from pgpy.constants import KeyFlags, SymmetricKeyAlgorithm

from filepgp.config import FilePGPConfig
from filepgp.crypto.pgpy_backend import PgpyProvider
from filepgp.crypto.protocol import CryptoProvider
from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.exceptions import CryptoError, ValidationError
from filepgp.models.keys import GeneratedKeyPair

logger = structlog.get_logger(__name__)

_KEY_USAGE = {KeyFlags.Sign, KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage}
_PREFERRED_HASHES = [PgpyHashAlgorithm.SHA256, PgpyHashAlgorithm.SHA512]
_PREFERRED_CIPHERS = [SymmetricKeyAlgorithm.AES128, SymmetricKeyAlgorithm.AES256]
_PREFERRED_COMPRESSION = [
    PgpyCompressionAlgorithm.ZIP,
    PgpyCompressionAlgorithm.ZLIB,
    PgpyCompressionAlgorithm.Uncompressed,
]


def generate_key_pair(
    identity: str,
    passphrase: SecureBytes | str | bytes,
    key_size_bits: int | None = None,
    public_exponent: int | None = None,
    *,
    armor: bool | None = None,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> GeneratedKeyPair:
    """
    Generate an RSA key pair bound to ``identity``.

    Args:
        identity: User ID the key is certified for, e.g. ``"Alice <alice@example.com>"``.
        passphrase: Passphrase protecting the secret key at rest.
        key_size_bits: RSA modulus size, defaults to ``config.key_size_bits``.
        public_exponent: RSA public exponent, defaults to ``config.public_exponent``.
            The pgpy provider only generates keys with 65537; any other value
            raises ``CryptoError``.
        armor: ASCII-armor both keys, defaults to ``config.armor``.
        config: Algorithm defaults.
        provider: Cryptographic provider.

    Returns:
        Both encoded keys and the generated key identifier.

    Raises:
        ValidationError: If identity or passphrase is empty.
        CryptoError: If the provider cannot produce or protect the key.
    """
    config = config or FilePGPConfig()
    provider = provider or PgpyProvider()
    if armor is None:
        armor = config.armor
    if key_size_bits is None:
        key_size_bits = config.key_size_bits
    if public_exponent is None:
        public_exponent = config.public_exponent

    if not identity or not identity.strip():
        msg = "Identity must not be empty"
        raise ValidationError(msg)

    secret = SecureBytes.coerce(passphrase)
    try:
        if not secret:
            msg = "Passphrase must not be empty"
            raise ValidationError(msg)

        key = provider.generate_keypair(key_size_bits, public_exponent)
        _certify_and_protect(key, identity, secret, config)
    finally:
        if secret is not passphrase:
            secret.clear()

    public_key = key.pubkey
    key_id = str(key.fingerprint.keyid).upper()
    logger.debug("Key pair generated", key_id=key_id, key_size=key_size_bits, armored=armor)

    if armor:
        return GeneratedKeyPair(
            secret_key=str(key).encode("ascii"),
            public_key=str(public_key).encode("ascii"),
            key_id=key_id,
            armored=True,
        )
    return GeneratedKeyPair(
        secret_key=bytes(key),
        public_key=bytes(public_key),
        key_id=key_id,
        armored=False,
    )


def write_key_pair(
    secret_sink: BinaryIO,
    public_sink: BinaryIO,
    identity: str,
    passphrase: SecureBytes | str | bytes,
    key_size_bits: int | None = None,
    public_exponent: int | None = None,
    *,
    armor: bool | None = None,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> GeneratedKeyPair:
    """
    Generate a key pair and write each half to its sink.

    The two writes are not transactional: if the public sink fails, the
    secret key has already been written.
    """
    pair = generate_key_pair(
        identity,
        passphrase,
        key_size_bits,
        public_exponent,
        armor=armor,
        config=config,
        provider=provider,
    )
    secret_sink.write(pair.secret_key)
    public_sink.write(pair.public_key)
    return pair


def _certify_and_protect(
    key: pgpy.PGPKey, identity: str, passphrase: SecureBytes, config: FilePGPConfig
) -> None:
    try:
        key.add_uid(
            pgpy.PGPUID.new(identity),
            usage=_KEY_USAGE,
            hashes=_PREFERRED_HASHES,
            ciphers=_PREFERRED_CIPHERS,
            compression=_PREFERRED_COMPRESSION,
        )
        key.protect(
            passphrase.decode(),
            SymmetricKeyAlgorithm(int(config.key_protection_algorithm)),
            PgpyHashAlgorithm(int(config.key_protection_hash)),
        )
    except Exception as e:
        msg = f"Failed to certify and protect key: {e}"
        raise CryptoError(msg) from e
