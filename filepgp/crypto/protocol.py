"""
Cryptographic provider protocol definition.

This defines the primitives the message pipeline relies on, allowing different
implementations (pgpy, a test double, etc.) to be swapped without changing
the encoder, decoder or key generator.
"""

from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable

import pgpy

from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.models.crypto import SessionKey, SymmetricAlgorithm
from filepgp.models.keys import PrivateKey, RingKey
from filepgp.models.messages import SessionKeyEntry


@runtime_checkable
class CryptoProvider(Protocol):
    """
    Abstract interface for the cryptographic provider.

    Implementations supply key-ring parsing, key generation and unlocking,
    session-key wrapping, symmetric encryption and a secure random source.
    """

    def load_keys(self, data: bytes) -> list[pgpy.PGPKey]:
        """
        Parse a binary or armored key-ring stream.

        Raises:
            FormatError: If the stream is not a key-ring encoding.
        """
        ...

    def generate_keypair(self, key_size_bits: int, public_exponent: int) -> pgpy.PGPKey:
        """
        Generate a fresh, unprotected RSA primary key.

        Raises:
            CryptoError: If the parameters are unsupported or generation fails.
        """
        ...

    def unlock_key(
        self, key: RingKey, passphrase: SecureBytes
    ) -> AbstractContextManager[PrivateKey]:
        """
        Unlock a secret key for the duration of a ``with`` block.

        Raises:
            AuthError: If the passphrase is wrong or the secret material is corrupted.
        """
        ...

    def generate_session_key(self, algorithm: SymmetricAlgorithm) -> SessionKey:
        """Generate a random session key for ``algorithm``."""
        ...

    def symmetric_encrypt(
        self, session_key: SessionKey, plaintext: bytes, *, with_integrity: bool
    ) -> bytes:
        """
        Encrypt serialized packets under the session key.

        Returns:
            Body of a SEIPD packet when ``with_integrity``, else of a SED packet.
        """
        ...

    def symmetric_decrypt(
        self, session_key: SessionKey, encrypted_data: bytes, *, with_integrity: bool
    ) -> bytes:
        """
        Decrypt a SEIPD or SED packet body.

        Raises:
            CryptoError: If decryption fails.
            IntegrityError: If the integrity tag does not verify.
        """
        ...

    def wrap_session_key(self, public_key: RingKey, session_key: SessionKey) -> SessionKeyEntry:
        """Encrypt the session key to a recipient public key."""
        ...

    def unwrap_session_key(self, private_key: PrivateKey, entry: SessionKeyEntry) -> SessionKey:
        """
        Recover the session key from a recipient entry.

        Raises:
            CryptoError: If decryption or the checksum fails.
        """
        ...

    def random_bytes(self, size: int) -> bytes:
        """Return ``size`` cryptographically secure random bytes."""
        ...
