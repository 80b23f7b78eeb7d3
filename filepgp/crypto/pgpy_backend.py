"""
Cryptographic provider implementation using pgpy and cryptography.

pgpy owns the key formats (parsing, generation, passphrase protection);
cryptography supplies the RSA, block cipher and random primitives.
"""

import os
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager

import pgpy
import structlog
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from pgpy.constants import PubKeyAlgorithm

from filepgp.crypto import cfb
from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.exceptions import (
    AuthError,
    CryptoError,
    FormatError,
    UnsupportedAlgorithmError,
    ValidationError,
)
from filepgp.models.crypto import PublicKeyAlgorithm, SessionKey, SymmetricAlgorithm
from filepgp.models.keys import KeyKind, PrivateKey, RingKey
from filepgp.models.messages import SessionKeyEntry
from filepgp.packets import encode_mpi, parse_mpi

logger = structlog.get_logger(__name__)

_VALID_KEY_SIZES = (16, 24, 32)
_PKESK_VERSION = 3
# pgpy always generates RSA keys with F4
_SUPPORTED_PUBLIC_EXPONENT = 65537


class PgpyProvider:
    """
    Cryptographic provider backed by pgpy.

    Example:
        provider = PgpyProvider()
        session_key = provider.generate_session_key(SymmetricAlgorithm.AES_128)
        entry = provider.wrap_session_key(recipient, session_key)
    """

    @staticmethod
    def load_keys(data: bytes) -> list[pgpy.PGPKey]:
        """
        Parse every transferable key in a binary or armored key-ring stream.

        Returns:
            Primary keys in stored order, each carrying its subkeys.

        Raises:
            FormatError: If the stream is not a key-ring encoding.
        """
        try:
            loaded = pgpy.PGPKey.from_blob(data)
        except Exception as e:
            msg = f"Failed to parse key ring: {e}"
            raise FormatError(msg) from e

        primary, others = loaded if isinstance(loaded, tuple) else (loaded, {})
        if primary.fingerprint is None:
            msg = "Key ring stream contains no key"
            raise FormatError(msg)

        # others repeats the first key; subkeys are already attached to their primary
        keys = [primary]
        keys.extend(
            key
            for key in others.values()
            if key.is_primary and key.fingerprint != primary.fingerprint
        )
        return keys

    @staticmethod
    def generate_keypair(key_size_bits: int, public_exponent: int) -> pgpy.PGPKey:
        if public_exponent != _SUPPORTED_PUBLIC_EXPONENT:
            msg = f"Unsupported RSA public exponent: {public_exponent}"
            raise CryptoError(msg, public_exponent=public_exponent)
        try:
            return pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, key_size_bits)
        except Exception as e:
            msg = f"Key generation failed: {e}"
            raise CryptoError(msg) from e

    @contextmanager
    def unlock_key(self, key: RingKey, passphrase: SecureBytes) -> Iterator[PrivateKey]:
        """
        Unlock a secret key with its passphrase.

        The private material is wiped again when the context exits.

        Raises:
            ValidationError: If ``key`` is a public key.
            AuthError: If the passphrase is incorrect or the key is corrupted.
        """
        if key.kind != KeyKind.SECRET:
            msg = "Only secret keys can be unlocked"
            raise ValidationError(msg, key_id=key.key_id)

        private_copy = self._private_copy(key)
        with ExitStack() as stack:
            try:
                stack.enter_context(private_copy.unlock(passphrase.decode()))
            except Exception as e:
                msg = "Failed to unlock key: wrong passphrase or corrupted secret key"
                raise AuthError(msg, key_id=key.key_id) from e
            yield PrivateKey(key_id=key.key_id, algorithm=key.algorithm, pgpy_key=private_copy)

    def generate_session_key(self, algorithm: SymmetricAlgorithm) -> SessionKey:
        if algorithm.key_size == 0:
            msg = f"Cannot generate session key for {algorithm.name}"
            raise UnsupportedAlgorithmError(msg, algorithm=int(algorithm))
        return SessionKey(algorithm=algorithm, key_data=self.random_bytes(algorithm.key_size))

    def symmetric_encrypt(
        self, session_key: SessionKey, plaintext: bytes, *, with_integrity: bool
    ) -> bytes:
        prefix = self.random_bytes(session_key.block_size)
        if with_integrity:
            return cfb.encrypt_integrity_protected(plaintext, session_key, prefix)
        return cfb.encrypt_legacy(plaintext, session_key, prefix)

    @staticmethod
    def symmetric_decrypt(
        session_key: SessionKey, encrypted_data: bytes, *, with_integrity: bool
    ) -> bytes:
        if with_integrity:
            return cfb.decrypt_integrity_protected(encrypted_data, session_key)
        return cfb.decrypt_legacy(encrypted_data, session_key)

    def wrap_session_key(self, public_key: RingKey, session_key: SessionKey) -> SessionKeyEntry:
        """
        Encrypt the session key payload to an RSA recipient (PKCS#1 v1.5).

        Payload: [algo(1)] + [key(N)] + [checksum(2)]
        """
        algorithm = self._require_rsa(public_key.algorithm)
        payload = (
            bytes([session_key.algorithm])
            + session_key.key_data
            + session_key.checksum.to_bytes(2, "big")
        )
        try:
            ciphertext = self._rsa_public_key(public_key).encrypt(payload, padding.PKCS1v15())
        except Exception as e:
            msg = f"Failed to encrypt session key: {e}"
            raise CryptoError(msg, key_id=public_key.key_id) from e

        return SessionKeyEntry(
            version=_PKESK_VERSION,
            key_id=public_key.key_id,
            algorithm=algorithm,
            encrypted_session_key=encode_mpi(int.from_bytes(ciphertext, "big")),
        )

    def unwrap_session_key(self, private_key: PrivateKey, entry: SessionKeyEntry) -> SessionKey:
        self._require_rsa(entry.algorithm)
        try:
            encrypted, _ = parse_mpi(entry.encrypted_session_key)
            rsa_key = self._rsa_private_key(private_key)
            ciphertext = encrypted.to_bytes((rsa_key.key_size + 7) // 8, "big")
            payload = rsa_key.decrypt(ciphertext, padding.PKCS1v15())
        except (FormatError, CryptoError):
            raise
        except Exception as e:
            msg = f"Failed to decrypt session key: {e}"
            raise CryptoError(msg, key_id=entry.key_id) from e

        return self._parse_session_key_payload(payload)

    @staticmethod
    def random_bytes(size: int) -> bytes:
        return os.urandom(size)

    @staticmethod
    def _private_copy(key: RingKey) -> pgpy.PGPKey:
        """
        Re-parse the key's transferable key so unlocking never touches the loaded ring.

        pgpy decrypts secret material in place and wipes it on exit, which would
        break concurrent decodes sharing one bundle.
        """
        root = key.pgpy_key.parent or key.pgpy_key
        try:
            loaded = pgpy.PGPKey.from_blob(bytes(root))
        except Exception as e:
            msg = f"Failed to copy secret key: {e}"
            raise AuthError(msg, key_id=key.key_id) from e

        primary = loaded[0] if isinstance(loaded, tuple) else loaded
        for candidate in (primary, *primary.subkeys.values()):
            if str(candidate.fingerprint.keyid).upper() == key.key_id:
                return candidate
        msg = "Secret key missing from its own key ring"
        raise AuthError(msg, key_id=key.key_id)

    @staticmethod
    def _require_rsa(algorithm: PublicKeyAlgorithm | None) -> PublicKeyAlgorithm:
        if algorithm is not None and algorithm.is_rsa:
            return algorithm
        msg = f"Unsupported recipient algorithm: {algorithm!r}"
        raise UnsupportedAlgorithmError(msg, algorithm=None if algorithm is None else int(algorithm))

    @staticmethod
    def _rsa_public_key(key: RingKey) -> rsa.RSAPublicKey:
        material = key.pgpy_key._key.keymaterial
        return rsa.RSAPublicNumbers(int(material.e), int(material.n)).public_key(default_backend())

    @staticmethod
    def _rsa_private_key(key: PrivateKey) -> rsa.RSAPrivateKey:
        if not key.is_unlocked:
            msg = "Private key is no longer unlocked"
            raise CryptoError(msg, key_id=key.key_id)
        material = key.pgpy_key._key.keymaterial
        try:
            p, q, d = int(material.p), int(material.q), int(material.d)
            public_numbers = rsa.RSAPublicNumbers(int(material.e), int(material.n))
            numbers = rsa.RSAPrivateNumbers(
                p,
                q,
                d,
                rsa.rsa_crt_dmp1(d, p),
                rsa.rsa_crt_dmq1(d, q),
                rsa.rsa_crt_iqmp(p, q),
                public_numbers,
            )
            return numbers.private_key(default_backend())
        except Exception as e:
            msg = f"Private key material unavailable: {e}"
            raise CryptoError(msg, key_id=key.key_id) from e

    def _parse_session_key_payload(self, payload: bytes) -> SessionKey:
        """Parse decrypted session key payload: [algo(1)] + [key(N)] + [checksum(2)]."""
        self._validate_payload_length(payload)
        algorithm = self._parse_algorithm(payload[0])
        key_size = self._determine_key_size(algorithm, len(payload))
        key_data = payload[1 : 1 + key_size]
        checksum = payload[1 + key_size : 1 + key_size + 2]
        self._verify_checksum(key_data, checksum)
        return SessionKey(algorithm=algorithm, key_data=key_data)

    @staticmethod
    def _validate_payload_length(payload: bytes) -> None:
        if len(payload) >= 3:
            return
        msg = f"Session key payload too short: {len(payload)} bytes"
        raise CryptoError(msg)

    @staticmethod
    def _parse_algorithm(algorithm_id: int) -> SymmetricAlgorithm:
        try:
            return SymmetricAlgorithm(algorithm_id)
        except ValueError:
            msg = f"Unknown symmetric algorithm: {algorithm_id}"
            raise CryptoError(msg) from None

    @staticmethod
    def _determine_key_size(algorithm: SymmetricAlgorithm, payload_length: int) -> int:
        key_size = algorithm.key_size
        if key_size > 0:
            if payload_length != key_size + 3:
                msg = f"Session key payload length {payload_length} does not match {algorithm.name}"
                raise CryptoError(msg)
            return key_size
        inferred_size = payload_length - 3
        if inferred_size not in _VALID_KEY_SIZES:
            msg = f"Cannot determine key size for algorithm {algorithm.value}"
            raise CryptoError(msg)
        return inferred_size

    @staticmethod
    def _verify_checksum(key_data: bytes, checksum: bytes) -> None:
        computed = sum(key_data) % 65536
        expected = int.from_bytes(checksum, "big")
        if computed == expected:
            return
        msg = "Session key checksum mismatch"
        raise CryptoError(msg)
