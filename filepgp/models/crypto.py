"""
Cryptographic domain models.
"""

from dataclasses import dataclass
from enum import IntEnum


class SymmetricAlgorithm(IntEnum):
    """OpenPGP symmetric algorithm identifiers."""

    PLAINTEXT = 0
    IDEA = 1
    TRIPLE_DES = 2
    CAST5 = 3
    BLOWFISH = 4
    AES_128 = 7
    AES_192 = 8
    AES_256 = 9
    TWOFISH = 10
    CAMELLIA_128 = 11
    CAMELLIA_192 = 12
    CAMELLIA_256 = 13

    @property
    def key_size(self) -> int:
        """Get key size in bytes for this algorithm."""
        match self:
            case self.AES_128 | self.CAST5 | self.BLOWFISH | self.CAMELLIA_128 | self.IDEA:
                return 16
            case self.AES_192 | self.TRIPLE_DES | self.CAMELLIA_192:
                return 24
            case self.AES_256 | self.TWOFISH | self.CAMELLIA_256:
                return 32
            case _:
                return 0

    @property
    def block_size(self) -> int:
        """Get block size in bytes for this algorithm."""
        match self:
            case self.CAST5 | self.BLOWFISH | self.TRIPLE_DES | self.IDEA:
                return 8
            case (
                self.AES_128
                | self.AES_192
                | self.AES_256
                | self.TWOFISH
                | self.CAMELLIA_128
                | self.CAMELLIA_192
                | self.CAMELLIA_256
            ):
                return 16
            case _:
                return 0

    @property
    def is_aes(self) -> bool:
        return self in (self.AES_128, self.AES_192, self.AES_256)

    @property
    def is_camellia(self) -> bool:
        return self in (self.CAMELLIA_128, self.CAMELLIA_192, self.CAMELLIA_256)


class PublicKeyAlgorithm(IntEnum):
    """OpenPGP public key algorithm identifiers."""

    RSA_ENCRYPT_OR_SIGN = 1
    RSA_ENCRYPT_ONLY = 2
    RSA_SIGN_ONLY = 3
    ELGAMAL_ENCRYPT_ONLY = 16
    DSA = 17
    ECDH = 18
    ECDSA = 19
    ELGAMAL_ENCRYPT_OR_SIGN = 20
    EDDSA = 22
    X25519 = 25
    ED25519 = 27

    @property
    def can_encrypt(self) -> bool:
        """Whether keys of this algorithm can receive encrypted session keys."""
        return self in (
            self.RSA_ENCRYPT_OR_SIGN,
            self.RSA_ENCRYPT_ONLY,
            self.ELGAMAL_ENCRYPT_ONLY,
            self.ELGAMAL_ENCRYPT_OR_SIGN,
            self.ECDH,
            self.X25519,
        )

    @property
    def can_sign(self) -> bool:
        """Whether keys of this algorithm can issue signatures."""
        return self in (
            self.RSA_ENCRYPT_OR_SIGN,
            self.RSA_SIGN_ONLY,
            self.DSA,
            self.ECDSA,
            self.ELGAMAL_ENCRYPT_OR_SIGN,
            self.EDDSA,
            self.ED25519,
        )

    @property
    def is_rsa(self) -> bool:
        return self in (self.RSA_ENCRYPT_OR_SIGN, self.RSA_ENCRYPT_ONLY, self.RSA_SIGN_ONLY)


class CompressionAlgorithm(IntEnum):
    """OpenPGP compression algorithm identifiers."""

    UNCOMPRESSED = 0
    ZIP = 1
    ZLIB = 2
    BZIP2 = 3


class HashAlgorithm(IntEnum):
    """OpenPGP hash algorithm identifiers (used for S2K key protection)."""

    SHA1 = 2
    SHA256 = 8
    SHA384 = 9
    SHA512 = 10
    SHA224 = 11


@dataclass(frozen=True, kw_only=True)
class SessionKey:
    """
    Represents a symmetric session key for message encryption.

    Attributes:
        algorithm: The symmetric algorithm used.
        key_data: The raw key bytes.
    """

    algorithm: SymmetricAlgorithm
    key_data: bytes

    def __post_init__(self) -> None:
        """Validate key size matches algorithm."""
        expected = self.algorithm.key_size
        if not expected or (len(self.key_data) == expected):
            return
        msg = f"Key size mismatch: {self.algorithm.name} expects {expected} bytes, got {len(self.key_data)}"
        raise ValueError(msg)

    def __repr__(self) -> str:
        return f"SessionKey(algorithm={self.algorithm.name}, key_data=<{len(self.key_data)} bytes>)"

    @property
    def block_size(self) -> int:
        """Get the block size for this key's algorithm."""
        return self.algorithm.block_size

    @property
    def checksum(self) -> int:
        """Two-octet checksum carried next to the key in session-key packets."""
        return sum(self.key_data) % 65536
