"""
filepgp configuration.
"""

from dataclasses import dataclass

from filepgp.models.crypto import CompressionAlgorithm, HashAlgorithm, SymmetricAlgorithm

_MIN_KEY_SIZE_BITS = 1024


@dataclass(frozen=True, kw_only=True)
class FilePGPConfig:
    """
    Attributes:
        symmetric_algorithm: Cipher for message payloads.
        compression_algorithm: Compression applied to the literal data envelope.
        compression_level: Compression level for ZIP, ZLIB and BZIP2 (1-9).
        armor: ASCII-armor encrypted messages and generated keys.
        with_integrity_check: Add an MDC integrity tag to encrypted payloads.
        key_size_bits: RSA modulus size for generated keys.
        public_exponent: RSA public exponent for generated keys. The pgpy provider
            supports only 65537.
        key_protection_algorithm: Cipher protecting generated secret keys at rest.
        key_protection_hash: Hash used by the S2K passphrase derivation.
        max_payload_size: Upper bound in bytes on decompressed message content.
    """

    symmetric_algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_128
    compression_algorithm: CompressionAlgorithm = CompressionAlgorithm.ZIP
    compression_level: int = 6
    armor: bool = True
    with_integrity_check: bool = True
    key_size_bits: int = 1024
    public_exponent: int = 65537
    key_protection_algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_256
    key_protection_hash: HashAlgorithm = HashAlgorithm.SHA256
    max_payload_size: int = 1 << 30

    def __post_init__(self) -> None:
        if self.symmetric_algorithm.key_size == 0:
            msg = "symmetric_algorithm must be a block cipher"
            raise ValueError(msg)
        if self.key_protection_algorithm.key_size == 0:
            msg = "key_protection_algorithm must be a block cipher"
            raise ValueError(msg)
        if not 1 <= self.compression_level <= 9:
            msg = "compression_level must be between 1 and 9"
            raise ValueError(msg)
        if self.key_size_bits < _MIN_KEY_SIZE_BITS:
            msg = f"key_size_bits must be at least {_MIN_KEY_SIZE_BITS}"
            raise ValueError(msg)
        if self.public_exponent < 3 or self.public_exponent % 2 == 0:
            msg = "public_exponent must be an odd integer >= 3"
            raise ValueError(msg)
        if self.max_payload_size <= 0:
            msg = "max_payload_size must be positive"
            raise ValueError(msg)
