"""
filepgp: OpenPGP file encryption for a single recipient.

Generate an RSA key pair, encrypt a file to the public key, and decrypt it
with the passphrase-protected secret key, with integrity checked end to end.

Example:
    ```python
    from filepgp import decrypt_file, encrypt_file, generate_key_pair_files

    private_key, public_key = generate_key_pair_files(
        "Alice <alice@example.com>", "passphrase", "keys/"
    )
    encrypt_file("report.pgp", "report.txt", public_key)

    # Written as out/report.txt: the original name wins over the target's
    result = decrypt_file("report.pgp", private_key, "passphrase", "out/x.bin")
    ```
"""

from filepgp.client import FilePGPClient
from filepgp.config import FilePGPConfig
from filepgp.decoder import decode_message, decrypt_message
from filepgp.encoder import compress_file, encrypt, encrypt_message
from filepgp.exceptions import (
    AuthError,
    CryptoError,
    EncodeError,
    FilePGPError,
    FormatError,
    IntegrityError,
    KeyNotFoundError,
    UnsupportedAlgorithmError,
    UnsupportedMessageError,
    ValidationError,
)
from filepgp.files import decrypt_file, encrypt_file, generate_key_pair_files
from filepgp.keygen import generate_key_pair, write_key_pair
from filepgp.keyring import (
    find_encryption_key,
    find_secret_key_by_id,
    find_signing_key,
    load_public_ring,
    load_secret_ring,
    read_public_key,
    read_secret_key,
    unlock_private_key,
)
from filepgp.models.crypto import CompressionAlgorithm, SymmetricAlgorithm
from filepgp.models.keys import GeneratedKeyPair, KeyRingBundle, RingKey
from filepgp.models.messages import DecodedMessage, DecryptResult

__version__ = "0.1.0"

__all__ = [
    # Client and configuration
    "FilePGPClient",
    "FilePGPConfig",
    # File adapters
    "generate_key_pair_files",
    "encrypt_file",
    "decrypt_file",
    # Pipeline
    "generate_key_pair",
    "write_key_pair",
    "encrypt",
    "encrypt_message",
    "compress_file",
    "decode_message",
    "decrypt_message",
    # Key rings
    "load_public_ring",
    "load_secret_ring",
    "find_encryption_key",
    "find_signing_key",
    "find_secret_key_by_id",
    "unlock_private_key",
    "read_public_key",
    "read_secret_key",
    # Models
    "CompressionAlgorithm",
    "SymmetricAlgorithm",
    "GeneratedKeyPair",
    "KeyRingBundle",
    "RingKey",
    "DecodedMessage",
    "DecryptResult",
    # Exceptions
    "FilePGPError",
    "ValidationError",
    "FormatError",
    "KeyNotFoundError",
    "AuthError",
    "CryptoError",
    "EncodeError",
    "IntegrityError",
    "UnsupportedAlgorithmError",
    "UnsupportedMessageError",
]
