"""
Cryptographic provider layer.

This module provides:
- The CryptoProvider protocol consumed by the message pipeline
- PgpyProvider, the default pgpy/cryptography implementation
- OpenPGP CFB modes (integrity protected and legacy resync)
- Secure memory handling for passphrases
"""

from filepgp.crypto.cfb import (
    decrypt_integrity_protected,
    decrypt_legacy,
    encrypt_integrity_protected,
    encrypt_legacy,
)
from filepgp.crypto.pgpy_backend import PgpyProvider
from filepgp.crypto.protocol import CryptoProvider
from filepgp.crypto.secure_bytes import SecureBytes

__all__ = [
    "SecureBytes",
    "CryptoProvider",
    "PgpyProvider",
    "encrypt_integrity_protected",
    "decrypt_integrity_protected",
    "encrypt_legacy",
    "decrypt_legacy",
]
