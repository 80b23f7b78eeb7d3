"""
OpenPGP CFB encryption of message payloads.

Two variants are handled:
- Symmetrically Encrypted Integrity Protected Data (SEIPD, tag 18, version 1):
  plain CFB with a zero IV over prefix + data + MDC packet.
- Symmetrically Encrypted Data (SED, tag 9): OpenPGP CFB with the resync
  step after the random prefix and no integrity tag.
"""

import hashlib
import hmac

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import Cipher, CipherAlgorithm, algorithms, modes

from filepgp.exceptions import CryptoError, FormatError, IntegrityError, UnsupportedAlgorithmError
from filepgp.models.crypto import SessionKey

_SEIPD_VERSION = 1
_MDC_HEADER = b"\xd3\x14"
_MDC_HASH_SIZE = 20
_MDC_PACKET_SIZE = 22  # 2-byte header + 20-byte SHA-1


def encrypt_integrity_protected(plaintext: bytes, session_key: SessionKey, prefix: bytes) -> bytes:
    """
    Encrypt ``plaintext`` as a SEIPD v1 packet body.

    Args:
        plaintext: Serialized packets to protect.
        session_key: Session key to encrypt under.
        prefix: ``block_size`` random bytes.

    Returns:
        Packet body: version octet followed by the ciphertext.
    """
    block_size = _require_block_size(session_key)
    _validate_prefix(prefix, block_size)

    data = prefix + prefix[-2:] + plaintext + _MDC_HEADER
    data += hashlib.sha1(data).digest()

    encryptor = _cipher(session_key, bytes(block_size)).encryptor()
    return bytes([_SEIPD_VERSION]) + encryptor.update(data) + encryptor.finalize()


def decrypt_integrity_protected(encrypted_data: bytes, session_key: SessionKey) -> bytes:
    """
    Decrypt a SEIPD v1 packet body and verify its MDC.

    Args:
        encrypted_data: The packet body (version octet included).
        session_key: The session key for decryption.

    Returns:
        The protected plaintext (prefix and MDC removed).

    Raises:
        FormatError: If the packet is too short.
        IntegrityError: If the version octet, quick check or MDC verification fails.
    """
    if len(encrypted_data) < 1:
        raise FormatError("SEIPD packet too short")

    version = encrypted_data[0]
    if version != _SEIPD_VERSION:
        # No checksum covers the version octet
        msg = f"Unsupported SEIPD version: {version}"
        raise IntegrityError(msg)

    block_size = _require_block_size(session_key)
    ciphertext = encrypted_data[1:]
    prefix_size = block_size + 2
    min_size = prefix_size + _MDC_PACKET_SIZE
    if len(ciphertext) < min_size:
        raise FormatError(f"Encrypted data too short: {len(ciphertext)} < {min_size}")

    decryptor = _cipher(session_key, bytes(block_size)).decryptor()
    plaintext = decryptor.update(ciphertext) + decryptor.finalize()

    if not _prefix_matches(plaintext, block_size):
        raise IntegrityError("Quick check failed on integrity protected data")
    _verify_mdc(plaintext)

    return plaintext[prefix_size:-_MDC_PACKET_SIZE]


def encrypt_legacy(plaintext: bytes, session_key: SessionKey, prefix: bytes) -> bytes:
    """
    Encrypt ``plaintext`` as a SED packet body (no integrity tag).

    The random prefix is encrypted first with a zero IV; the cipher is then
    resynchronized on the last ``block_size`` bytes of that ciphertext.
    """
    block_size = _require_block_size(session_key)
    _validate_prefix(prefix, block_size)

    encryptor = _cipher(session_key, bytes(block_size)).encryptor()
    prefix_ciphertext = encryptor.update(prefix + prefix[-2:]) + encryptor.finalize()

    resync_iv = prefix_ciphertext[2:]
    encryptor = _cipher(session_key, resync_iv).encryptor()
    return prefix_ciphertext + encryptor.update(plaintext) + encryptor.finalize()


def decrypt_legacy(ciphertext: bytes, session_key: SessionKey) -> bytes:
    """
    Decrypt a SED packet body.

    Raises:
        FormatError: If the ciphertext is shorter than the prefix.
        CryptoError: If the prefix check fails, possibly wrong session key.
    """
    block_size = _require_block_size(session_key)
    prefix_size = block_size + 2
    if len(ciphertext) < prefix_size:
        raise FormatError(f"Encrypted data too short: {len(ciphertext)} < {prefix_size}")

    prefix_ciphertext = ciphertext[:prefix_size]
    decryptor = _cipher(session_key, bytes(block_size)).decryptor()
    prefix_plaintext = decryptor.update(prefix_ciphertext) + decryptor.finalize()

    if not _prefix_matches(prefix_plaintext, block_size):
        raise CryptoError("CFB prefix verification failed, possibly wrong key")

    decryptor = _cipher(session_key, prefix_ciphertext[2:]).decryptor()
    return decryptor.update(ciphertext[prefix_size:]) + decryptor.finalize()


def _cipher(session_key: SessionKey, iv: bytes) -> Cipher:
    return Cipher(_block_cipher(session_key), modes.CFB(iv), backend=default_backend())


def _block_cipher(session_key: SessionKey) -> CipherAlgorithm:
    algorithm = session_key.algorithm
    if algorithm.is_aes:
        return algorithms.AES(session_key.key_data)
    if algorithm.is_camellia:
        return algorithms.Camellia(session_key.key_data)
    msg = f"Unsupported symmetric algorithm: {algorithm.name}"
    raise UnsupportedAlgorithmError(msg, algorithm=int(algorithm))


def _require_block_size(session_key: SessionKey) -> int:
    block_size = session_key.block_size
    if block_size == 0:
        raise UnsupportedAlgorithmError(
            f"Unknown block size for {session_key.algorithm.name}",
            algorithm=int(session_key.algorithm),
        )
    return block_size


def _validate_prefix(prefix: bytes, block_size: int) -> None:
    if len(prefix) == block_size:
        return
    msg = f"Random prefix must be {block_size} bytes, got {len(prefix)}"
    raise ValueError(msg)


def _prefix_matches(plaintext: bytes, block_size: int) -> bool:
    # The last 2 bytes of the random block are repeated right after it
    return plaintext[block_size - 2 : block_size] == plaintext[block_size : block_size + 2]


def _verify_mdc(plaintext: bytes) -> None:
    mdc_packet = plaintext[-_MDC_PACKET_SIZE:]

    if mdc_packet[:2] != _MDC_HEADER:
        raise IntegrityError(f"Invalid MDC header: {mdc_packet[:2].hex()}")

    stored_hash = mdc_packet[2:]
    computed_hash = hashlib.sha1(plaintext[:-_MDC_HASH_SIZE]).digest()

    if not hmac.compare_digest(computed_hash, stored_hash):
        raise IntegrityError("MDC verification failed, data may be corrupted or tampered")
