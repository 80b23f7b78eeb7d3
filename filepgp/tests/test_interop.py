"""Messages exchanged with pgpy's own OpenPGP message implementation."""

from pathlib import Path

import pgpy

from filepgp.decoder import decode_message
from filepgp.encoder import encrypt_message
from filepgp.models.crypto import CompressionAlgorithm
from filepgp.models.keys import GeneratedKeyPair, KeyRingBundle, RingKey
from filepgp.tests.constants import PASSPHRASE


def test_decode_message_encrypted_by_pgpy(
    tmp_path: Path, key_pair: GeneratedKeyPair, secret_bundle: KeyRingBundle
) -> None:
    source = tmp_path / "pgpy.txt"
    source.write_bytes(b"from pgpy")
    public_key, _ = pgpy.PGPKey.from_blob(key_pair.public_key)
    message = pgpy.PGPMessage.new(str(source), file=True)
    encrypted = public_key.encrypt(message)

    decoded = decode_message(str(encrypted), secret_bundle, PASSPHRASE)

    assert decoded.envelope.payload == b"from pgpy"
    assert decoded.envelope.file_name == "pgpy.txt"
    assert decoded.integrity_protected
    assert decoded.compression == CompressionAlgorithm.ZIP


def test_pgpy_decrypts_encoded_message(key_pair: GeneratedKeyPair, recipient: RingKey) -> None:
    data = encrypt_message(b"to pgpy", recipient, file_name="ours.txt")
    message = pgpy.PGPMessage.from_blob(data)
    secret_key, _ = pgpy.PGPKey.from_blob(key_pair.secret_key)

    with secret_key.unlock(PASSPHRASE):
        decrypted = secret_key.decrypt(message)

    assert bytes(decrypted.message) == b"to pgpy"
    assert decrypted.filename == "ours.txt"
