from collections.abc import Callable
from pathlib import Path

import pgpy
import pytest
from pgpy.constants import HashAlgorithm, KeyFlags, PubKeyAlgorithm, SymmetricKeyAlgorithm

from filepgp.keygen import generate_key_pair
from filepgp.keyring import find_encryption_key, load_public_ring, load_secret_ring
from filepgp.models.keys import GeneratedKeyPair, KeyRingBundle, RingKey
from filepgp.tests.constants import (
    IDENTITY,
    OTHER_IDENTITY,
    OTHER_PASSPHRASE,
    PASSPHRASE,
    SUBKEY_IDENTITY,
    TEST_KEY_SIZE,
)


@pytest.fixture(scope="session")
def key_pair() -> GeneratedKeyPair:
    return generate_key_pair(IDENTITY, PASSPHRASE, TEST_KEY_SIZE)


@pytest.fixture(scope="session")
def binary_key_pair() -> GeneratedKeyPair:
    return generate_key_pair(IDENTITY, PASSPHRASE, TEST_KEY_SIZE, armor=False)


@pytest.fixture(scope="session")
def other_key_pair() -> GeneratedKeyPair:
    return generate_key_pair(OTHER_IDENTITY, OTHER_PASSPHRASE, TEST_KEY_SIZE)


@pytest.fixture(scope="session")
def subkey_key_pair() -> GeneratedKeyPair:
    """A sign-only primary key with a separate encryption subkey, binary encoded."""
    primary = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, TEST_KEY_SIZE)
    primary.add_uid(
        pgpy.PGPUID.new(SUBKEY_IDENTITY),
        usage={KeyFlags.Certify, KeyFlags.Sign},
        hashes=[HashAlgorithm.SHA256],
    )
    subkey = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, TEST_KEY_SIZE)
    primary.add_subkey(subkey, usage={KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage})
    primary.protect(PASSPHRASE, SymmetricKeyAlgorithm.AES256, HashAlgorithm.SHA256)
    return GeneratedKeyPair(
        secret_key=bytes(primary),
        public_key=bytes(primary.pubkey),
        key_id=str(primary.fingerprint.keyid).upper(),
        armored=False,
    )


@pytest.fixture
def public_bundle(key_pair: GeneratedKeyPair) -> KeyRingBundle:
    return load_public_ring(key_pair.public_key)


@pytest.fixture
def secret_bundle(key_pair: GeneratedKeyPair) -> KeyRingBundle:
    return load_secret_ring(key_pair.secret_key)


@pytest.fixture
def recipient(public_bundle: KeyRingBundle) -> RingKey:
    return find_encryption_key(public_bundle)


@pytest.fixture
def key_files(tmp_path: Path, key_pair: GeneratedKeyPair) -> tuple[Path, Path]:
    """Write the session key pair to a key store and return (private, public) paths."""
    key_store = tmp_path / "keys"
    key_store.mkdir()
    private_path = key_store / "PGPPrivateKey.asc"
    public_path = key_store / "PGPPublicKey.asc"
    private_path.write_bytes(key_pair.secret_key)
    public_path.write_bytes(key_pair.public_key)
    return private_path, public_path


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str = "report.txt", content: bytes = b"quarterly numbers\n") -> Path:
        path = tmp_path / "plain" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make
