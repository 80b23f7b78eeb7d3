import pytest

from filepgp.armor import dearmor
from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.exceptions import AuthError, FormatError, KeyNotFoundError
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
from filepgp.models.crypto import PublicKeyAlgorithm
from filepgp.models.keys import GeneratedKeyPair, KeyKind, KeyRingBundle
from filepgp.tests.constants import IDENTITY, PASSPHRASE


def test_load_public_ring(key_pair: GeneratedKeyPair) -> None:
    bundle = load_public_ring(key_pair.public_key)

    assert bundle.kind == KeyKind.PUBLIC
    assert len(bundle) == 1
    primary = bundle.rings[0].primary
    assert primary.is_primary
    assert primary.key_id == key_pair.key_id
    assert primary.algorithm == PublicKeyAlgorithm.RSA_ENCRYPT_OR_SIGN
    assert IDENTITY in primary.user_ids


def test_load_secret_ring_from_binary(binary_key_pair: GeneratedKeyPair) -> None:
    bundle = load_secret_ring(binary_key_pair.secret_key)

    assert bundle.kind == KeyKind.SECRET
    primary = bundle.rings[0].primary
    assert primary.key_id == binary_key_pair.key_id
    assert primary.is_protected


def test_load_public_ring_rejects_secret_key(key_pair: GeneratedKeyPair) -> None:
    with pytest.raises(FormatError, match="Expected a public key ring, found a secret key"):
        load_public_ring(key_pair.secret_key)


def test_load_secret_ring_rejects_public_key(key_pair: GeneratedKeyPair) -> None:
    with pytest.raises(FormatError, match="Expected a secret key ring, found a public key"):
        load_secret_ring(key_pair.public_key)


@pytest.mark.parametrize("data", [b"", b"garbage bytes"])
def test_load_ring_rejects_invalid_stream(data: bytes) -> None:
    with pytest.raises(FormatError):
        load_public_ring(data)


def test_generated_key_capabilities(public_bundle: KeyRingBundle) -> None:
    key = public_bundle.rings[0].primary

    assert key.can_encrypt
    assert key.can_sign


def test_find_encryption_key_is_repeatable(public_bundle: KeyRingBundle) -> None:
    first = find_encryption_key(public_bundle)
    second = find_encryption_key(public_bundle)

    assert first.key_id == second.key_id
    assert first.kind == KeyKind.PUBLIC


def test_find_encryption_key_ignores_secret_keys(secret_bundle: KeyRingBundle) -> None:
    with pytest.raises(KeyNotFoundError):
        find_encryption_key(secret_bundle)


def test_find_signing_key(secret_bundle: KeyRingBundle, public_bundle: KeyRingBundle) -> None:
    assert find_signing_key(secret_bundle).kind == KeyKind.SECRET
    with pytest.raises(KeyNotFoundError):
        find_signing_key(public_bundle)


def test_find_secret_key_by_id(secret_bundle: KeyRingBundle, key_pair: GeneratedKeyPair) -> None:
    key = find_secret_key_by_id(secret_bundle, key_pair.key_id.lower())

    assert key.key_id == key_pair.key_id


def test_find_secret_key_by_id_missing(secret_bundle: KeyRingBundle) -> None:
    with pytest.raises(KeyNotFoundError) as exc_info:
        find_secret_key_by_id(secret_bundle, "00000000deadbeef")

    assert exc_info.value.key_id == "00000000DEADBEEF"


def test_find_secret_key_by_id_rejects_public_bundle(
    public_bundle: KeyRingBundle, key_pair: GeneratedKeyPair
) -> None:
    with pytest.raises(KeyNotFoundError):
        find_secret_key_by_id(public_bundle, key_pair.key_id)


def test_read_public_and_secret_key(key_pair: GeneratedKeyPair) -> None:
    assert read_public_key(key_pair.public_key).key_id == key_pair.key_id
    assert read_secret_key(key_pair.secret_key).key_id == key_pair.key_id


def test_unlock_private_key(secret_bundle: KeyRingBundle) -> None:
    secret_key = find_signing_key(secret_bundle)

    with unlock_private_key(secret_key, PASSPHRASE) as private_key:
        assert private_key.is_unlocked
        assert private_key.key_id == secret_key.key_id

    assert not private_key.is_unlocked


def test_unlock_private_key_wrong_passphrase(secret_bundle: KeyRingBundle) -> None:
    secret_key = find_signing_key(secret_bundle)

    with pytest.raises(AuthError):
        with unlock_private_key(secret_key, "not the passphrase"):
            pass


def test_unlock_private_key_keeps_caller_passphrase(secret_bundle: KeyRingBundle) -> None:
    passphrase = SecureBytes.from_string(PASSPHRASE)

    with unlock_private_key(find_signing_key(secret_bundle), passphrase):
        pass

    assert passphrase == PASSPHRASE.encode()


def test_find_encryption_key_follows_ring_order(
    key_pair: GeneratedKeyPair, other_key_pair: GeneratedKeyPair
) -> None:
    ours = dearmor(key_pair.public_key, "PUBLIC KEY BLOCK")
    theirs = dearmor(other_key_pair.public_key, "PUBLIC KEY BLOCK")

    first_theirs = load_public_ring(theirs + ours)
    first_ours = load_public_ring(ours + theirs)

    assert len(first_theirs) == 2
    assert find_encryption_key(first_theirs).key_id == other_key_pair.key_id
    assert find_encryption_key(first_ours).key_id == key_pair.key_id


def test_subkey_ring_selection(subkey_key_pair: GeneratedKeyPair) -> None:
    public_bundle = load_public_ring(subkey_key_pair.public_key)
    secret_bundle = load_secret_ring(subkey_key_pair.secret_key)

    (ring,) = public_bundle.rings
    primary, subkey = ring.keys
    assert primary.is_primary and not subkey.is_primary
    assert primary.key_id == subkey_key_pair.key_id
    assert not primary.can_encrypt
    assert find_encryption_key(public_bundle).key_id == subkey.key_id
    assert find_signing_key(secret_bundle).key_id == subkey_key_pair.key_id


def test_unlock_private_key_leaves_ring_key_locked(secret_bundle: KeyRingBundle) -> None:
    secret_key = find_signing_key(secret_bundle)

    with unlock_private_key(secret_key, PASSPHRASE) as private_key:
        assert private_key.is_unlocked
        assert not secret_key.pgpy_key.is_unlocked

    with unlock_private_key(secret_key, PASSPHRASE) as private_key:
        assert private_key.is_unlocked
