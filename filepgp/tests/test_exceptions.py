import pytest

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


def test_filepgp_error_str_without_context() -> None:
    error = FilePGPError("Something failed")

    assert str(error) == "Something failed"


def test_filepgp_error_str_with_context() -> None:
    error = FilePGPError("Failed", path="/tmp/x", attempt=3)

    assert "Failed" in str(error)
    assert "path='/tmp/x'" in str(error)
    assert "attempt=3" in str(error)


def test_key_errors_carry_key_id() -> None:
    not_found = KeyNotFoundError("missing", key_id="0123456789ABCDEF")
    auth = AuthError("locked", key_id="FEDCBA9876543210")

    assert not_found.key_id == "0123456789ABCDEF"
    assert auth.key_id == "FEDCBA9876543210"
    assert "key_id='FEDCBA9876543210'" in str(auth)


def test_auth_error_and_key_not_found_are_distinct() -> None:
    assert not issubclass(AuthError, KeyNotFoundError)
    assert not issubclass(KeyNotFoundError, AuthError)


def test_validation_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        raise ValidationError("empty")


@pytest.mark.parametrize("error_type", [EncodeError, IntegrityError, UnsupportedAlgorithmError])
def test_crypto_error_subclasses(error_type: type[CryptoError]) -> None:
    assert issubclass(error_type, CryptoError)


@pytest.mark.parametrize(
    "error_type",
    [ValidationError, FormatError, KeyNotFoundError, AuthError, CryptoError, UnsupportedMessageError],
)
def test_all_errors_derive_from_base(error_type: type[Exception]) -> None:
    assert issubclass(error_type, FilePGPError)


def test_unsupported_algorithm_error_has_algorithm() -> None:
    error = UnsupportedAlgorithmError("no", algorithm=3)

    assert error.algorithm == 3
