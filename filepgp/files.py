"""
File adapters for key generation, encryption and decryption.

Maps the byte-oriented pipeline onto local paths: read paths must exist,
write paths must not, and nothing is ever silently overwritten.
"""

import os
from pathlib import Path

import structlog

from filepgp.config import FilePGPConfig
from filepgp.crypto.protocol import CryptoProvider
from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.decoder import decrypt_message
from filepgp.encoder import encrypt
from filepgp.exceptions import ValidationError
from filepgp.keygen import generate_key_pair
from filepgp.keyring import load_secret_ring, read_public_key
from filepgp.models.messages import DecryptResult

logger = structlog.get_logger(__name__)

DEFAULT_PRIVATE_KEY_FILE_NAME = "PGPPrivateKey.asc"
DEFAULT_PUBLIC_KEY_FILE_NAME = "PGPPublicKey.asc"
_KEY_FILE_EXTENSION = ".asc"

PathLike = str | os.PathLike[str]


def generate_key_pair_files(
    identity: str,
    passphrase: SecureBytes | str | bytes,
    key_store_path: PathLike,
    private_key_file_name: str = DEFAULT_PRIVATE_KEY_FILE_NAME,
    public_key_file_name: str = DEFAULT_PUBLIC_KEY_FILE_NAME,
    *,
    key_size_bits: int | None = None,
    armor: bool | None = None,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> tuple[Path, Path]:
    """
    Generate a key pair into two files inside an existing key store directory.

    Returns:
        Paths of the private and public key files.

    Raises:
        ValidationError: If an argument is empty, a file name does not end in
            ``.asc``, the key store is not a directory, or a key file exists.
        CryptoError: If key generation fails.
    """
    _require(identity, "Identity")
    _require(passphrase, "Passphrase")
    _require(key_store_path, "Key store path")
    _require(private_key_file_name, "Private key file name")
    _require(public_key_file_name, "Public key file name")
    for name in (private_key_file_name, public_key_file_name):
        if not name.lower().endswith(_KEY_FILE_EXTENSION):
            msg = f"Key file name must end with {_KEY_FILE_EXTENSION}"
            raise ValidationError(msg, file_name=name)

    key_store = Path(key_store_path)
    if not key_store.is_dir():
        msg = "Key store directory does not exist"
        raise ValidationError(msg, path=str(key_store))

    private_path = key_store / private_key_file_name
    public_path = key_store / public_key_file_name
    for path in (private_path, public_path):
        if path.exists():
            msg = "Key file already exists"
            raise ValidationError(msg, path=str(path))

    pair = generate_key_pair(
        identity,
        passphrase,
        key_size_bits,
        armor=armor,
        config=config,
        provider=provider,
    )
    with private_path.open("xb") as f:
        f.write(pair.secret_key)
    with public_path.open("xb") as f:
        f.write(pair.public_key)

    logger.info(
        "Key pair written",
        key_id=pair.key_id,
        private_key=str(private_path),
        public_key=str(public_path),
    )
    return private_path, public_path


def encrypt_file(
    output_path: PathLike,
    input_path: PathLike,
    public_key_path: PathLike,
    *,
    armor: bool | None = None,
    with_integrity: bool | None = None,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> Path:
    """
    Encrypt a file to the first encryption key of a public key file.

    The literal data records the input's base name. On failure no output
    file is left behind.

    Raises:
        ValidationError: If an argument is empty, or the output path names the
            input or key file.
        FileNotFoundError: If the input or key file does not exist.
        KeyNotFoundError: If the key file holds no encryption key.
        EncodeError: If encryption fails.
    """
    _require(output_path, "Output path")
    _require(input_path, "Input path")
    _require(public_key_path, "Public key path")
    source_path = _existing_file(input_path)
    recipient = read_public_key(_existing_file(public_key_path).read_bytes(), provider=provider)

    output = Path(output_path)
    _refuse_overwrite(output, source_path, "input file")
    _refuse_overwrite(output, Path(public_key_path), "public key file")
    with source_path.open("rb") as source, output.open("wb") as sink:
        try:
            encrypt(
                sink,
                source,
                recipient,
                file_name=source_path.name,
                armor=armor,
                with_integrity=with_integrity,
                config=config,
                provider=provider,
            )
        except BaseException:
            sink.close()
            output.unlink(missing_ok=True)
            raise

    logger.info("Encrypted file written", path=str(output), key_id=recipient.key_id)
    return output


def decrypt_file(
    input_path: PathLike,
    private_key_path: PathLike,
    passphrase: SecureBytes | str | bytes,
    decrypted_path: PathLike,
    *,
    config: FilePGPConfig | None = None,
    provider: CryptoProvider | None = None,
) -> DecryptResult:
    """
    Decrypt a message file with a secret key file.

    Raises:
        ValidationError: If an argument is empty or ``decrypted_path`` exists.
        FileNotFoundError: If the input or key file does not exist.
        Everything ``decoder.decrypt_message`` raises.
    """
    _require(input_path, "Input path")
    _require(private_key_path, "Private key path")
    _require(passphrase, "Passphrase")
    _require(decrypted_path, "Decrypted path")
    message_path = _existing_file(input_path)
    key_path = _existing_file(private_key_path)
    if Path(decrypted_path).exists():
        msg = "Decryption target already exists"
        raise ValidationError(msg, path=str(decrypted_path))

    bundle = load_secret_ring(key_path.read_bytes(), provider=provider)
    return decrypt_message(
        message_path.read_bytes(),
        bundle,
        passphrase,
        decrypted_path,
        config=config,
        provider=provider,
    )


def _require(value: object, name: str) -> None:
    if value is None:
        empty = True
    elif isinstance(value, str):
        empty = not value.strip()
    elif isinstance(value, (bytes, SecureBytes)):
        empty = len(value) == 0
    else:
        empty = not os.fspath(value)
    if empty:
        msg = f"{name} must not be empty"
        raise ValidationError(msg)


def _existing_file(path: PathLike) -> Path:
    file_path = Path(path)
    if not file_path.is_file():
        msg = f"File not found: {file_path}"
        raise FileNotFoundError(msg)
    return file_path


def _refuse_overwrite(output: Path, existing: Path, name: str) -> None:
    # Opening the output truncates it before the source is read
    same = output.resolve() == existing.resolve()
    if not same and output.exists():
        same = output.samefile(existing)
    if same:
        msg = f"Output path must not be the {name}"
        raise ValidationError(msg, path=str(output))
