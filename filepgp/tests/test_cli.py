from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from filepgp.cli import EXIT_CORRUPT, EXIT_FS, EXIT_KEY, EXIT_SUCCESS, EXIT_USAGE, cli
from filepgp.tests.constants import IDENTITY, PASSPHRASE


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _encrypt(runner: CliRunner, source: Path, output: Path, public_key: Path, *extra: str) -> None:
    result = runner.invoke(
        cli, ["encrypt", str(source), str(output), "--public-key", str(public_key), *extra]
    )
    assert result.exit_code == EXIT_SUCCESS, result.output


def test_keygen(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(
        cli, ["keygen", IDENTITY, str(tmp_path), "--passphrase", PASSPHRASE, "--key-size", "1024"]
    )

    assert result.exit_code == EXIT_SUCCESS, result.output
    assert "Private key written to" in result.output
    assert (tmp_path / "PGPPrivateKey.asc").exists()
    assert (tmp_path / "PGPPublicKey.asc").exists()


def test_keygen_prompts_for_passphrase(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(
        cli,
        ["keygen", IDENTITY, str(tmp_path), "--private-name", "me.asc", "--public-name", "me.pub.asc"],
        input=f"{PASSPHRASE}\n{PASSPHRASE}\n",
    )

    assert result.exit_code == EXIT_SUCCESS, result.output
    assert (tmp_path / "me.asc").exists()


def test_keygen_rejects_bad_extension(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(
        cli, ["keygen", IDENTITY, str(tmp_path), "--passphrase", PASSPHRASE, "--private-name", "key.gpg"]
    )

    assert result.exit_code == EXIT_USAGE
    assert "Invalid input" in result.output


def test_encrypt_and_decrypt(
    runner: CliRunner, tmp_path: Path, key_files: tuple[Path, Path], make_file: Callable[..., Path]
) -> None:
    private_path, public_path = key_files
    encrypted = tmp_path / "report.pgp"
    _encrypt(runner, make_file(), encrypted, public_path, "--cipher", "aes256", "--compression", "zlib")
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    result = runner.invoke(
        cli,
        ["decrypt", str(encrypted), str(out_dir / "x.bin"), "--private-key", str(private_path)],
        input=f"{PASSPHRASE}\n",
    )

    assert result.exit_code == EXIT_SUCCESS, result.output
    assert "Decrypted to" in result.output
    assert (out_dir / "report.txt").read_bytes() == b"quarterly numbers\n"


def test_decrypt_warns_without_integrity(
    runner: CliRunner, tmp_path: Path, key_files: tuple[Path, Path], make_file: Callable[..., Path]
) -> None:
    private_path, public_path = key_files
    encrypted = tmp_path / "report.gpg"
    _encrypt(runner, make_file(), encrypted, public_path, "--no-armor", "--no-integrity")

    result = runner.invoke(
        cli,
        [
            "decrypt",
            str(encrypted),
            str(tmp_path / "x.bin"),
            "--private-key",
            str(private_path),
            "--passphrase",
            PASSPHRASE,
        ],
    )

    assert result.exit_code == EXIT_SUCCESS, result.output
    assert "no integrity protection" in result.output


def test_decrypt_wrong_passphrase_exit_code(
    runner: CliRunner, tmp_path: Path, key_files: tuple[Path, Path], make_file: Callable[..., Path]
) -> None:
    private_path, public_path = key_files
    encrypted = tmp_path / "report.pgp"
    _encrypt(runner, make_file(), encrypted, public_path)

    result = runner.invoke(
        cli,
        [
            "decrypt",
            str(encrypted),
            str(tmp_path / "x.bin"),
            "--private-key",
            str(private_path),
            "--passphrase",
            "wrong",
        ],
    )

    assert result.exit_code == EXIT_KEY


def test_decrypt_corrupted_message_exit_code(
    runner: CliRunner, tmp_path: Path, key_files: tuple[Path, Path]
) -> None:
    garbage = tmp_path / "garbage.pgp"
    garbage.write_text("this is not a message")

    result = runner.invoke(
        cli,
        [
            "decrypt",
            str(garbage),
            str(tmp_path / "x.bin"),
            "--private-key",
            str(key_files[0]),
            "--passphrase",
            PASSPHRASE,
        ],
    )

    assert result.exit_code == EXIT_CORRUPT


def test_encrypt_missing_input_exit_code(
    runner: CliRunner, tmp_path: Path, key_files: tuple[Path, Path]
) -> None:
    result = runner.invoke(
        cli,
        [
            "encrypt",
            str(tmp_path / "missing.txt"),
            str(tmp_path / "o.pgp"),
            "--public-key",
            str(key_files[1]),
        ],
    )

    assert result.exit_code == EXIT_FS
    assert not (tmp_path / "o.pgp").exists()


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == EXIT_SUCCESS
    assert "filepgp" in result.output
