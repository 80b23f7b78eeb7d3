"""Command line interface for filepgp."""

import logging
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

import click
import structlog
from rich.console import Console

from filepgp import __version__
from filepgp.config import FilePGPConfig
from filepgp.exceptions import (
    AuthError,
    CryptoError,
    FormatError,
    KeyNotFoundError,
    UnsupportedMessageError,
)
from filepgp.files import (
    DEFAULT_PRIVATE_KEY_FILE_NAME,
    DEFAULT_PUBLIC_KEY_FILE_NAME,
    decrypt_file,
    encrypt_file,
    generate_key_pair_files,
)
from filepgp.models.crypto import CompressionAlgorithm, SymmetricAlgorithm

EXIT_SUCCESS = 0
EXIT_USAGE = 1
EXIT_KEY = 2
EXIT_FS = 3
EXIT_CORRUPT = 4

CIPHERS = {
    "aes128": SymmetricAlgorithm.AES_128,
    "aes192": SymmetricAlgorithm.AES_192,
    "aes256": SymmetricAlgorithm.AES_256,
    "camellia128": SymmetricAlgorithm.CAMELLIA_128,
    "camellia192": SymmetricAlgorithm.CAMELLIA_192,
    "camellia256": SymmetricAlgorithm.CAMELLIA_256,
}
COMPRESSIONS = {
    "zip": CompressionAlgorithm.ZIP,
    "zlib": CompressionAlgorithm.ZLIB,
    "bzip2": CompressionAlgorithm.BZIP2,
    "none": CompressionAlgorithm.UNCOMPRESSED,
}

console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def _prompt_passphrase(passphrase_opt: str | None, *, confirm: bool = False) -> str:
    if passphrase_opt is not None:
        return passphrase_opt
    return click.prompt("Passphrase", hide_input=True, confirmation_prompt=confirm)


def _handle_action(action: Callable[[], None]) -> int:
    try:
        action()
    except (AuthError, KeyNotFoundError) as exc:
        console.print(f"[red]Key error:[/red] {exc}")
        return EXIT_KEY
    except (FormatError, UnsupportedMessageError, CryptoError) as exc:
        console.print(f"[red]Error: message or key is corrupted or not supported:[/red] {exc}")
        return EXIT_CORRUPT
    except ValueError as exc:
        console.print(f"[red]Invalid input:[/red] {exc}")
        return EXIT_USAGE
    except FileNotFoundError as exc:
        console.print(f"[red]File not found:[/red] {exc}")
        return EXIT_FS
    except PermissionError as exc:
        console.print(f"[red]Permission denied:[/red] {exc}")
        return EXIT_FS
    except OSError as exc:
        console.print(f"[red]Filesystem error:[/red] {exc}")
        return EXIT_FS
    return EXIT_SUCCESS


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="filepgp")
@click.option("-v", "--verbose", is_flag=True, help="Log pipeline progress to stderr.")
def cli(verbose: bool) -> None:
    """Encrypt and decrypt files with OpenPGP public keys."""
    _configure_logging(verbose)


@cli.command(
    help="Generate an RSA key pair into a key store directory.",
    epilog="Example:\n  filepgp keygen 'Alice <alice@example.com>' ./keys",
)
@click.argument("identity")
@click.argument("key_store", type=click.Path(path_type=Path))
@click.option("--passphrase", "passphrase_opt", help="Key passphrase (will prompt if omitted).")
@click.option(
    "--private-name",
    default=DEFAULT_PRIVATE_KEY_FILE_NAME,
    show_default=True,
    help="Private key file name (.asc).",
)
@click.option(
    "--public-name",
    default=DEFAULT_PUBLIC_KEY_FILE_NAME,
    show_default=True,
    help="Public key file name (.asc).",
)
@click.option("--key-size", type=int, default=None, help="RSA modulus size in bits.")
@click.option("--binary", is_flag=True, help="Write binary keys instead of ASCII armor.")
@click.pass_context
def keygen(
    ctx: click.Context,
    identity: str,
    key_store: Path,
    passphrase_opt: str | None,
    private_name: str,
    public_name: str,
    key_size: int | None,
    binary: bool,
) -> None:
    passphrase = _prompt_passphrase(passphrase_opt, confirm=True)
    written: list[Path] = []

    def action() -> None:
        config = FilePGPConfig() if key_size is None else FilePGPConfig(key_size_bits=key_size)
        written.extend(
            generate_key_pair_files(
                identity,
                passphrase,
                key_store,
                private_name,
                public_name,
                armor=not binary,
                config=config,
            )
        )

    code = _handle_action(action)
    if code == EXIT_SUCCESS:
        private_path, public_path = written
        console.print(f"[green]Private key written to[/green] {private_path}")
        console.print(f"[green]Public key written to[/green] {public_path}")
    ctx.exit(code)


@cli.command(
    help="Encrypt a file for the holder of a public key.",
    epilog="Example:\n  filepgp encrypt report.txt report.pgp --public-key keys/PGPPublicKey.asc",
)
@click.argument("input_path", type=click.Path(path_type=Path))
@click.argument("output_path", type=click.Path(path_type=Path))
@click.option(
    "--public-key",
    "public_key",
    required=True,
    type=click.Path(path_type=Path),
    help="Recipient public key file.",
)
@click.option("--no-armor", is_flag=True, help="Write a binary message instead of ASCII armor.")
@click.option("--no-integrity", is_flag=True, help="Omit the integrity (MDC) tag.")
@click.option(
    "--cipher",
    type=click.Choice(sorted(CIPHERS), case_sensitive=False),
    default="aes128",
    show_default=True,
    help="Symmetric cipher for the payload.",
)
@click.option(
    "--compression",
    type=click.Choice(sorted(COMPRESSIONS), case_sensitive=False),
    default="zip",
    show_default=True,
    help="Compression applied before encryption.",
)
@click.pass_context
def encrypt(
    ctx: click.Context,
    input_path: Path,
    output_path: Path,
    public_key: Path,
    no_armor: bool,
    no_integrity: bool,
    cipher: str,
    compression: str,
) -> None:
    config = replace(
        FilePGPConfig(),
        symmetric_algorithm=CIPHERS[cipher.lower()],
        compression_algorithm=COMPRESSIONS[compression.lower()],
        armor=not no_armor,
        with_integrity_check=not no_integrity,
    )
    code = _handle_action(lambda: encrypt_file(output_path, input_path, public_key, config=config))
    if code == EXIT_SUCCESS:
        console.print(f"[green]Encrypted to[/green] {output_path}")
    ctx.exit(code)


@cli.command(
    help="Decrypt a message with a private key.",
    epilog=(
        "The original file name recorded in the message is used inside the target's "
        "directory; messages without a name are written to TARGET itself.\n\n"
        "Example:\n  filepgp decrypt report.pgp out/report.bin --private-key keys/PGPPrivateKey.asc"
    ),
)
@click.argument("input_path", type=click.Path(path_type=Path))
@click.argument("target", type=click.Path(path_type=Path))
@click.option(
    "--private-key",
    "private_key",
    required=True,
    type=click.Path(path_type=Path),
    help="Secret key file.",
)
@click.option("--passphrase", "passphrase_opt", help="Key passphrase (will prompt if omitted).")
@click.pass_context
def decrypt(
    ctx: click.Context,
    input_path: Path,
    target: Path,
    private_key: Path,
    passphrase_opt: str | None,
) -> None:
    passphrase = _prompt_passphrase(passphrase_opt)
    written: list[Path] = []

    def action() -> None:
        result = decrypt_file(input_path, private_key, passphrase, target)
        written.append(result.path)
        if result.message.signature_ignored:
            console.print("[yellow]Warning: message signature was not verified[/yellow]")
        if not result.message.integrity_protected:
            console.print("[yellow]Warning: message has no integrity protection[/yellow]")

    code = _handle_action(action)
    if code == EXIT_SUCCESS:
        console.print(f"[green]Decrypted to[/green] {written[0]}")
    ctx.exit(code)


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
