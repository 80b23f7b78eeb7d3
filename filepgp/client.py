"""
Asynchronous facade.

Runs each file operation on a worker thread so it can be awaited from an
event loop. Every call is independent: keys are loaded and unlocked inside
the call and nothing unlocked is kept between calls.
"""

import asyncio
import os
from pathlib import Path
from typing import Self

import structlog

from filepgp.config import FilePGPConfig
from filepgp.crypto.pgpy_backend import PgpyProvider
from filepgp.crypto.protocol import CryptoProvider
from filepgp.crypto.secure_bytes import SecureBytes
from filepgp.files import (
    DEFAULT_PRIVATE_KEY_FILE_NAME,
    DEFAULT_PUBLIC_KEY_FILE_NAME,
    decrypt_file,
    encrypt_file,
    generate_key_pair_files,
)
from filepgp.models.messages import DecryptResult

logger = structlog.get_logger(__name__)


class FilePGPClient:
    """
    Async client for file encryption.

    Example:
        ```python
        async with FilePGPClient() as client:
            private_key, public_key = await client.generate_key_pair(
                "Alice <alice@example.com>", "passphrase", "keys/"
            )
            await client.encrypt_file("report.pgp", "report.txt", public_key)
            result = await client.decrypt_file(
                "report.pgp", private_key, "passphrase", "out/report.bin"
            )
        ```

    Args:
        config: Algorithm defaults. Uses defaults if not provided.
        provider: Cryptographic provider. Uses pgpy if not provided.
    """

    def __init__(
        self,
        config: FilePGPConfig | None = None,
        *,
        provider: CryptoProvider | None = None,
    ) -> None:
        self._config = config or FilePGPConfig()
        self._provider_override = provider
        self._provider: CryptoProvider | None = None
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        await self._ensure_initialized()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        await self.close()

    async def _ensure_initialized(self) -> None:
        async with self._init_lock:
            if self._initialized:
                return
            self._provider = self._provider_override or PgpyProvider()
            self._initialized = True
            logger.debug("Client initialized")

    async def close(self) -> None:
        """Release the provider."""
        async with self._init_lock:
            self._provider = None
            self._initialized = False
            logger.debug("Client closed")

    @property
    def config(self) -> FilePGPConfig:
        return self._config

    async def generate_key_pair(
        self,
        identity: str,
        passphrase: SecureBytes | str | bytes,
        key_store_path: str | os.PathLike[str],
        private_key_file_name: str = DEFAULT_PRIVATE_KEY_FILE_NAME,
        public_key_file_name: str = DEFAULT_PUBLIC_KEY_FILE_NAME,
        *,
        key_size_bits: int | None = None,
        armor: bool | None = None,
    ) -> tuple[Path, Path]:
        """
        Generate a key pair into ``key_store_path``.

        Returns:
            Paths of the private and public key files.
        """
        provider = await self._require_provider()
        return await asyncio.to_thread(
            generate_key_pair_files,
            identity,
            passphrase,
            key_store_path,
            private_key_file_name,
            public_key_file_name,
            key_size_bits=key_size_bits,
            armor=armor,
            config=self._config,
            provider=provider,
        )

    async def encrypt_file(
        self,
        output_path: str | os.PathLike[str],
        input_path: str | os.PathLike[str],
        public_key_path: str | os.PathLike[str],
        *,
        armor: bool | None = None,
        with_integrity: bool | None = None,
    ) -> Path:
        """Encrypt ``input_path`` to the key in ``public_key_path``."""
        provider = await self._require_provider()
        return await asyncio.to_thread(
            encrypt_file,
            output_path,
            input_path,
            public_key_path,
            armor=armor,
            with_integrity=with_integrity,
            config=self._config,
            provider=provider,
        )

    async def decrypt_file(
        self,
        input_path: str | os.PathLike[str],
        private_key_path: str | os.PathLike[str],
        passphrase: SecureBytes | str | bytes,
        decrypted_path: str | os.PathLike[str],
    ) -> DecryptResult:
        """
        Decrypt ``input_path`` with the key in ``private_key_path``.

        Cancelling the awaiting task abandons the result; the worker thread
        still runs the decryption to completion.
        """
        provider = await self._require_provider()
        return await asyncio.to_thread(
            decrypt_file,
            input_path,
            private_key_path,
            passphrase,
            decrypted_path,
            config=self._config,
            provider=provider,
        )

    async def _require_provider(self) -> CryptoProvider:
        await self._ensure_initialized()
        if self._provider is None:
            raise RuntimeError("Client not initialized")
        return self._provider
