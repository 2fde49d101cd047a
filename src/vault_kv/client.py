"""Client entry points bound to a Vault server."""

from __future__ import annotations

from typing import Optional

from .constants import KeyValueBackend
from .executor import AsyncExecutor, BlockingExecutor
from .interface import Executor, KeyValueOperations
from .key_value import key_value_template
from .metadata import KeyValueMetadataTemplate
from .serialization import Serializer, default_serializer
from .transport import AsyncTransport, AsyncVaultHttpTransport, SyncTransport, VaultHttpTransport
from .versioned import VersionedKeyValueTemplate


class _ClientBase:
    def __init__(self, executor: Executor, serializer: Optional[Serializer] = None):
        self._executor = executor
        self.serializer = serializer or default_serializer

    def versioned(self, mount: str) -> VersionedKeyValueTemplate:
        """Versioned access to the KV v2 engine mounted at ``mount``."""
        return VersionedKeyValueTemplate(self._executor, mount, self.serializer)

    def key_value(self, mount: str, backend: KeyValueBackend = KeyValueBackend.KV_2) -> KeyValueOperations:
        """Plain get/put/delete/list access to a KV v1 or KV v2 mount."""
        return key_value_template(self._executor, mount, backend, self.serializer)

    def metadata(self, mount: str) -> KeyValueMetadataTemplate:
        """Key-level metadata of the KV v2 engine mounted at ``mount``."""
        return KeyValueMetadataTemplate(self._executor, mount, self.serializer)


class VaultKVClient(_ClientBase):
    """Blocking client: every operation returns once the round-trip completes."""

    def __init__(self, transport: SyncTransport, serializer: Optional[Serializer] = None):
        super().__init__(BlockingExecutor(transport), serializer)
        self.transport = transport

    def close(self) -> None:
        if isinstance(self.transport, VaultHttpTransport):
            self.transport.close()

    def __enter__(self) -> "VaultKVClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncVaultKVClient(_ClientBase):
    """Asyncio client: every operation returns an awaitable."""

    def __init__(self, transport: AsyncTransport, serializer: Optional[Serializer] = None):
        super().__init__(AsyncExecutor(transport), serializer)
        self.transport = transport

    async def aclose(self) -> None:
        if isinstance(self.transport, AsyncVaultHttpTransport):
            await self.transport.aclose()

    async def __aenter__(self) -> "AsyncVaultKVClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
