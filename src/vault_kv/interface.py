"""Interface definitions for key/value engine access."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Union

from .constants import KeyValueBackend
from .executor import AsyncExecutor, BlockingExecutor
from .models import SecretResponse
from .serialization import Serializer, default_serializer

Executor = Union[BlockingExecutor, AsyncExecutor]


class KeyValueTemplateBase:
    """Shared state of every template bound to one engine mount.

    Operations return their result directly with a :class:`BlockingExecutor`
    and an awaitable resolving to the same result with an
    :class:`AsyncExecutor`.
    """

    def __init__(self, executor: Executor, mount: str, serializer: Serializer = default_serializer):
        if not mount or not mount.strip("/"):
            raise ValueError("Mount path must not be empty")
        self._executor = executor
        self.mount = mount.strip("/")
        self.serializer = serializer

    def _execute(self, flow):
        return self._executor.execute(flow)

    def __repr__(self) -> str:
        mode = "async" if self._executor.is_async else "blocking"
        return f"{type(self).__name__}(mount={self.mount!r}, mode={mode})"


class KeyValueOperations(ABC):
    """Capability shared by the KV v1 and KV v2 engine templates.

    The engine version is picked once when the template is created; callers
    use ``get``/``put``/``delete``/``list`` without knowing which one it is.
    """

    @property
    @abstractmethod
    def api_version(self) -> KeyValueBackend:
        """The engine API version this template talks to."""

    @abstractmethod
    def get(self, path: str, response_type: Optional[type] = None) -> Optional[SecretResponse]:
        """Read the latest data at ``path``; ``None`` if nothing is stored there.

        ``response_type`` converts the secret data, e.g. into a pydantic model.
        """

    @abstractmethod
    def put(self, path: str, body: Any) -> None:
        """Write ``body`` to ``path`` unconditionally."""

    @abstractmethod
    def patch(self, path: str, update: Mapping[str, Any]) -> bool:
        """Merge ``update`` onto the data at ``path``.

        Returns ``False`` when a concurrent write won the race.
        """

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete the secret (the latest version on KV v2)."""

    @abstractmethod
    def list(self, path: str = "") -> List[str]:
        """List keys below ``path``; empty if the path does not exist."""
