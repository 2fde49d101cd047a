"""Non-versioned key/value access for KV v1 and KV v2 mounts."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from . import flows
from .constants import KeyValueBackend
from .errors import UnsupportedOperationError
from .interface import Executor, KeyValueOperations, KeyValueTemplateBase
from .models import SecretResponse
from .serialization import Serializer, default_serializer


class KeyValue1Template(KeyValueTemplateBase, KeyValueOperations):
    """Access to an unversioned (KV v1) mount."""

    @property
    def api_version(self) -> KeyValueBackend:
        return KeyValueBackend.KV_1

    def get(self, path: str, response_type: Optional[type] = None) -> Optional[SecretResponse]:
        return self._execute(
            flows.read_plain(self.mount, path, False, response_type, self.serializer)
        )

    def put(self, path: str, body: Any) -> None:
        if body is None:
            raise ValueError("Body must not be None")
        return self._execute(flows.write_plain(self.mount, path, body, self.serializer, versioned_engine=False))

    def patch(self, path: str, update: Mapping[str, Any]) -> bool:
        raise UnsupportedOperationError("K/V engine mount must be version 2 for patch support")

    def delete(self, path: str) -> None:
        return self._execute(flows.delete_plain(self.mount, path))

    def list(self, path: str = "") -> List[str]:
        return self._execute(flows.list_plain(self.mount, path))


class KeyValue2Template(KeyValueTemplateBase, KeyValueOperations):
    """Unversioned view of a versioned (KV v2) mount.

    Reads return the latest version, writes never use check-and-set. Use
    :class:`~vault_kv.versioned.VersionedKeyValueTemplate` for version control.
    """

    @property
    def api_version(self) -> KeyValueBackend:
        return KeyValueBackend.KV_2

    def get(self, path: str, response_type: Optional[type] = None) -> Optional[SecretResponse]:
        return self._execute(
            flows.read_plain(self.mount, path, True, response_type, self.serializer)
        )

    def put(self, path: str, body: Any) -> None:
        if body is None:
            raise ValueError("Body must not be None")
        return self._execute(flows.write_plain(self.mount, path, body, self.serializer, versioned_engine=True))

    def patch(self, path: str, update: Mapping[str, Any]) -> bool:
        return self._execute(flows.patch(self.mount, path, update, self.serializer))

    def delete(self, path: str) -> None:
        return self._execute(flows.delete_latest(self.mount, path))

    def list(self, path: str = "") -> List[str]:
        return self._execute(flows.list_keys(self.mount, path))


def key_value_template(
    executor: Executor,
    mount: str,
    backend: KeyValueBackend,
    serializer: Serializer = default_serializer,
) -> KeyValueOperations:
    """Create the template for the engine version of ``mount``."""
    if backend == KeyValueBackend.KV_1:
        return KeyValue1Template(executor, mount, serializer)
    if backend == KeyValueBackend.KV_2:
        return KeyValue2Template(executor, mount, serializer)
    raise ValueError(f"Unknown key/value backend: {backend}")
