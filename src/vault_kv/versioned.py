"""Versioned (KV v2) secret access with check-and-set support."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from . import flows
from .interface import KeyValueTemplateBase
from .models import Metadata, Version, Versioned


class VersionedKeyValueTemplate(KeyValueTemplateBase):
    """Reads, writes and manages the versions of secrets in a KV v2 mount.

    Example:
        >>> kv = client.versioned("secret")
        >>> metadata = kv.put("app1", {"user": "alice"})
        >>> current = kv.get("app1")
        >>> kv.put("app1", Versioned.create({"user": "bob"}, metadata=current.metadata))
    """

    def get(
        self,
        path: str,
        version: Optional[Version | int] = None,
        response_type: Optional[type] = None,
    ) -> Optional[Versioned[Any]]:
        """Read a secret, optionally at a specific version.

        Args:
            path: Secret path relative to the mount
            version: Version to read; ``None`` or unversioned reads the latest
            response_type: Type to deserialize ``data`` into; defaults to ``dict``

        Returns:
            Versioned: The data with its metadata. ``data`` is ``None`` for a
            deleted or destroyed version. ``None`` if no such secret/version exists.

        Raises:
            VaultServerError: For non-404 error responses
            MalformedResponseError: If the response lacks required metadata
        """
        if version is not None and not isinstance(version, Version):
            version = Version.of(version)
        return self._execute(flows.read_versioned(self.mount, path, version, response_type, self.serializer))

    def put(self, path: str, body: Any) -> Metadata:
        """Write a new version.

        Passing a :class:`Versioned` makes the write conditional on its version
        still being the current one (check-and-set); a stale version raises
        :class:`CasConflictError`.

        Returns:
            Metadata: Metadata of the version just written
        """
        if body is None:
            raise ValueError("Body must not be None")
        return self._execute(flows.write_versioned(self.mount, path, body, self.serializer))

    def patch(self, path: str, update: Mapping[str, Any]) -> bool:
        """Shallow-merge ``update`` onto the latest version.

        Returns:
            bool: ``False`` if a concurrent write moved the version on (retry
            by calling patch again); ``True`` otherwise

        Raises:
            SecretNotFoundError: If there is no current data to patch
        """
        return self._execute(flows.patch(self.mount, path, update, self.serializer))

    def delete(self, path: str, *versions: Version | int) -> None:
        """Soft-delete versions. Without versions, the latest version is deleted."""
        return self._execute(flows.delete_versions(self.mount, path, versions))

    def undelete(self, path: str, *versions: Version | int) -> None:
        """Restore soft-deleted versions. Destroyed versions stay destroyed."""
        return self._execute(flows.undelete_versions(self.mount, path, versions))

    def destroy(self, path: str, *versions: Version | int) -> None:
        """Permanently remove the data of versions."""
        return self._execute(flows.destroy_versions(self.mount, path, versions))

    def list(self, path: str = "") -> List[str]:
        return self._execute(flows.list_keys(self.mount, path))
