"""Key-level metadata of KV v2 secrets."""

from __future__ import annotations

from typing import Optional

from . import flows
from .interface import KeyValueTemplateBase
from .models import EngineMetadata, MetadataRequest


class KeyValueMetadataTemplate(KeyValueTemplateBase):
    """Reads and writes ``<mount>/metadata/<path>``."""

    def get(self, path: str) -> Optional[EngineMetadata]:
        """Return the key metadata with all versions, or ``None`` if the key is unknown."""
        return self._execute(flows.read_engine_metadata(self.mount, path))

    def put(self, path: str, request: MetadataRequest) -> None:
        return self._execute(flows.write_engine_metadata(self.mount, path, request))

    def delete(self, path: str) -> None:
        """Delete the key with its metadata and every version."""
        return self._execute(flows.delete_engine_metadata(self.mount, path))
