"""Typed wire envelopes for the key/value engine HTTP payloads.

Only caller-defined secret payloads stay open-schema (``Dict[str, Any]``);
every envelope the server or client frames around them is modelled here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")


class VersionMetadataPayload(_Envelope):
    """``data.metadata`` of a read, or ``data`` of a write response."""

    created_time: Optional[str] = None
    deletion_time: Optional[str] = None
    destroyed: Optional[bool] = None
    version: Optional[int] = None
    custom_metadata: Optional[Dict[str, str]] = None


class VersionedReadBody(_Envelope):
    data: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None


class VersionedReadEnvelope(_Envelope):
    """``GET <mount>/data/<path>`` response."""

    request_id: Optional[str] = None
    lease_id: Optional[str] = None
    lease_duration: int = 0
    renewable: bool = False
    data: Optional[VersionedReadBody] = None
    warnings: Optional[List[str]] = None
    wrap_info: Optional[Dict[str, Any]] = None


class PlainReadEnvelope(_Envelope):
    """Generic ``{"data": {...}}`` response (KV v1 reads, write responses)."""

    request_id: Optional[str] = None
    lease_id: Optional[str] = None
    lease_duration: int = 0
    renewable: bool = False
    data: Optional[Dict[str, Any]] = None
    warnings: Optional[List[str]] = None
    wrap_info: Optional[Dict[str, Any]] = None


class EngineVersionEntry(_Envelope):
    created_time: Optional[str] = None
    deletion_time: Optional[str] = None
    destroyed: Optional[bool] = None


class EngineMetadataPayload(_Envelope):
    """``data`` of a ``GET <mount>/metadata/<path>`` response.

    Scalars use pydantic's lax mode, so numbers and booleans are accepted
    whether they arrive as JSON numbers or as strings.
    """

    cas_required: Optional[bool] = None
    created_time: Optional[str] = None
    updated_time: Optional[str] = None
    current_version: int = 0
    oldest_version: int = 0
    max_versions: int = 0
    delete_version_after: Optional[str] = None
    versions: Dict[str, EngineVersionEntry] = Field(default_factory=dict)
    custom_metadata: Optional[Dict[str, str]] = None


class ListBody(_Envelope):
    keys: List[str] = Field(default_factory=list)


class ListEnvelope(_Envelope):
    data: Optional[ListBody] = None


class WriteOptions(BaseModel):
    cas: int


class WriteRequest(BaseModel):
    """``POST <mount>/data/<path>`` body; ``options`` only when CAS applies."""

    data: Any
    options: Optional[WriteOptions] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"data": self.data}
        if self.options is not None:
            payload["options"] = self.options.model_dump()
        return payload


class LifecycleRequest(BaseModel):
    """Body for the ``delete``/``undelete``/``destroy`` sub-paths."""

    versions: List[int]
