"""Key/value engine operations written once, independent of I/O.

Each operation is a generator *flow*: it yields :class:`VaultRequest` objects,
receives the matching :class:`httpx.Response` through ``send()`` and returns
its typed result. :mod:`vault_kv.executor` drives flows either blocking or on
an event loop; the request building and response classification below is the
same in both modes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from . import paths
from .codec import decode_engine_metadata, decode_version_metadata
from .constants import KV_CLIENT_HEADER, KV_CLIENT_HEADER_VALUE
from .errors import (
    CasConflictError,
    ConfigurationError,
    MalformedResponseError,
    SecretNotFoundError,
    build_server_error,
)
from .models import EngineMetadata, Metadata, MetadataRequest, SecretResponse, Version, Versioned
from .serialization import Serializer
from .telemetry import record_cas_conflict
from .wire import (
    LifecycleRequest,
    ListEnvelope,
    PlainReadEnvelope,
    VersionedReadEnvelope,
    WriteOptions,
    WriteRequest,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class VaultRequest:
    """One HTTP call against the Vault API, relative to ``/v1/``."""

    method: str
    path: str
    params: Optional[Dict[str, str]] = None
    json: Any = None
    headers: Dict[str, str] = field(
        default_factory=lambda: {KV_CLIENT_HEADER: KV_CLIENT_HEADER_VALUE}
    )


Flow = Generator[VaultRequest, httpx.Response, R]


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


def _has_body(response: httpx.Response) -> bool:
    return response.status_code != 204 and bool(response.content and response.content.strip())


def _parse(model: type[M], response: httpx.Response, path: str) -> M:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as exc:
        raise MalformedResponseError(f"Cannot decode response from [{path}]: {exc}") from exc


def _deleted_version_envelope(response: httpx.Response) -> Optional[VersionedReadEnvelope]:
    """Return the envelope of a 404 that describes a deleted or destroyed version.

    Vault answers 404 both for paths that never existed and for versions that
    were soft-deleted or destroyed; only the latter carry a metadata block with
    a ``deletion_time`` key.
    """
    try:
        body = json.loads(response.content or b"null")
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    metadata = data.get("metadata") if isinstance(data, dict) else None
    if not isinstance(metadata, dict) or "deletion_time" not in metadata:
        return None
    try:
        return VersionedReadEnvelope.model_validate(body)
    except ValidationError as exc:
        raise MalformedResponseError(f"Cannot decode deleted version response: {exc}") from exc


# ---------------------------------------------------------------------------
# KV v2 versioned operations
# ---------------------------------------------------------------------------


def read_versioned(
    mount: str,
    path: str,
    version: Optional[Version],
    response_type: Optional[type],
    serializer: Serializer,
) -> Flow[Optional[Versioned[Any]]]:
    """Read a secret version.

    Returns ``None`` if nothing exists at the path/version, and a
    :class:`Versioned` with ``data=None`` for deleted or destroyed versions.
    """
    paths.require_path(path)
    secret_path = paths.data_path(mount, path)
    params = {"version": str(version.number)} if version is not None and version.is_versioned() else None

    response = yield VaultRequest("GET", secret_path, params=params)

    if _is_success(response):
        envelope = _parse(VersionedReadEnvelope, response, secret_path)
    elif response.status_code == 404:
        envelope = _deleted_version_envelope(response)
        if envelope is None:
            return None
        logger.debug("Version of %s is deleted or destroyed", secret_path)
    else:
        raise build_server_error(response, secret_path)

    body = envelope.data
    if body is None:
        raise MalformedResponseError(f"Response from [{secret_path}] has no data")

    metadata = decode_version_metadata(body.metadata)
    data = serializer.from_payload(body.data, response_type) if body.data is not None else None
    return Versioned.create(data, metadata=metadata)


def write_versioned(
    mount: str,
    path: str,
    body: Any,
    serializer: Serializer,
) -> Flow[Metadata]:
    """Write a new secret version and return its metadata.

    If ``body`` is a :class:`Versioned`, its data is written guarded by a
    check-and-set on its version; anything else is written unconditionally.
    """
    paths.require_path(path)
    secret_path = paths.data_path(mount, path)

    if isinstance(body, Versioned):
        request = WriteRequest(
            data=serializer.to_payload(body.data),
            options=WriteOptions(cas=body.version.number),
        )
    else:
        request = WriteRequest(data=serializer.to_payload(body))

    response = yield VaultRequest("POST", secret_path, json=request.to_payload())

    if not _is_success(response):
        raise build_server_error(response, secret_path)
    if not _has_body(response):
        raise ConfigurationError(
            f"Write to [{secret_path}] returned no metadata; is '{mount}' a versioned (KV v2) mount?"
        )

    envelope = _parse(PlainReadEnvelope, response, secret_path)
    return decode_version_metadata(envelope.data)


def patch(
    mount: str,
    path: str,
    update: Mapping[str, Any],
    serializer: Serializer,
) -> Flow[bool]:
    """Merge ``update`` onto the latest version with a check-and-set write.

    Returns ``False`` if another writer created a newer version between the
    read and the write.
    """
    if update is None:
        raise ValueError("Patch body must not be None")
    secret_path = paths.data_path(mount, path)

    current = yield from read_versioned(mount, path, None, None, serializer)
    if current is None or current.data is None or current.metadata is None:
        raise SecretNotFoundError(
            f"No data found at {secret_path}; patch only works on existing data",
            paths.join_path(mount, path),
        )

    merged: Dict[str, Any] = dict(current.data)
    merged.update(update)

    try:
        yield from write_versioned(
            mount, path, Versioned.create(merged, metadata=current.metadata), serializer
        )
    except CasConflictError:
        logger.info(
            "Patch of %s lost a check-and-set race at %s", secret_path, current.metadata.version
        )
        record_cas_conflict()
        return False
    return True


def _to_version_list(versions: Iterable[Version | int]) -> List[int]:
    numbers = []
    for version in versions:
        if version is None:
            raise ValueError("Versions must not contain None")
        as_version = version if isinstance(version, Version) else Version.of(version)
        if as_version.is_versioned():
            numbers.append(as_version.number)
    return numbers


def _lifecycle(mount: str, action: str, path: str, versions: Iterable[Version | int]) -> Flow[None]:
    target = paths.version_action_path(mount, action, path)
    request = LifecycleRequest(versions=_to_version_list(versions))
    response = yield VaultRequest("POST", target, json=request.model_dump())
    if not _is_success(response):
        raise build_server_error(response, target)
    return None


def delete_versions(mount: str, path: str, versions: Iterable[Version | int]) -> Flow[None]:
    """Soft-delete versions; with no versions, delete the latest through the data path."""
    paths.require_path(path)
    versions = list(versions)
    if not versions:
        return (yield from delete_latest(mount, path))
    return (yield from _lifecycle(mount, "delete", path, versions))


def undelete_versions(mount: str, path: str, versions: Iterable[Version | int]) -> Flow[None]:
    paths.require_path(path)
    return (yield from _lifecycle(mount, "undelete", path, versions))


def destroy_versions(mount: str, path: str, versions: Iterable[Version | int]) -> Flow[None]:
    paths.require_path(path)
    return (yield from _lifecycle(mount, "destroy", path, versions))


def delete_latest(mount: str, path: str) -> Flow[None]:
    """``DELETE <mount>/data/<path>``: soft-deletes the latest version."""
    paths.require_path(path)
    target = paths.data_path(mount, path)
    response = yield VaultRequest("DELETE", target)
    if not _is_success(response):
        raise build_server_error(response, target)
    return None


def list_keys(mount: str, path: str) -> Flow[List[str]]:
    """List keys below ``path`` via the metadata sub-path."""
    target = paths.join_path(mount, "metadata") + "/" + paths.normalize_list_path(path)
    return (yield from _list(target))


def _list(target: str) -> Flow[List[str]]:
    response = yield VaultRequest("GET", target, params={"list": "true"})
    if response.status_code == 404:
        return []
    if not _is_success(response):
        raise build_server_error(response, target)
    envelope = _parse(ListEnvelope, response, target)
    return list(envelope.data.keys) if envelope.data is not None else []


# ---------------------------------------------------------------------------
# Plain (non-versioned) access
# ---------------------------------------------------------------------------


def read_plain(
    mount: str,
    path: str,
    versioned_engine: bool,
    response_type: Optional[type],
    serializer: Serializer,
) -> Flow[Optional[SecretResponse]]:
    """Read the latest data of a secret, unwrapping the KV v2 envelope if needed.

    With a ``response_type`` the secret data is converted by ``serializer``.
    """
    paths.require_path(path)
    target = paths.data_path(mount, path) if versioned_engine else paths.kv1_path(mount, path)

    response = yield VaultRequest("GET", target)
    if response.status_code == 404:
        return None
    if not _is_success(response):
        raise build_server_error(response, target)

    if versioned_engine:
        envelope = _parse(VersionedReadEnvelope, response, target)
        inner = envelope.data
        return SecretResponse(
            request_id=envelope.request_id,
            lease_id=envelope.lease_id,
            lease_duration=envelope.lease_duration,
            renewable=envelope.renewable,
            data=serializer.from_payload(inner.data, response_type) if inner is not None else None,
            metadata=inner.metadata if inner is not None else None,
            warnings=envelope.warnings,
            wrap_info=envelope.wrap_info,
        )

    plain = _parse(PlainReadEnvelope, response, target)
    fields = plain.model_dump()
    fields["data"] = serializer.from_payload(plain.data, response_type)
    return SecretResponse(**fields)


def write_plain(mount: str, path: str, body: Any, serializer: Serializer, versioned_engine: bool) -> Flow[None]:
    """Unconditional write: ``{"data": body}`` on KV v2, ``body`` verbatim on KV v1."""
    paths.require_path(path)
    if versioned_engine:
        target = paths.data_path(mount, path)
        payload = WriteRequest(data=serializer.to_payload(body)).to_payload()
    else:
        target = paths.kv1_path(mount, path)
        payload = serializer.to_payload(body)

    response = yield VaultRequest("POST", target, json=payload)
    if not _is_success(response):
        raise build_server_error(response, target)
    return None


def delete_plain(mount: str, path: str) -> Flow[None]:
    paths.require_path(path)
    target = paths.kv1_path(mount, path)
    response = yield VaultRequest("DELETE", target)
    if not _is_success(response):
        raise build_server_error(response, target)
    return None


def list_plain(mount: str, path: str) -> Flow[List[str]]:
    target = paths.join_path(mount) + "/" + paths.normalize_list_path(path)
    return (yield from _list(target))


# ---------------------------------------------------------------------------
# KV v2 key metadata
# ---------------------------------------------------------------------------


def read_engine_metadata(mount: str, path: str) -> Flow[Optional[EngineMetadata]]:
    paths.require_path(path)
    target = paths.metadata_path(mount, path)
    response = yield VaultRequest("GET", target)
    if response.status_code == 404:
        return None
    if not _is_success(response):
        raise build_server_error(response, target)
    envelope = _parse(PlainReadEnvelope, response, target)
    return decode_engine_metadata(envelope.data)


def write_engine_metadata(mount: str, path: str, request: MetadataRequest) -> Flow[None]:
    paths.require_path(path)
    if request is None:
        raise ValueError("Body must not be None")
    target = paths.metadata_path(mount, path)
    response = yield VaultRequest("POST", target, json=request.to_payload())
    if not _is_success(response):
        raise build_server_error(response, target)
    return None


def delete_engine_metadata(mount: str, path: str) -> Flow[None]:
    """Delete the key metadata and every version of the secret."""
    paths.require_path(path)
    target = paths.metadata_path(mount, path)
    response = yield VaultRequest("DELETE", target)
    if not _is_success(response):
        raise build_server_error(response, target)
    return None
