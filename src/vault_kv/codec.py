"""Decoding of Vault key/value metadata payloads into value objects."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from .durations import parse_duration
from .errors import MalformedResponseError
from .models import EngineMetadata, Metadata, Version
from .wire import EngineMetadataPayload, EngineVersionEntry, VersionMetadataPayload


def parse_timestamp(value: Optional[str], field_name: str = "timestamp") -> Optional[datetime]:
    """Parse an ISO-8601 offset date-time.

    Vault represents "no timestamp" as an empty string, which is treated the
    same as a missing value. Timestamps without a UTC offset are rejected.
    """
    if value is None or not str(value).strip():
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise MalformedResponseError(f"Cannot parse {field_name} '{value}'") from exc
    if parsed.tzinfo is None:
        raise MalformedResponseError(f"{field_name} '{value}' has no UTC offset")
    return parsed


def decode_version_metadata(raw: Optional[Mapping[str, Any]]) -> Metadata:
    """Decode the metadata of one secret version.

    ``created_time`` is required. A missing ``version`` means unversioned and
    a missing ``destroyed`` means ``False``.
    """
    if raw is None:
        raise MalformedResponseError("Version metadata is missing")
    try:
        payload = VersionMetadataPayload.model_validate(raw)
    except ValidationError as exc:
        raise MalformedResponseError(f"Cannot decode version metadata: {exc}") from exc

    return _build_metadata(
        created_time=payload.created_time,
        deletion_time=payload.deletion_time,
        destroyed=payload.destroyed,
        version=Version.of(payload.version),
        custom_metadata=payload.custom_metadata,
    )


def decode_engine_metadata(raw: Optional[Mapping[str, Any]]) -> EngineMetadata:
    """Decode a ``<mount>/metadata/<path>`` response body.

    Per-version entries are keyed by the version number as a string in the
    wire format; they come back as a list ordered by ascending version.
    """
    if raw is None:
        raise MalformedResponseError("Engine metadata is missing")
    try:
        payload = EngineMetadataPayload.model_validate(raw)
    except ValidationError as exc:
        raise MalformedResponseError(f"Cannot decode engine metadata: {exc}") from exc

    try:
        delete_version_after = parse_duration(payload.delete_version_after)
    except ValueError as exc:
        raise MalformedResponseError(str(exc)) from exc

    return EngineMetadata(
        cas_required=bool(payload.cas_required),
        created_time=parse_timestamp(payload.created_time, "created_time"),
        updated_time=parse_timestamp(payload.updated_time, "updated_time"),
        current_version=payload.current_version,
        oldest_version=payload.oldest_version,
        max_versions=payload.max_versions,
        delete_version_after=delete_version_after,
        versions=_decode_versions(payload.versions),
        custom_metadata=dict(payload.custom_metadata or {}),
    )


def _decode_versions(entries: Mapping[str, EngineVersionEntry]) -> list[Metadata]:
    decoded = []
    for key, entry in entries.items():
        try:
            number = int(key)
        except ValueError as exc:
            raise MalformedResponseError(f"Version key '{key}' is not a number") from exc
        decoded.append(
            _build_metadata(
                created_time=entry.created_time,
                deletion_time=entry.deletion_time,
                destroyed=entry.destroyed,
                version=Version.of(number),
            )
        )
    return sorted(decoded, key=lambda metadata: metadata.version.number)


def _build_metadata(
    *,
    created_time: Optional[str],
    deletion_time: Optional[str],
    destroyed: Optional[bool],
    version: Version,
    custom_metadata: Optional[Mapping[str, str]] = None,
) -> Metadata:
    created_at = parse_timestamp(created_time, "created_time")
    if created_at is None:
        raise MalformedResponseError("Version metadata has no created_time")
    return Metadata(
        created_at=created_at,
        version=version,
        deleted_at=parse_timestamp(deletion_time, "deletion_time"),
        destroyed=bool(destroyed),
        custom_metadata=dict(custom_metadata or {}),
    )
