"""Value objects for versioned key/value secrets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, Field, field_serializer

from .durations import format_duration

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Version:
    """A secret version number. ``0`` means unversioned (the latest version)."""

    number: int = 0

    UNVERSIONED: ClassVar["Version"]

    def __post_init__(self) -> None:
        if self.number < 0:
            raise ValueError(f"Version must be >= 0, got {self.number}")

    @classmethod
    def unversioned(cls) -> "Version":
        return cls.UNVERSIONED

    @classmethod
    def of(cls, number: Optional[int]) -> "Version":
        """Create a version; ``None`` and values ``<= 0`` map to unversioned."""
        if number is None or number <= 0:
            return cls.UNVERSIONED
        return cls(int(number))

    def is_versioned(self) -> bool:
        return self.number > 0

    def __int__(self) -> int:
        return self.number

    def __str__(self) -> str:
        return f"Version[{self.number}]"


Version.UNVERSIONED = Version(0)


@dataclass(frozen=True, slots=True)
class Metadata:
    """Lifecycle metadata of a single secret version.

    ``deleted_at`` marks a soft delete; ``destroyed`` is tracked independently
    since a version can be destroyed without ever being soft-deleted.
    """

    created_at: datetime
    version: Version = Version.UNVERSIONED
    deleted_at: Optional[datetime] = None
    destroyed: bool = False
    custom_metadata: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class Versioned(Generic[T]):
    """A secret payload paired with the version (and metadata) it belongs to.

    ``data`` is ``None`` when a read hits a deleted or destroyed version: the
    metadata is still present in that case, which is how callers tell it apart
    from a path that has no secret at all (the read returns ``None``).
    """

    data: Optional[T]
    version: Version = Version.UNVERSIONED
    metadata: Optional[Metadata] = None

    @classmethod
    def create(
        cls,
        data: Optional[T],
        version: Optional[Version] = None,
        metadata: Optional[Metadata] = None,
    ) -> "Versioned[T]":
        """Create a versioned value.

        With ``metadata`` the version is taken from it; with only ``version``
        the value carries no metadata; with neither it is unversioned.
        """
        if metadata is not None:
            if version is not None and version != metadata.version:
                raise ValueError(f"{version} does not match metadata {metadata.version}")
            return cls(data=data, version=metadata.version, metadata=metadata)
        if data is None and version is None:
            raise ValueError("Versioned data must not be None")
        return cls(data=data, version=version or Version.UNVERSIONED)

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @property
    def has_metadata(self) -> bool:
        return self.metadata is not None

    @property
    def required_data(self) -> T:
        if self.data is None:
            raise ValueError("Required data is not present")
        return self.data

    @property
    def required_metadata(self) -> Metadata:
        if self.metadata is None:
            raise ValueError("Required metadata is not present")
        return self.metadata


@dataclass(frozen=True, slots=True)
class EngineMetadata:
    """Key-level metadata for a KV v2 secret and all of its versions."""

    cas_required: bool
    created_time: Optional[datetime]
    updated_time: Optional[datetime]
    current_version: int
    oldest_version: int
    max_versions: int
    delete_version_after: Optional[timedelta]
    versions: List[Metadata] = field(default_factory=list)
    custom_metadata: Mapping[str, str] = field(default_factory=dict)

    def get_version(self, version: Version | int) -> Optional[Metadata]:
        """Return the metadata entry for a version number, if the server listed it."""
        wanted = version if isinstance(version, Version) else Version.of(version)
        for entry in self.versions:
            if entry.version == wanted:
                return entry
        return None


class MetadataRequest(BaseModel):
    """Key-level settings written to ``<mount>/metadata/<path>``."""

    max_versions: int = Field(default=0, ge=0)
    cas_required: bool = False
    delete_version_after: Optional[timedelta] = None
    custom_metadata: Optional[Dict[str, str]] = None

    @field_serializer("delete_version_after")
    def _serialize_duration(self, value: Optional[timedelta]) -> str:
        return format_duration(value)

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json")
        if payload.get("custom_metadata") is None:
            payload.pop("custom_metadata", None)
        return payload


class SecretResponse(BaseModel):
    """A plain (non-versioned) secret read, with the response envelope fields.

    ``data`` is the secret mapping, or an instance of the type requested from
    ``get``.
    """

    request_id: Optional[str] = None
    lease_id: Optional[str] = None
    lease_duration: int = 0
    renewable: bool = False
    data: Any = None
    metadata: Optional[Dict[str, Any]] = None
    warnings: Optional[List[str]] = None
    wrap_info: Optional[Dict[str, Any]] = None


__all__ = [
    "Version",
    "Metadata",
    "Versioned",
    "EngineMetadata",
    "MetadataRequest",
    "SecretResponse",
]
