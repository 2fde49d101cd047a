"""Conversion between caller objects and secret payloads.

The serializer is passed in explicitly when a client is built; it is never
pulled out of the HTTP client.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import MalformedResponseError


@runtime_checkable
class Serializer(Protocol):
    """Converts secret payloads to and from JSON-compatible mappings."""

    def to_payload(self, obj: Any) -> Any:
        """Return a JSON-compatible representation of ``obj``."""

    def from_payload(self, data: Any, response_type: Optional[type]) -> Any:
        """Convert a decoded JSON payload into ``response_type``."""


@lru_cache(maxsize=128)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


class PydanticSerializer:
    """Default serializer backed by pydantic ``TypeAdapter``s."""

    def to_payload(self, obj: Any) -> Any:
        if obj is None or isinstance(obj, (str, int, float, bool)):
            return obj
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json", by_alias=True)
        if isinstance(obj, Mapping):
            return {str(key): self.to_payload(value) for key, value in obj.items()}
        return _adapter(type(obj)).dump_python(obj, mode="json")

    def from_payload(self, data: Any, response_type: Optional[type]) -> Any:
        if data is None or response_type is None or response_type in (dict, Mapping):
            return data
        try:
            if isinstance(response_type, type) and issubclass(response_type, BaseModel):
                return response_type.model_validate(data)
            return _adapter(response_type).validate_python(data)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"Cannot deserialize secret payload into {getattr(response_type, '__name__', response_type)}"
            ) from exc


default_serializer = PydanticSerializer()
