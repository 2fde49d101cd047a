"""Versioned key/value secrets client for HashiCorp Vault."""

from .client import AsyncVaultKVClient, VaultKVClient
from .constants import KeyValueBackend
from .errors import (
    CasConflictError,
    ConfigurationError,
    MalformedResponseError,
    SecretNotFoundError,
    UnsupportedOperationError,
    VaultKVError,
    VaultServerError,
)
from .factory import get_async_kv_client, get_kv_client
from .key_value import KeyValue1Template, KeyValue2Template
from .metadata import KeyValueMetadataTemplate
from .models import EngineMetadata, Metadata, MetadataRequest, SecretResponse, Version, Versioned
from .serialization import PydanticSerializer, Serializer
from .transport import AsyncVaultHttpTransport, VaultHttpTransport
from .versioned import VersionedKeyValueTemplate

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "AsyncVaultHttpTransport",
    "AsyncVaultKVClient",
    "CasConflictError",
    "ConfigurationError",
    "EngineMetadata",
    "KeyValue1Template",
    "KeyValue2Template",
    "KeyValueBackend",
    "KeyValueMetadataTemplate",
    "MalformedResponseError",
    "Metadata",
    "MetadataRequest",
    "PydanticSerializer",
    "SecretNotFoundError",
    "SecretResponse",
    "Serializer",
    "UnsupportedOperationError",
    "VaultHttpTransport",
    "VaultKVClient",
    "VaultKVError",
    "VaultServerError",
    "Version",
    "Versioned",
    "VersionedKeyValueTemplate",
    "get_async_kv_client",
    "get_kv_client",
]
