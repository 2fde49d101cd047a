"""Constants for the Vault key/value client."""

from enum import Enum


class KeyValueBackend(Enum):
    """Key/value secrets engine API version."""

    KV_1 = "1"  # Unversioned
    KV_2 = "2"  # Versioned

    @classmethod
    def unversioned(cls) -> "KeyValueBackend":
        return cls.KV_1

    @classmethod
    def versioned(cls) -> "KeyValueBackend":
        return cls.KV_2


# Environment variable names
ENV_VAULT_ADDR = "VAULT_ADDR"
ENV_VAULT_TOKEN = "VAULT_TOKEN"
ENV_VAULT_NAMESPACE = "VAULT_NAMESPACE"
ENV_KV_MOUNT = "VAULT_KV_MOUNT"
ENV_KV_VERSION = "VAULT_KV_VERSION"

# Default values
DEFAULT_VAULT_ADDR = "http://127.0.0.1:8200"
DEFAULT_KV_MOUNT = "secret"
DEFAULT_TIMEOUT = 30.0

# Request headers
VAULT_TOKEN_HEADER = "X-Vault-Token"
VAULT_NAMESPACE_HEADER = "X-Vault-Namespace"
KV_CLIENT_HEADER = "X-Vault-Kv-Client"
KV_CLIENT_HEADER_VALUE = "v2"

API_PREFIX = "v1"

# Engine sub-paths (KV v2)
DATA_SEGMENT = "data"
METADATA_SEGMENT = "metadata"
VERSION_ACTIONS = frozenset({"delete", "undelete", "destroy"})

# Server error texts that signal a check-and-set version mismatch
CAS_CONFLICT_MARKERS = (
    "check-and-set",
    "did not match the current version",
)
