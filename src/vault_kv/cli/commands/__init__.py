"""Commands of the vault-kv CLI."""

from .metadata import delete_metadata, get_metadata, put_metadata
from .secrets import (
    delete_secret,
    destroy_secret,
    get_secret,
    list_secrets,
    patch_secret,
    put_secret,
    undelete_secret,
)

__all__ = [
    "delete_metadata",
    "delete_secret",
    "destroy_secret",
    "get_metadata",
    "get_secret",
    "list_secrets",
    "patch_secret",
    "put_metadata",
    "put_secret",
    "undelete_secret",
]
