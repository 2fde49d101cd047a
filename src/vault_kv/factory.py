"""Factory functions for creating key/value clients."""

from typing import Optional

import httpx

from .client import AsyncVaultKVClient, VaultKVClient
from .config import Settings, settings as default_settings
from .serialization import Serializer
from .transport import AsyncVaultHttpTransport, VaultHttpTransport


def _resolve(
    settings: Optional[Settings],
    vault_addr: Optional[str],
    vault_token: Optional[str],
    namespace: Optional[str],
) -> tuple:
    cfg = settings or default_settings

    # Use settings as defaults if not provided
    vault_addr = vault_addr or cfg.VAULT_ADDR
    if vault_token is None and cfg.VAULT_TOKEN is not None:
        vault_token = cfg.VAULT_TOKEN.get_secret_value()
    namespace = namespace or cfg.VAULT_NAMESPACE

    if not vault_addr:
        raise ValueError("vault_addr is required")
    if not vault_token:
        raise ValueError("vault_token is required")
    return cfg, vault_addr, vault_token, namespace


def get_kv_client(
    vault_addr: Optional[str] = None,
    vault_token: Optional[str] = None,
    namespace: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    serializer: Optional[Serializer] = None,
    http: Optional[httpx.Client] = None,
) -> VaultKVClient:
    """Create a blocking client.

    Args:
        vault_addr: The Vault server address (defaults to ``VAULT_ADDR``)
        vault_token: The Vault token (defaults to ``VAULT_TOKEN``)
        namespace: Optional namespace (defaults to ``VAULT_NAMESPACE``)
        settings: Settings to read defaults from instead of the environment singleton
        serializer: Serializer for secret payloads
        http: Pre-configured httpx client to send requests with

    Returns:
        A VaultKVClient

    Raises:
        ValueError: If the address or token cannot be resolved
    """
    cfg, vault_addr, vault_token, namespace = _resolve(settings, vault_addr, vault_token, namespace)
    transport = VaultHttpTransport(
        vault_addr,
        vault_token,
        namespace,
        timeout=cfg.VAULT_TIMEOUT,
        verify=not cfg.VAULT_SKIP_VERIFY,
        http=http,
    )
    return VaultKVClient(transport, serializer)


def get_async_kv_client(
    vault_addr: Optional[str] = None,
    vault_token: Optional[str] = None,
    namespace: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    serializer: Optional[Serializer] = None,
    http: Optional[httpx.AsyncClient] = None,
) -> AsyncVaultKVClient:
    """Create an asyncio client. Arguments are the same as :func:`get_kv_client`."""
    cfg, vault_addr, vault_token, namespace = _resolve(settings, vault_addr, vault_token, namespace)
    transport = AsyncVaultHttpTransport(
        vault_addr,
        vault_token,
        namespace,
        timeout=cfg.VAULT_TIMEOUT,
        verify=not cfg.VAULT_SKIP_VERIFY,
        http=http,
    )
    return AsyncVaultKVClient(transport, serializer)
