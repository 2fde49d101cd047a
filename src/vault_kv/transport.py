"""HTTP transports that execute Vault requests over httpx.

The transports only authenticate and dispatch: they never interpret status
codes. Classification of responses belongs to :mod:`vault_kv.flows`.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Union

import httpx
from pydantic import SecretStr

from .constants import (
    API_PREFIX,
    DEFAULT_TIMEOUT,
    DEFAULT_VAULT_ADDR,
    VAULT_NAMESPACE_HEADER,
    VAULT_TOKEN_HEADER,
)
from .flows import VaultRequest
from .logging.redact import register_secret
from .telemetry import record_response, request_span

logger = logging.getLogger(__name__)


class SyncTransport(Protocol):
    """Blocking executor of Vault requests."""

    def send(self, request: VaultRequest) -> httpx.Response: ...


class AsyncTransport(Protocol):
    """Non-blocking executor of Vault requests."""

    async def send(self, request: VaultRequest) -> httpx.Response: ...


class _TransportBase:
    def __init__(
        self,
        address: str = DEFAULT_VAULT_ADDR,
        token: Optional[Union[str, SecretStr]] = None,
        namespace: Optional[str] = None,
    ):
        """Initialize the transport.

        Args:
            address: The Vault server address (e.g., http://127.0.0.1:8200)
            token: The Vault token sent as ``X-Vault-Token``
            namespace: Optional Vault Enterprise namespace
        """
        self.address = address.rstrip("/")  # Remove trailing slash for consistent URL building
        self._token = token if isinstance(token, SecretStr) or token is None else SecretStr(token)
        if self._token is not None:
            register_secret(self._token.get_secret_value())
        self.namespace = namespace

    def _get_headers(self, request: VaultRequest) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token is not None and self._token.get_secret_value():
            headers[VAULT_TOKEN_HEADER] = self._token.get_secret_value()
        if self.namespace:
            headers[VAULT_NAMESPACE_HEADER] = self.namespace
        headers.update(request.headers)
        return headers

    def _url(self, request: VaultRequest) -> str:
        return f"{self.address}/{API_PREFIX}/{request.path.lstrip('/')}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address!r}, namespace={self.namespace!r})"


class VaultHttpTransport(_TransportBase):
    """Blocking transport backed by :class:`httpx.Client`."""

    def __init__(
        self,
        address: str = DEFAULT_VAULT_ADDR,
        token: Optional[Union[str, SecretStr]] = None,
        namespace: Optional[str] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        http: Optional[httpx.Client] = None,
    ):
        super().__init__(address, token, namespace)
        self._http = http or httpx.Client(timeout=timeout, verify=verify)
        self._close_http = http is None

    def send(self, request: VaultRequest) -> httpx.Response:
        url = self._url(request)
        with request_span(request.method, url, request.path) as span:
            logger.debug("Vault %s %s", request.method, request.path)
            response = self._http.request(
                request.method,
                url,
                params=request.params,
                json=request.json,
                headers=self._get_headers(request),
            )
            record_response(span, request.method, response.status_code)
            logger.debug("Vault %s %s -> %s", request.method, request.path, response.status_code)
            return response

    def close(self) -> None:
        if self._close_http:
            self._http.close()

    def __enter__(self) -> "VaultHttpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncVaultHttpTransport(_TransportBase):
    """Non-blocking transport backed by :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        address: str = DEFAULT_VAULT_ADDR,
        token: Optional[Union[str, SecretStr]] = None,
        namespace: Optional[str] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        http: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(address, token, namespace)
        self._http = http or httpx.AsyncClient(timeout=timeout, verify=verify)
        self._close_http = http is None

    async def send(self, request: VaultRequest) -> httpx.Response:
        url = self._url(request)
        with request_span(request.method, url, request.path) as span:
            logger.debug("Vault %s %s", request.method, request.path)
            response = await self._http.request(
                request.method,
                url,
                params=request.params,
                json=request.json,
                headers=self._get_headers(request),
            )
            record_response(span, request.method, response.status_code)
            logger.debug("Vault %s %s -> %s", request.method, request.path, response.status_code)
            return response

    async def aclose(self) -> None:
        if self._close_http:
            await self._http.aclose()

    async def __aenter__(self) -> "AsyncVaultHttpTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
