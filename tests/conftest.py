"""pytest configuration for the Vault key/value client tests."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from vault_kv.client import AsyncVaultKVClient, VaultKVClient
from vault_kv.mock_server import InMemoryVaultServer
from vault_kv.transport import AsyncVaultHttpTransport, VaultHttpTransport

VAULT_ADDR = "http://vault.test:8200"
VAULT_TOKEN = "hvs.CAESIJtestroottoken0000000000"


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


class RecordingHandler:
    """MockTransport handler returning queued responses and recording requests."""

    def __init__(self, *responses: httpx.Response):
        self.responses: List[httpx.Response] = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


def metadata_payload(
    version: int = 1,
    created_time: str = "2024-01-01T00:00:00.000000Z",
    deletion_time: str = "",
    destroyed: bool = False,
) -> Dict[str, Any]:
    return {
        "created_time": created_time,
        "custom_metadata": None,
        "deletion_time": deletion_time,
        "destroyed": destroyed,
        "version": version,
    }


def read_response(data: Optional[Dict[str, Any]], status_code: int = 200, **metadata: Any) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={
            "request_id": "c0ffee",
            "lease_id": "",
            "renewable": False,
            "lease_duration": 0,
            "data": {"data": data, "metadata": metadata_payload(**metadata)},
            "wrap_info": None,
            "warnings": None,
            "auth": None,
        },
    )


def write_response(**metadata: Any) -> httpx.Response:
    return httpx.Response(200, json={"request_id": "c0ffee", "data": metadata_payload(**metadata)})


def error_response(status_code: int, *errors: str) -> httpx.Response:
    return httpx.Response(status_code, json={"errors": list(errors)})


@pytest.fixture
def server() -> InMemoryVaultServer:
    """An in-memory Vault with a KV v2 mount at ``secret`` and a KV v1 mount at ``kv``."""
    return InMemoryVaultServer(
        kv2_mounts=("secret",),
        kv1_mounts=("kv",),
        token=VAULT_TOKEN,
        clock=SteppingClock(),
    )


@pytest.fixture
def client(server):
    http = httpx.Client(transport=server.transport())
    with VaultKVClient(VaultHttpTransport(VAULT_ADDR, VAULT_TOKEN, http=http)) as kv_client:
        yield kv_client
    http.close()


@pytest.fixture
def async_client(server) -> AsyncVaultKVClient:
    http = httpx.AsyncClient(transport=server.transport())
    return AsyncVaultKVClient(AsyncVaultHttpTransport(VAULT_ADDR, VAULT_TOKEN, http=http))


@pytest.fixture
def make_client() -> Callable[[RecordingHandler], VaultKVClient]:
    """Build a blocking client that talks to a :class:`RecordingHandler`."""

    def _make(handler: RecordingHandler) -> VaultKVClient:
        http = httpx.Client(transport=httpx.MockTransport(handler))
        return VaultKVClient(VaultHttpTransport(VAULT_ADDR, VAULT_TOKEN, http=http))

    return _make


@pytest.fixture
def make_async_client() -> Callable[[RecordingHandler], AsyncVaultKVClient]:
    """Build an asyncio client that talks to a :class:`RecordingHandler`."""

    def _make(handler: RecordingHandler) -> AsyncVaultKVClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return AsyncVaultKVClient(AsyncVaultHttpTransport(VAULT_ADDR, VAULT_TOKEN, http=http))

    return _make
