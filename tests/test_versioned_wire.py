"""Request/response shapes of the versioned template against canned responses."""

from datetime import datetime, timezone

import httpx
import pytest
from pydantic import BaseModel

from conftest import RecordingHandler, error_response, read_response, write_response
from vault_kv.errors import (
    CasConflictError,
    ConfigurationError,
    MalformedResponseError,
    SecretNotFoundError,
    VaultServerError,
)
from vault_kv.models import Metadata, Version, Versioned


class Credentials(BaseModel):
    user: str


def test_read_latest(make_client):
    handler = RecordingHandler(read_response({"user": "alice"}, version=2))
    kv = make_client(handler).versioned("secret")

    secret = kv.get("app1")

    assert handler.last.method == "GET"
    assert handler.last.url.path == "/v1/secret/data/app1"
    assert "version" not in handler.last.url.params
    assert secret.data == {"user": "alice"}
    assert secret.version == Version(2)
    assert secret.metadata.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_read_specific_version(make_client):
    handler = RecordingHandler(read_response({"user": "alice"}, version=1))
    kv = make_client(handler).versioned("secret")

    kv.get("app1", Version(1))

    assert handler.last.url.params["version"] == "1"


def test_read_int_version(make_client):
    handler = RecordingHandler(read_response({"user": "alice"}, version=5))
    make_client(handler).versioned("secret").get("app1", 5)
    assert handler.last.url.params["version"] == "5"


def test_read_unversioned_sends_no_version_param(make_client):
    handler = RecordingHandler(read_response({"user": "alice"}))
    make_client(handler).versioned("secret").get("app1", Version.UNVERSIONED)
    assert "version" not in handler.last.url.params


def test_read_sends_token_and_kv_client_headers(make_client):
    handler = RecordingHandler(read_response({"user": "alice"}))
    make_client(handler).versioned("secret").get("app1")

    assert handler.last.headers["X-Vault-Token"].startswith("hvs.")
    assert handler.last.headers["X-Vault-Kv-Client"] == "v2"


def test_read_into_response_type(make_client):
    handler = RecordingHandler(read_response({"user": "alice", "extra": 1}))
    secret = make_client(handler).versioned("secret").get("app1", response_type=Credentials)
    assert secret.data == Credentials(user="alice")


def test_read_missing_path_is_none(make_client):
    handler = RecordingHandler(error_response(404))
    assert make_client(handler).versioned("secret").get("never/written") is None


def test_read_404_with_plain_text_is_none(make_client):
    handler = RecordingHandler(httpx.Response(404, text="not found"))
    assert make_client(handler).versioned("secret").get("app1") is None


def test_read_soft_deleted_version(make_client):
    handler = RecordingHandler(
        read_response(None, status_code=404, version=2, deletion_time="2024-01-02T00:00:00Z")
    )

    secret = make_client(handler).versioned("secret").get("app1", 2)

    assert secret is not None
    assert secret.data is None
    assert secret.metadata.is_deleted
    assert secret.metadata.destroyed is False
    assert secret.version == Version(2)


def test_read_destroyed_version(make_client):
    handler = RecordingHandler(read_response(None, status_code=404, version=3, destroyed=True))

    secret = make_client(handler).versioned("secret").get("app1", 3)

    assert secret.data is None
    assert secret.metadata.destroyed is True
    assert secret.metadata.deleted_at is None


def test_read_server_error(make_client):
    handler = RecordingHandler(error_response(403, "permission denied"))

    with pytest.raises(VaultServerError) as excinfo:
        make_client(handler).versioned("secret").get("app1")

    assert excinfo.value.status_code == 403
    assert excinfo.value.path == "secret/data/app1"
    assert "permission denied" in str(excinfo.value)


def test_read_without_created_time_is_malformed(make_client):
    handler = RecordingHandler(read_response({"user": "alice"}, created_time=""))
    with pytest.raises(MalformedResponseError):
        make_client(handler).versioned("secret").get("app1")


def test_read_without_data_is_malformed(make_client):
    handler = RecordingHandler(httpx.Response(200, json={"request_id": "x"}))
    with pytest.raises(MalformedResponseError, match="has no data"):
        make_client(handler).versioned("secret").get("app1")


def test_write_without_cas(make_client):
    handler = RecordingHandler(write_response(version=1))

    metadata = make_client(handler).versioned("secret").put("app1", {"user": "alice"})

    assert handler.last.method == "POST"
    assert handler.last.url.path == "/v1/secret/data/app1"
    assert handler.json_body() == {"data": {"user": "alice"}}
    assert metadata.version == Version(1)


def test_write_model_body(make_client):
    handler = RecordingHandler(write_response(version=1))
    make_client(handler).versioned("secret").put("app1", Credentials(user="alice"))
    assert handler.json_body() == {"data": {"user": "alice"}}


def test_write_with_cas(make_client):
    handler = RecordingHandler(write_response(version=4))
    current = Metadata(created_at=datetime(2024, 1, 1, tzinfo=timezone.utc), version=Version(3))

    metadata = make_client(handler).versioned("secret").put(
        "app1", Versioned.create({"user": "bob"}, metadata=current)
    )

    assert handler.json_body() == {"data": {"user": "bob"}, "options": {"cas": 3}}
    assert metadata.version == Version(4)


def test_write_create_only(make_client):
    handler = RecordingHandler(write_response(version=1))
    make_client(handler).versioned("secret").put(
        "app1", Versioned.create({"user": "bob"}, version=Version.UNVERSIONED)
    )
    assert handler.json_body()["options"] == {"cas": 0}


def test_write_cas_conflict(make_client):
    handler = RecordingHandler(
        error_response(400, "check-and-set parameter did not match the current version")
    )

    with pytest.raises(CasConflictError):
        make_client(handler).versioned("secret").put(
            "app1", Versioned.create({"user": "bob"}, version=Version(1))
        )


def test_write_without_body_is_configuration_error(make_client):
    handler = RecordingHandler(httpx.Response(204))
    with pytest.raises(ConfigurationError, match="KV v2"):
        make_client(handler).versioned("secret").put("app1", {"user": "alice"})


def test_write_none_body_rejected(make_client):
    handler = RecordingHandler()
    with pytest.raises(ValueError):
        make_client(handler).versioned("secret").put("app1", None)
    assert handler.requests == []


def test_patch_merges_and_writes_with_cas(make_client):
    handler = RecordingHandler(
        read_response({"user": "alice", "role": "dev"}, version=1),
        write_response(version=2),
    )

    assert make_client(handler).versioned("secret").patch("app1", {"role": "admin", "team": "a"}) is True

    assert handler.requests[0].method == "GET"
    body = handler.json_body(1)
    assert body == {"data": {"user": "alice", "role": "admin", "team": "a"}, "options": {"cas": 1}}
    assert list(body["data"]) == ["user", "role", "team"]


def test_patch_lost_race_returns_false(make_client):
    handler = RecordingHandler(
        read_response({"user": "alice"}, version=1),
        error_response(400, "check-and-set parameter did not match the current version"),
    )
    assert make_client(handler).versioned("secret").patch("app1", {"role": "admin"}) is False


def test_patch_other_errors_propagate(make_client):
    handler = RecordingHandler(
        read_response({"user": "alice"}, version=1),
        error_response(500, "internal error"),
    )
    with pytest.raises(VaultServerError) as excinfo:
        make_client(handler).versioned("secret").patch("app1", {"role": "admin"})
    assert not isinstance(excinfo.value, CasConflictError)


def test_patch_missing_secret(make_client):
    handler = RecordingHandler(error_response(404))

    with pytest.raises(SecretNotFoundError) as excinfo:
        make_client(handler).versioned("secret").patch("app1", {"role": "admin"})

    assert excinfo.value.path == "secret/app1"
    assert len(handler.requests) == 1


def test_patch_deleted_secret(make_client):
    handler = RecordingHandler(
        read_response(None, status_code=404, version=1, deletion_time="2024-01-02T00:00:00Z")
    )
    with pytest.raises(SecretNotFoundError):
        make_client(handler).versioned("secret").patch("app1", {"role": "admin"})


def test_delete_latest_uses_data_path(make_client):
    handler = RecordingHandler(httpx.Response(204))

    make_client(handler).versioned("secret").delete("app1")

    assert handler.last.method == "DELETE"
    assert handler.last.url.path == "/v1/secret/data/app1"


def test_delete_versions_uses_delete_sub_path(make_client):
    handler = RecordingHandler(httpx.Response(204))

    make_client(handler).versioned("secret").delete("app1", Version(1), 3, Version.UNVERSIONED)

    assert handler.last.method == "POST"
    assert handler.last.url.path == "/v1/secret/delete/app1"
    assert handler.json_body() == {"versions": [1, 3]}


@pytest.mark.parametrize("action", ["undelete", "destroy"])
def test_lifecycle_sub_paths(make_client, action):
    handler = RecordingHandler(httpx.Response(204))

    getattr(make_client(handler).versioned("secret"), action)("app1", 2, 4)

    assert handler.last.url.path == f"/v1/secret/{action}/app1"
    assert handler.json_body() == {"versions": [2, 4]}


@pytest.mark.parametrize("action", ["undelete", "destroy"])
def test_lifecycle_sends_empty_version_list(make_client, action):
    handler = RecordingHandler(httpx.Response(204))
    getattr(make_client(handler).versioned("secret"), action)("app1")
    assert handler.json_body() == {"versions": []}


def test_lifecycle_error(make_client):
    handler = RecordingHandler(error_response(400, "no version number provided"))
    with pytest.raises(VaultServerError, match="secret/destroy/app1"):
        make_client(handler).versioned("secret").destroy("app1")


def test_list(make_client):
    handler = RecordingHandler(httpx.Response(200, json={"data": {"keys": ["app1", "team/"]}}))

    keys = make_client(handler).versioned("secret").list("/team")

    assert handler.last.url.path == "/v1/secret/metadata/team/"
    assert handler.last.url.params["list"] == "true"
    assert keys == ["app1", "team/"]


def test_list_root(make_client):
    handler = RecordingHandler(httpx.Response(200, json={"data": {"keys": ["app1"]}}))
    make_client(handler).versioned("secret").list("/")
    assert handler.last.url.path == "/v1/secret/metadata/"


def test_list_missing_folder(make_client):
    handler = RecordingHandler(error_response(404))
    assert make_client(handler).versioned("secret").list("nothing") == []


@pytest.mark.parametrize("path", ["", "/"])
def test_empty_path_rejected(make_client, path):
    handler = RecordingHandler()
    with pytest.raises(ValueError):
        make_client(handler).versioned("secret").get(path)
    assert handler.requests == []


def test_empty_mount_rejected(make_client):
    with pytest.raises(ValueError, match="Mount"):
        make_client(RecordingHandler()).versioned("/")


@pytest.mark.asyncio
async def test_async_read(make_async_client):
    handler = RecordingHandler(read_response({"user": "alice"}, version=2))
    kv = make_async_client(handler).versioned("secret")

    secret = await kv.get("app1", 2)

    assert secret.data == {"user": "alice"}
    assert handler.last.url.params["version"] == "2"


@pytest.mark.asyncio
async def test_async_operations_are_lazy(make_async_client):
    handler = RecordingHandler(write_response(version=1))
    kv = make_async_client(handler).versioned("secret")

    pending = kv.put("app1", {"user": "alice"})
    assert handler.requests == []

    metadata = await pending
    assert metadata.version == Version(1)
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_async_patch_lost_race(make_async_client):
    handler = RecordingHandler(
        read_response({"user": "alice"}, version=1),
        error_response(400, "check-and-set parameter did not match the current version"),
    )
    assert await make_async_client(handler).versioned("secret").patch("app1", {"a": "b"}) is False


@pytest.mark.asyncio
async def test_async_missing_is_none(make_async_client):
    handler = RecordingHandler(error_response(404))
    assert await make_async_client(handler).versioned("secret").get("app1") is None


@pytest.mark.asyncio
async def test_async_configuration_error(make_async_client):
    handler = RecordingHandler(httpx.Response(204))
    with pytest.raises(ConfigurationError):
        await make_async_client(handler).versioned("secret").put("app1", {"a": "b"})
