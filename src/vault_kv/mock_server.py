"""In-memory Vault key/value server for tests and dry runs.

:class:`InMemoryVaultServer` is an ``httpx.MockTransport`` handler that serves
the KV v1 and KV v2 HTTP API from process memory: versions, check-and-set,
soft delete, undelete, destroy, key metadata and listing. Plug it into either
transport::

    server = InMemoryVaultServer()
    transport = VaultHttpTransport("http://vault.test", "root",
                                   http=httpx.Client(transport=server.transport()))
"""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import httpx

from .constants import API_PREFIX, VAULT_TOKEN_HEADER
from .durations import format_duration, parse_duration

DEFAULT_MAX_VERSIONS = 10


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@dataclass
class _VersionRecord:
    data: Optional[Dict[str, Any]]
    created_time: datetime
    deletion_time: Optional[datetime] = None
    destroyed: bool = False


@dataclass
class _Key:
    created_time: datetime
    updated_time: datetime
    versions: Dict[int, _VersionRecord] = field(default_factory=dict)
    current_version: int = 0
    oldest_version: int = 0
    max_versions: int = 0
    cas_required: bool = False
    delete_version_after: timedelta = field(default_factory=timedelta)
    custom_metadata: Optional[Dict[str, str]] = None


class InMemoryVaultServer:
    """Emulates KV v2 (versioned) and KV v1 mounts behind ``/v1/``."""

    def __init__(
        self,
        kv2_mounts: Iterable[str] = ("secret",),
        kv1_mounts: Iterable[str] = (),
        token: Optional[str] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self.kv2_mounts = {mount.strip("/") for mount in kv2_mounts}
        self.kv1_mounts = {mount.strip("/") for mount in kv1_mounts}
        self.token = token
        self.clock = clock
        self.requests: List[httpx.Request] = []
        self._kv2: Dict[Tuple[str, str], _Key] = {}
        self._kv1: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def transport(self) -> httpx.MockTransport:
        """An httpx transport usable by both ``httpx.Client`` and ``httpx.AsyncClient``."""
        return httpx.MockTransport(self)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            if self.token is not None and request.headers.get(VAULT_TOKEN_HEADER) != self.token:
                return _errors(403, "permission denied")

            prefix = f"/{API_PREFIX}/"
            if not request.url.path.startswith(prefix):
                return _errors(404, "unsupported path")
            full_path = request.url.path[len(prefix):]

            mount, rest = self._match_mount(full_path)
            if mount is None:
                return _errors(404, f"no handler for route '{full_path}'")
            if mount in self.kv2_mounts:
                return self._handle_kv2(request, mount, rest)
            return self._handle_kv1(request, mount, rest)

    def _match_mount(self, full_path: str) -> Tuple[Optional[str], str]:
        for mount in sorted(self.kv2_mounts | self.kv1_mounts, key=len, reverse=True):
            if full_path == mount or full_path.startswith(mount + "/"):
                return mount, full_path[len(mount) + 1:]
        return None, ""

    def _handle_kv2(self, request: httpx.Request, mount: str, rest: str) -> httpx.Response:
        segment, _, path = rest.partition("/")
        method = request.method
        is_list = method == "LIST" or request.url.params.get("list") == "true"

        if segment == "data":
            if method == "GET":
                return self._read(mount, path, request.url.params.get("version"))
            if method in ("POST", "PUT"):
                return self._write(mount, path, _body(request))
            if method == "DELETE":
                return self._delete_latest(mount, path)
        elif segment == "metadata":
            if is_list:
                return self._list_kv2(mount, path)
            if method == "GET":
                return self._read_metadata(mount, path)
            if method in ("POST", "PUT"):
                return self._write_metadata(mount, path, _body(request))
            if method == "DELETE":
                self._kv2.pop((mount, path.strip("/")), None)
                return httpx.Response(204)
        elif segment in ("delete", "undelete", "destroy") and method in ("POST", "PUT"):
            return self._lifecycle(segment, mount, path, _body(request))
        return _errors(405, "unsupported operation")

    # ------------------------------------------------------------------
    # KV v2
    # ------------------------------------------------------------------

    def _read(self, mount: str, path: str, version_param: Optional[str]) -> httpx.Response:
        key = self._kv2.get((mount, path.strip("/")))
        if key is None:
            return _errors(404)
        number = int(version_param) if version_param else key.current_version
        if number <= 0:
            number = key.current_version
        record = key.versions.get(number)
        if record is None:
            return _errors(404)

        body = {
            "request_id": str(uuid.uuid4()),
            "lease_id": "",
            "renewable": False,
            "lease_duration": 0,
            "data": {
                "data": record.data,
                "metadata": self._version_metadata(key, number, record),
            },
            "wrap_info": None,
            "warnings": None,
            "auth": None,
        }
        if record.deletion_time is not None or record.destroyed:
            body["data"]["data"] = None
            return httpx.Response(404, json=body)
        return httpx.Response(200, json=body)

    def _write(self, mount: str, path: str, body: Dict[str, Any]) -> httpx.Response:
        if "data" not in body or body["data"] is None:
            return _errors(400, "no data provided")
        path = path.strip("/")
        key = self._kv2.get((mount, path))
        current = key.current_version if key is not None else 0
        cas = (body.get("options") or {}).get("cas")

        if cas is None and key is not None and key.cas_required:
            return _errors(400, "check-and-set parameter required for this call")
        if cas is not None and int(cas) != current:
            return _errors(400, "check-and-set parameter did not match the current version")

        now = self.clock()
        if key is None:
            key = _Key(created_time=now, updated_time=now)
            self._kv2[(mount, path)] = key

        number = current + 1
        record = _VersionRecord(data=dict(body["data"]), created_time=now)
        key.versions[number] = record
        key.current_version = number
        key.updated_time = now
        if key.oldest_version == 0:
            key.oldest_version = number
        self._trim_versions(key)

        return httpx.Response(
            200,
            json={"request_id": str(uuid.uuid4()), "data": self._version_metadata(key, number, record)},
        )

    def _trim_versions(self, key: _Key) -> None:
        limit = key.max_versions or DEFAULT_MAX_VERSIONS
        for number in sorted(key.versions):
            if len(key.versions) <= limit:
                break
            del key.versions[number]
        if key.versions:
            key.oldest_version = min(key.versions)

    def _delete_latest(self, mount: str, path: str) -> httpx.Response:
        key = self._kv2.get((mount, path.strip("/")))
        if key is not None:
            record = key.versions.get(key.current_version)
            if record is not None and not record.destroyed and record.deletion_time is None:
                record.deletion_time = self.clock()
        return httpx.Response(204)

    def _lifecycle(self, action: str, mount: str, path: str, body: Dict[str, Any]) -> httpx.Response:
        versions = body.get("versions") or []
        if not versions:
            return _errors(400, "no version number provided")
        key = self._kv2.get((mount, path.strip("/")))
        if key is None:
            return httpx.Response(204)
        now = self.clock()
        for number in versions:
            record = key.versions.get(int(number))
            if record is None or record.destroyed:
                continue
            if action == "delete":
                record.deletion_time = record.deletion_time or now
            elif action == "undelete":
                record.deletion_time = None
            else:
                record.destroyed = True
                record.data = None
        key.updated_time = now
        return httpx.Response(204)

    def _list_kv2(self, mount: str, path: str) -> httpx.Response:
        keys = _children(path, (name for (m, name) in self._kv2 if m == mount))
        if not keys:
            return _errors(404)
        return httpx.Response(200, json={"data": {"keys": keys}})

    def _read_metadata(self, mount: str, path: str) -> httpx.Response:
        key = self._kv2.get((mount, path.strip("/")))
        if key is None:
            return _errors(404)
        versions = {
            str(number): {
                "created_time": _format_time(record.created_time),
                "deletion_time": _format_time(record.deletion_time),
                "destroyed": record.destroyed,
            }
            for number, record in sorted(key.versions.items())
        }
        return httpx.Response(
            200,
            json={
                "request_id": str(uuid.uuid4()),
                "data": {
                    "cas_required": key.cas_required,
                    "created_time": _format_time(key.created_time),
                    "current_version": key.current_version,
                    "custom_metadata": key.custom_metadata,
                    "delete_version_after": format_duration(key.delete_version_after),
                    "max_versions": key.max_versions,
                    "oldest_version": key.oldest_version,
                    "updated_time": _format_time(key.updated_time),
                    "versions": versions,
                },
            },
        )

    def _write_metadata(self, mount: str, path: str, body: Dict[str, Any]) -> httpx.Response:
        path = path.strip("/")
        now = self.clock()
        key = self._kv2.setdefault((mount, path), _Key(created_time=now, updated_time=now))
        if "max_versions" in body:
            key.max_versions = int(body["max_versions"])
        if "cas_required" in body:
            key.cas_required = bool(body["cas_required"])
        if "delete_version_after" in body:
            try:
                key.delete_version_after = parse_duration(body["delete_version_after"]) or timedelta(0)
            except ValueError as exc:
                return _errors(400, str(exc))
        if "custom_metadata" in body:
            key.custom_metadata = body["custom_metadata"] or None
        key.updated_time = now
        self._trim_versions(key)
        return httpx.Response(204)

    def _version_metadata(self, key: _Key, number: int, record: _VersionRecord) -> Dict[str, Any]:
        return {
            "created_time": _format_time(record.created_time),
            "custom_metadata": key.custom_metadata,
            "deletion_time": _format_time(record.deletion_time),
            "destroyed": record.destroyed,
            "version": number,
        }

    # ------------------------------------------------------------------
    # KV v1
    # ------------------------------------------------------------------

    def _handle_kv1(self, request: httpx.Request, mount: str, path: str) -> httpx.Response:
        method = request.method
        if method == "LIST" or (method == "GET" and request.url.params.get("list") == "true"):
            keys = _children(path, (name for (m, name) in self._kv1 if m == mount))
            if not keys:
                return _errors(404)
            return httpx.Response(200, json={"data": {"keys": keys}})

        path = path.strip("/")
        if method == "GET":
            data = self._kv1.get((mount, path))
            if data is None:
                return _errors(404)
            return httpx.Response(
                200,
                json={
                    "request_id": str(uuid.uuid4()),
                    "lease_id": "",
                    "renewable": False,
                    "lease_duration": 2764800,
                    "data": data,
                },
            )
        if method in ("POST", "PUT"):
            self._kv1[(mount, path)] = _body(request)
            return httpx.Response(204)
        if method == "DELETE":
            self._kv1.pop((mount, path), None)
            return httpx.Response(204)
        return _errors(405, "unsupported operation")


def _body(request: httpx.Request) -> Dict[str, Any]:
    if not request.content:
        return {}
    return json.loads(request.content)


def _errors(status_code: int, *errors: str) -> httpx.Response:
    return httpx.Response(status_code, json={"errors": list(errors)})


def _children(prefix: str, names: Iterable[str]) -> List[str]:
    prefix = prefix.strip("/")
    prefix = f"{prefix}/" if prefix else ""
    children = set()
    for name in names:
        if not name.startswith(prefix):
            continue
        remainder = name[len(prefix):]
        head, sep, _ = remainder.partition("/")
        children.add(head + sep)
    return sorted(children)
