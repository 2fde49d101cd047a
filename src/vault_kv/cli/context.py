"""State shared by the vault-kv CLI commands."""

import json
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import httpx
import typer
import yaml
from rich.markup import escape

from vault_kv.client import VaultKVClient
from vault_kv.constants import KeyValueBackend
from vault_kv.errors import VaultKVError
from vault_kv.factory import get_kv_client
from vault_kv.mock_server import InMemoryVaultServer
from vault_kv.transport import VaultHttpTransport

from .ux import print_error

DRY_RUN_ADDR = "http://vault.dry-run"


@dataclass
class CliState:
    """Connection options collected by the root callback."""

    address: Optional[str] = None
    token: Optional[str] = None
    namespace: Optional[str] = None
    mount: str = "secret"
    kv_version: KeyValueBackend = KeyValueBackend.KV_2
    dry_run: bool = False

    @property
    def versioned(self) -> bool:
        return self.kv_version == KeyValueBackend.KV_2

    def client(self) -> VaultKVClient:
        if self.dry_run:
            return self._dry_run_client()
        return get_kv_client(self.address, self.token, self.namespace)

    def _dry_run_client(self) -> VaultKVClient:
        """Client backed by an empty in-memory Vault that only knows ``mount``."""
        server = InMemoryVaultServer(
            kv2_mounts=(self.mount,) if self.versioned else (),
            kv1_mounts=() if self.versioned else (self.mount,),
        )
        http = httpx.Client(transport=server.transport())
        return VaultKVClient(
            VaultHttpTransport(self.address or DRY_RUN_ADDR, self.token, self.namespace, http=http)
        )

    def require_versioned(self, command: str) -> None:
        if not self.versioned:
            print_error(f"'{command}' requires a K/V version 2 mount; '{self.mount}' is version 1")
            raise typer.Exit(1)


def get_state(ctx: typer.Context) -> CliState:
    if ctx.obj is None:
        ctx.obj = CliState()
    return ctx.obj


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print library and connection errors and exit with status 1."""
    try:
        yield
    except (VaultKVError, ValueError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(1) from e
    except httpx.HTTPError as e:
        print_error(escape(f"Cannot reach Vault: {e}"))
        raise typer.Exit(1) from e


def parse_pairs(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` arguments into a mapping."""
    data: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{pair}'")
        data[key] = value
    return data


def load_payload_file(file: Path) -> Dict[str, Any]:
    """Load secret data from a JSON or YAML file."""
    text = file.read_text(encoding="utf-8")
    try:
        if file.suffix.lower() in (".yaml", ".yml"):
            loaded = yaml.safe_load(text)
        else:
            loaded = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise typer.BadParameter(f"Cannot parse {file.name}: {e}") from e
    if not isinstance(loaded, dict):
        raise typer.BadParameter(f"{file} must contain a mapping at the top level")
    return loaded
