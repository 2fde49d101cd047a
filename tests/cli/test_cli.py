"""Tests for the CLI."""

import json

import httpx
import pytest
from typer.testing import CliRunner

from vault_kv import __version__
from vault_kv.cli.main import app
from vault_kv.cli.ux import console
from vault_kv.client import VaultKVClient
from vault_kv.config import Settings
from vault_kv.mock_server import InMemoryVaultServer
from vault_kv.transport import VaultHttpTransport


@pytest.fixture
def runner():
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(console, "width", 200)


@pytest.fixture
def vault():
    return InMemoryVaultServer(kv2_mounts=("secret",), kv1_mounts=("kv",), token="root")


@pytest.fixture
def factory_calls(monkeypatch, vault):
    """Route every CLI client to the in-memory Vault and record the options used."""
    calls = []

    def _get_kv_client(address, token, namespace):
        calls.append({"address": address, "token": token, "namespace": namespace})
        http = httpx.Client(transport=vault.transport())
        return VaultKVClient(VaultHttpTransport(address or "http://vault.test", token, namespace, http=http))

    monkeypatch.setattr("vault_kv.cli.context.get_kv_client", _get_kv_client)
    return calls


def invoke(runner, *args):
    return runner.invoke(app, ["--token", "root", *args])


def test_version(runner):
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_help_lists_commands(runner):
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("get", "put", "patch", "delete", "undelete", "destroy", "list", "metadata"):
        assert command in result.stdout


def test_global_options_reach_the_factory(runner, factory_calls):
    result = runner.invoke(
        app,
        ["--address", "http://vault.test:8200", "--token", "root", "--namespace", "team-a", "list"],
    )

    assert result.exit_code == 0
    assert factory_calls == [
        {"address": "http://vault.test:8200", "token": "root", "namespace": "team-a"}
    ]


def test_put_then_get(runner, factory_calls):
    result = invoke(runner, "put", "app1", "user=alice", "role=dev")
    assert result.exit_code == 0
    assert "version 1" in result.stdout

    result = invoke(runner, "get", "app1")
    assert result.exit_code == 0
    assert '"user": "alice"' in result.stdout
    assert '"role": "dev"' in result.stdout


def test_put_from_yaml_file(runner, factory_calls, tmp_path):
    payload = tmp_path / "secret.yaml"
    payload.write_text("user: alice\npassword: s3cr3t\n", encoding="utf-8")

    result = invoke(runner, "put", "app1", "--file", str(payload), "password=rotated")

    assert result.exit_code == 0
    result = invoke(runner, "get", "app1")
    assert '"password": "rotated"' in result.stdout
    assert '"user": "alice"' in result.stdout


def test_put_from_json_file(runner, factory_calls, tmp_path):
    payload = tmp_path / "secret.json"
    payload.write_text(json.dumps({"port": 5432}), encoding="utf-8")

    result = invoke(runner, "put", "db", "--file", str(payload))

    assert result.exit_code == 0
    assert '"port": 5432' in invoke(runner, "get", "db").stdout


def test_put_without_data_is_a_usage_error(runner, factory_calls):
    result = invoke(runner, "put", "app1")
    assert result.exit_code == 2
    assert factory_calls == []


def test_put_with_stale_cas_fails(runner, factory_calls):
    assert invoke(runner, "put", "app1", "user=alice", "--cas", "0").exit_code == 0

    result = invoke(runner, "put", "app1", "user=bob", "--cas", "0")

    assert result.exit_code == 1
    assert "check-and-set" in result.stdout


def test_get_missing_secret(runner, factory_calls):
    result = invoke(runner, "get", "nothing")
    assert result.exit_code == 1
    assert "No secret found" in result.stdout


def test_get_specific_version(runner, factory_calls):
    invoke(runner, "put", "app1", "user=alice")
    invoke(runner, "put", "app1", "user=bob")

    result = invoke(runner, "get", "app1", "--version", "1")

    assert result.exit_code == 0
    assert '"user": "alice"' in result.stdout


def test_patch(runner, factory_calls):
    invoke(runner, "put", "app1", "user=alice")

    result = invoke(runner, "patch", "app1", "role=admin")

    assert result.exit_code == 0
    output = invoke(runner, "get", "app1").stdout
    assert '"user": "alice"' in output
    assert '"role": "admin"' in output


def test_patch_lost_race_exits_with_2(runner, factory_calls, monkeypatch):
    invoke(runner, "put", "app1", "user=alice")
    monkeypatch.setattr("vault_kv.key_value.KeyValue2Template.patch", lambda self, path, update: False)

    result = invoke(runner, "patch", "app1", "role=admin")

    assert result.exit_code == 2
    assert "changed while patching" in result.stdout


def test_patch_missing_secret(runner, factory_calls):
    result = invoke(runner, "patch", "nothing", "role=admin")
    assert result.exit_code == 1
    assert "No data found" in result.stdout


def test_patch_rejects_malformed_pairs(runner, factory_calls):
    result = invoke(runner, "patch", "app1", "role")
    assert result.exit_code == 2


def test_delete_and_undelete(runner, factory_calls):
    invoke(runner, "put", "app1", "user=alice")
    invoke(runner, "put", "app1", "user=bob")

    assert invoke(runner, "delete", "app1", "--versions", "1").exit_code == 0
    result = invoke(runner, "get", "app1", "--version", "1")
    assert result.exit_code == 0
    assert "is deleted" in result.stdout

    assert invoke(runner, "undelete", "app1", "--versions", "1").exit_code == 0
    assert '"user": "alice"' in invoke(runner, "get", "app1", "--version", "1").stdout


def test_delete_latest(runner, factory_calls):
    invoke(runner, "put", "app1", "user=alice")

    assert invoke(runner, "delete", "app1").exit_code == 0

    assert "is deleted" in invoke(runner, "get", "app1").stdout


def test_destroy(runner, factory_calls):
    invoke(runner, "put", "app1", "user=alice")

    result = invoke(runner, "destroy", "app1", "--versions", "1")

    assert result.exit_code == 0
    assert "is destroyed" in invoke(runner, "get", "app1", "--version", "1").stdout


def test_list(runner, factory_calls):
    invoke(runner, "put", "app1", "a=1")
    invoke(runner, "put", "team/db", "a=1")

    result = invoke(runner, "list")

    assert result.exit_code == 0
    assert "app1" in result.stdout
    assert "team/" in result.stdout


def test_list_empty_folder(runner, factory_calls):
    result = invoke(runner, "list", "nothing")
    assert result.exit_code == 0
    assert "No keys found" in result.stdout


def test_metadata_commands(runner, factory_calls):
    invoke(runner, "put", "app1", "user=alice")

    result = invoke(
        runner,
        "metadata",
        "put",
        "app1",
        "--max-versions",
        "5",
        "--cas-required",
        "--delete-version-after",
        "768h",
        "--custom",
        "owner=payments",
    )
    assert result.exit_code == 0

    result = invoke(runner, "metadata", "get", "app1")
    assert result.exit_code == 0
    assert "max_versions" in result.stdout
    assert "owner" in result.stdout
    assert "32 days" in result.stdout

    assert invoke(runner, "metadata", "delete", "app1").exit_code == 0
    assert invoke(runner, "metadata", "get", "app1").exit_code == 1


def test_metadata_put_rejects_bad_duration(runner, factory_calls):
    invoke(runner, "put", "app1", "user=alice")
    result = invoke(runner, "metadata", "put", "app1", "--delete-version-after", "soon")
    assert result.exit_code == 1
    assert "Cannot parse" in result.stdout


def test_kv1_mount(runner, factory_calls):
    result = invoke(runner, "--mount", "kv", "--kv-version", "1", "put", "app1", "user=alice")
    assert result.exit_code == 0

    result = invoke(runner, "--mount", "kv", "--kv-version", "1", "get", "app1")
    assert result.exit_code == 0
    assert '"user": "alice"' in result.stdout


@pytest.mark.parametrize(
    "args",
    [
        ["undelete", "app1", "--versions", "1"],
        ["destroy", "app1", "--versions", "1"],
        ["metadata", "get", "app1"],
        ["patch", "app1", "a=b"],
    ],
)
def test_kv1_rejects_versioned_commands(runner, factory_calls, args):
    result = invoke(runner, "--mount", "kv", "--kv-version", "1", *args)
    assert result.exit_code == 1


def test_missing_token(runner, monkeypatch):
    monkeypatch.delenv("VAULT_TOKEN", raising=False)
    monkeypatch.setattr("vault_kv.factory.default_settings", Settings(VAULT_TOKEN=None))

    result = runner.invoke(app, ["--address", "http://vault.test", "get", "app1"])

    assert result.exit_code == 1
    assert "vault_token is required" in result.stdout


def test_put_from_malformed_yaml_file(runner, factory_calls, tmp_path):
    payload = tmp_path / "secret.yaml"
    payload.write_text("user: [alice\n", encoding="utf-8")

    result = invoke(runner, "put", "app1", "--file", str(payload))

    assert result.exit_code == 2
    assert isinstance(result.exception, SystemExit)
    assert factory_calls == []


def test_put_from_malformed_json_file(runner, factory_calls, tmp_path):
    payload = tmp_path / "secret.json"
    payload.write_text("{'user': 'alice'", encoding="utf-8")

    result = invoke(runner, "put", "app1", "--file", str(payload))

    assert result.exit_code == 2
    assert factory_calls == []


def test_dry_run_never_builds_a_real_client(runner, factory_calls, monkeypatch):
    monkeypatch.setattr("vault_kv.factory.default_settings", Settings(VAULT_TOKEN=None))

    result = runner.invoke(app, ["--dry-run", "put", "app1", "user=alice"])

    assert result.exit_code == 0
    assert "Dry run" in result.stdout
    assert "version 1" in result.stdout
    assert factory_calls == []


def test_dry_run_starts_from_an_empty_vault(runner, factory_calls):
    assert invoke(runner, "put", "app1", "user=alice").exit_code == 0

    result = invoke(runner, "--dry-run", "get", "app1")

    assert result.exit_code == 1
    assert "No secret found" in result.stdout


def test_dry_run_on_kv1_mount(runner, factory_calls):
    result = invoke(runner, "--dry-run", "--mount", "legacy", "--kv-version", "1", "put", "app1", "a=1")

    assert result.exit_code == 0
    assert factory_calls == []
