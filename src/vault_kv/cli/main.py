"""vault-kv CLI entry point."""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import typer

from vault_kv import __version__
from vault_kv.config import settings
from vault_kv.constants import (
    ENV_KV_MOUNT,
    ENV_KV_VERSION,
    ENV_VAULT_ADDR,
    ENV_VAULT_NAMESPACE,
    ENV_VAULT_TOKEN,
    KeyValueBackend,
)
from vault_kv.logging.redact import install_redaction_filter

from .commands import (
    delete_metadata,
    delete_secret,
    destroy_secret,
    get_metadata,
    get_secret,
    list_secrets,
    patch_secret,
    put_metadata,
    put_secret,
    undelete_secret,
)
from .context import CliState
from .ux import print_info

LOG_DIR = Path.home() / ".vault-kv" / "logs"
LOG_FILE = LOG_DIR / "vault-kv.log"


def setup_logging(verbose: bool = False) -> None:
    """Send logs to a rotating file only, never to the console."""
    os.makedirs(LOG_DIR, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    install_redaction_filter(file_handler)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, handlers=[file_handler])


# Root typer for `vault-kv` CLI commands
app = typer.Typer(
    help="Read and manage secrets in a Vault key/value engine", no_args_is_help=True
)

app.command(name="get")(get_secret)
app.command(name="put")(put_secret)
app.command(name="patch")(patch_secret)
app.command(name="delete")(delete_secret)
app.command(name="undelete")(undelete_secret)
app.command(name="destroy")(destroy_secret)
app.command(name="list")(list_secrets)

# Sub-typer for `vault-kv metadata` commands
app_cmd_metadata = typer.Typer(
    help="Key settings and version history (K/V version 2 only)", no_args_is_help=True
)
app_cmd_metadata.command(name="get")(get_metadata)
app_cmd_metadata.command(name="put")(put_metadata)
app_cmd_metadata.command(name="delete")(delete_metadata)
app.add_typer(app_cmd_metadata, name="metadata", help="Manage key metadata")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vault-kv version: {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    mount: str = typer.Option(
        settings.VAULT_KV_MOUNT,
        "--mount",
        "-m",
        help="Mount path of the key/value engine.",
        envvar=ENV_KV_MOUNT,
    ),
    kv_version: KeyValueBackend = typer.Option(
        settings.VAULT_KV_VERSION,
        "--kv-version",
        help="Key/value engine version of the mount.",
        envvar=ENV_KV_VERSION,
    ),
    address: Optional[str] = typer.Option(
        None,
        "--address",
        help="Vault address. Defaults to VAULT_ADDR environment variable.",
        envvar=ENV_VAULT_ADDR,
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        help="Vault token. Defaults to VAULT_TOKEN environment variable.",
        envvar=ENV_VAULT_TOKEN,
        show_default=False,
    ),
    namespace: Optional[str] = typer.Option(
        None,
        "--namespace",
        help="Vault Enterprise namespace.",
        envvar=ENV_VAULT_NAMESPACE,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Run against an empty in-memory Vault instead of the configured server.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Vault key/value CLI."""
    ctx.obj = CliState(
        address=address,
        token=token,
        namespace=namespace,
        mount=mount,
        kv_version=kv_version,
        dry_run=dry_run,
    )
    if dry_run:
        print_info("Dry run: using an in-memory Vault, nothing is sent to the server")


def run() -> None:
    """Run the CLI application."""
    setup_logging(settings.VAULT_KV_VERBOSE)
    app()


if __name__ == "__main__":
    run()
