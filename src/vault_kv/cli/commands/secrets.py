"""Secret read/write commands: get, put, patch, delete, undelete, destroy, list."""

from pathlib import Path
from typing import List, Optional

import typer

from vault_kv.models import Version, Versioned

from ..context import get_state, handle_errors, load_payload_file, parse_pairs
from ..ux import (
    print_error,
    print_info,
    print_keys,
    print_secret_data,
    print_success,
    print_version_metadata,
    print_warning,
)


def get_secret(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
    version: Optional[int] = typer.Option(
        None, "--version", "-v", help="Version to read. Defaults to the latest."
    ),
) -> None:
    """Read a secret and print its data."""
    state = get_state(ctx)

    with handle_errors(), state.client() as client:
        if not state.versioned:
            if version is not None:
                state.require_versioned("get --version")
            response = client.key_value(state.mount, state.kv_version).get(path)
            if response is None:
                print_error(f"No secret found at {state.mount}/{path}")
                raise typer.Exit(1)
            print_secret_data(response.data)
            return

        secret = client.versioned(state.mount).get(path, version)
        if secret is None:
            print_error(f"No secret found at {state.mount}/{path}")
            raise typer.Exit(1)

        print_version_metadata(f"{state.mount}/{path}", secret.required_metadata)
        if not secret.has_data:
            state_name = "destroyed" if secret.required_metadata.destroyed else "deleted"
            print_warning(f"{secret.version} of {state.mount}/{path} is {state_name}")
            return
        print_secret_data(secret.data)


def put_secret(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
    pairs: Optional[List[str]] = typer.Argument(None, help="KEY=VALUE pairs to store"),
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="JSON or YAML file with the secret data. KEY=VALUE pairs override its entries.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    cas: Optional[int] = typer.Option(
        None,
        "--cas",
        help="Only write if the current version is N. Use 0 to only create a new secret.",
        min=0,
    ),
) -> None:
    """Write a new version of a secret."""
    state = get_state(ctx)

    with handle_errors():
        data = load_payload_file(file) if file else {}
    data.update(parse_pairs(pairs))
    if not data:
        raise typer.BadParameter("Provide KEY=VALUE pairs or --file")

    with handle_errors(), state.client() as client:
        if cas is not None:
            state.require_versioned("put --cas")
            metadata = client.versioned(state.mount).put(
                path, Versioned.create(data, version=Version.of(cas))
            )
        elif state.versioned:
            metadata = client.versioned(state.mount).put(path, data)
        else:
            client.key_value(state.mount, state.kv_version).put(path, data)
            print_success(f"Stored {state.mount}/{path}")
            return

    print_success(f"Stored {state.mount}/{path} as version {metadata.version.number}")


def patch_secret(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
    pairs: List[str] = typer.Argument(..., help="KEY=VALUE pairs to merge into the secret"),
) -> None:
    """Merge KEY=VALUE pairs into the latest version of a secret.

    Exits with status 2 if another writer updated the secret concurrently.
    """
    state = get_state(ctx)
    update = parse_pairs(pairs)

    with handle_errors(), state.client() as client:
        patched = client.key_value(state.mount, state.kv_version).patch(path, update)

    if not patched:
        print_warning(f"{state.mount}/{path} changed while patching; nothing written")
        raise typer.Exit(2)
    print_success(f"Patched {state.mount}/{path}")


def delete_secret(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
    versions: Optional[List[int]] = typer.Option(
        None, "--versions", help="Versions to soft-delete. Defaults to the latest."
    ),
) -> None:
    """Soft-delete versions of a secret (the whole secret on K/V version 1)."""
    state = get_state(ctx)

    with handle_errors(), state.client() as client:
        if versions:
            state.require_versioned("delete --versions")
            client.versioned(state.mount).delete(path, *versions)
        else:
            client.key_value(state.mount, state.kv_version).delete(path)

    target = f"versions {', '.join(map(str, versions))} of " if versions else ""
    print_success(f"Deleted {target}{state.mount}/{path}")


def undelete_secret(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
    versions: List[int] = typer.Option(..., "--versions", help="Versions to restore"),
) -> None:
    """Restore soft-deleted versions of a secret."""
    state = get_state(ctx)
    state.require_versioned("undelete")

    with handle_errors(), state.client() as client:
        client.versioned(state.mount).undelete(path, *versions)

    print_success(f"Undeleted versions {', '.join(map(str, versions))} of {state.mount}/{path}")


def destroy_secret(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
    versions: List[int] = typer.Option(..., "--versions", help="Versions to destroy permanently"),
) -> None:
    """Permanently destroy versions of a secret."""
    state = get_state(ctx)
    state.require_versioned("destroy")

    with handle_errors(), state.client() as client:
        client.versioned(state.mount).destroy(path, *versions)

    print_success(f"Destroyed versions {', '.join(map(str, versions))} of {state.mount}/{path}")


def list_secrets(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Folder to list. Defaults to the mount root."),
) -> None:
    """List keys below a folder."""
    state = get_state(ctx)

    with handle_errors(), state.client() as client:
        keys = client.key_value(state.mount, state.kv_version).list(path)

    if not keys:
        print_info(f"No keys found under {state.mount}/{path}")
        return
    print_keys(keys)
