"""Key metadata commands for K/V version 2 mounts."""

from typing import List, Optional

import typer

from vault_kv.durations import parse_duration
from vault_kv.models import MetadataRequest

from ..context import get_state, handle_errors, parse_pairs
from ..ux import print_engine_metadata, print_error, print_success


def get_metadata(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
) -> None:
    """Show key settings and the state of every version."""
    state = get_state(ctx)
    state.require_versioned("metadata get")

    with handle_errors(), state.client() as client:
        metadata = client.metadata(state.mount).get(path)

    if metadata is None:
        print_error(f"No metadata found for {state.mount}/{path}")
        raise typer.Exit(1)
    print_engine_metadata(f"{state.mount}/{path}", metadata)


def put_metadata(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
    max_versions: int = typer.Option(
        0, "--max-versions", min=0, help="Versions to keep. 0 uses the mount default."
    ),
    cas_required: bool = typer.Option(
        False, "--cas-required/--no-cas-required", help="Require check-and-set on every write"
    ),
    delete_version_after: Optional[str] = typer.Option(
        None,
        "--delete-version-after",
        help="Soft-delete versions after this duration, e.g. 768h or 30m. 0s disables.",
    ),
    custom: Optional[List[str]] = typer.Option(
        None, "--custom", help="KEY=VALUE custom metadata entry. Repeatable."
    ),
) -> None:
    """Write key settings."""
    state = get_state(ctx)
    state.require_versioned("metadata put")

    with handle_errors(), state.client() as client:
        request = MetadataRequest(
            max_versions=max_versions,
            cas_required=cas_required,
            delete_version_after=parse_duration(delete_version_after),
            custom_metadata=parse_pairs(custom) if custom else None,
        )
        client.metadata(state.mount).put(path, request)

    print_success(f"Updated metadata of {state.mount}/{path}")


def delete_metadata(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Secret path relative to the mount"),
) -> None:
    """Delete a key with its metadata and all versions."""
    state = get_state(ctx)
    state.require_versioned("metadata delete")

    with handle_errors(), state.client() as client:
        client.metadata(state.mount).delete(path)

    print_success(f"Deleted all versions and metadata of {state.mount}/{path}")
