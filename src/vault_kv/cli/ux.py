"""User experience utilities for the vault-kv CLI."""

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from vault_kv.models import EngineMetadata, Metadata

# Define a custom theme for consistent styling
CUSTOM_THEME = Theme(
    {
        "info": "bold cyan",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "secret": "bold magenta",
        "path": "bold blue",
        "heading": "bold white on blue",
    }
)

# Create console for terminal output
console = Console(theme=CUSTOM_THEME)

logger = logging.getLogger("vault_kv.cli")


def print_info(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print an informational message.

    Args:
        message: The message to print
        log: Whether to log to file
        console_output: Whether to print to console
    """
    if console_output:
        console.print(f"[info]INFO:[/info] {message}", *args, **kwargs)
    if log:
        logger.info(message)


def print_success(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print a success message."""
    if console_output:
        console.print(f"[success]SUCCESS:[/success] {message}", *args, **kwargs)
    if log:
        logger.info(f"SUCCESS: {message}")


def print_warning(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print a warning message."""
    if console_output:
        console.print(f"[warning]WARNING:[/warning] {message}", *args, **kwargs)
    if log:
        logger.warning(message)


def print_error(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print an error message."""
    if console_output:
        console.print(f"[error]ERROR:[/error] {message}", *args, **kwargs)
    if log:
        logger.error(message)


def print_secret_data(data: Optional[Mapping[str, Any]]) -> None:
    """Print secret data as JSON."""
    console.print_json(data=dict(data or {}))


def _timestamp(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z") if value else "-"


def print_version_metadata(path: str, metadata: Metadata) -> None:
    """Print a summary table of one secret version."""
    table = Table(title=f"[heading]{path}[/heading]", expand=False, border_style="blue")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="bright_blue")

    table.add_row("version", str(metadata.version.number))
    table.add_row("created", _timestamp(metadata.created_at))
    table.add_row("deleted", _timestamp(metadata.deleted_at))
    table.add_row("destroyed", str(metadata.destroyed).lower())
    for key, value in metadata.custom_metadata.items():
        table.add_row(f"custom.{key}", value)

    console.print(table)


def print_engine_metadata(path: str, metadata: EngineMetadata) -> None:
    """Print key settings followed by a table of all versions."""
    settings_table = Table(title=f"[heading]{path}[/heading]", expand=False, border_style="blue")
    settings_table.add_column("Setting", style="cyan")
    settings_table.add_column("Value", style="bright_blue")

    settings_table.add_row("current_version", str(metadata.current_version))
    settings_table.add_row("oldest_version", str(metadata.oldest_version))
    settings_table.add_row("max_versions", str(metadata.max_versions))
    settings_table.add_row("cas_required", str(metadata.cas_required).lower())
    settings_table.add_row(
        "delete_version_after",
        str(metadata.delete_version_after) if metadata.delete_version_after else "-",
    )
    settings_table.add_row("created", _timestamp(metadata.created_time))
    settings_table.add_row("updated", _timestamp(metadata.updated_time))
    for key, value in metadata.custom_metadata.items():
        settings_table.add_row(f"custom.{key}", value)

    versions_table = Table(title="Versions", expand=False, border_style="blue")
    versions_table.add_column("Version", style="cyan", justify="right")
    versions_table.add_column("Created", style="bright_blue")
    versions_table.add_column("Deleted", style="yellow")
    versions_table.add_column("Destroyed", style="red")
    for entry in metadata.versions:
        versions_table.add_row(
            str(entry.version.number),
            _timestamp(entry.created_at),
            _timestamp(entry.deleted_at),
            "yes" if entry.destroyed else "",
        )

    console.print(settings_table)
    console.print(versions_table)


def print_keys(keys: Iterable[str]) -> None:
    """Print listed keys, one per line; folders end with ``/``."""
    for key in keys:
        style = "path" if key.endswith("/") else "secret"
        console.print(f"[{style}]{key}[/{style}]")
