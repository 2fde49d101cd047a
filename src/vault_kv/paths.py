"""Secret path composition for the key/value engines.

Every segment is slash-stripped before joining, so callers may pass mounts and
paths with or without leading/trailing ``/`` and always get exactly one
separator between segments.
"""

from __future__ import annotations

from .constants import DATA_SEGMENT, METADATA_SEGMENT, VERSION_ACTIONS


def join_path(*segments: str) -> str:
    """Join path segments with single slashes, dropping empty segments."""
    parts = [segment.strip("/") for segment in segments]
    return "/".join(part for part in parts if part)


def backend_path(mount: str, segment: str, path: str) -> str:
    """Return ``<mount>/<segment>/<path>``."""
    return join_path(mount, segment, path)


def data_path(mount: str, path: str) -> str:
    """Return the KV v2 data path ``<mount>/data/<path>``."""
    return backend_path(mount, DATA_SEGMENT, path)


def metadata_path(mount: str, path: str) -> str:
    """Return the KV v2 metadata path ``<mount>/metadata/<path>``."""
    return backend_path(mount, METADATA_SEGMENT, path)


def version_action_path(mount: str, action: str, path: str) -> str:
    """Return ``<mount>/<action>/<path>`` for delete, undelete or destroy."""
    if action not in VERSION_ACTIONS:
        raise ValueError(f"Unknown version action '{action}'; expected one of {sorted(VERSION_ACTIONS)}")
    return backend_path(mount, action, path)


def kv1_path(mount: str, path: str) -> str:
    """Return the KV v1 path ``<mount>/<path>``."""
    return join_path(mount, path)


def normalize_list_path(path: str) -> str:
    """Normalize a path for list requests.

    The root (``/`` or empty) becomes the empty string; anything else gets
    exactly one trailing slash and no leading slash.
    """
    if path is None:
        raise ValueError("Path must not be None")
    stripped = path.strip("/")
    return f"{stripped}/" if stripped else ""


def require_path(path: str) -> str:
    """Validate that a secret path has text."""
    if not path or not path.strip("/"):
        raise ValueError("Path must not be empty")
    return path
