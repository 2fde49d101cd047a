"""Error types raised by the Vault key/value client."""

from __future__ import annotations

import json
from typing import Optional, Sequence

import httpx

from .constants import CAS_CONFLICT_MARKERS


class VaultKVError(Exception):
    """Base class for all errors raised by this library."""


class MalformedResponseError(VaultKVError):
    """Raised when a successful response lacks a required field or cannot be decoded.

    This indicates a protocol mismatch between client and server and is not
    retryable.
    """


class SecretNotFoundError(VaultKVError):
    """Raised when an operation requires existing data at a path that has none."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class ConfigurationError(VaultKVError):
    """Raised when an operation targets a mount that cannot serve it."""


class UnsupportedOperationError(ConfigurationError):
    """Raised when the selected engine version does not support an operation."""


class VaultServerError(VaultKVError):
    """Raised for non-2xx responses that are not modelled as an empty result."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        path: str,
        errors: Sequence[str] = (),
    ):
        super().__init__(message)
        self.status_code = status_code
        self.path = path
        self.errors = list(errors)


class CasConflictError(VaultServerError):
    """Raised when a check-and-set write was rejected because the version moved on."""


def is_cas_conflict(message: Optional[str]) -> bool:
    """Return True if a server error message reports a check-and-set mismatch.

    Vault signals a CAS failure with a plain 400 and prose error text only, so
    this is a substring match. Keep every such check behind this predicate.
    """
    if not message:
        return False
    return any(marker in message for marker in CAS_CONFLICT_MARKERS)


def extract_errors(body: str) -> list[str]:
    """Pull the ``errors`` array out of a Vault error body.

    Non-JSON bodies (or JSON without ``errors``) yield the raw text as the
    only element; an empty body yields an empty list.
    """
    if not body or not body.strip():
        return []
    if '"errors"' in body:
        try:
            parsed = json.loads(body)
        except ValueError:
            return [body]
        if isinstance(parsed, dict) and isinstance(parsed.get("errors"), list):
            return [str(error) for error in parsed["errors"]]
    return [body]


def build_server_error(response: httpx.Response, path: str) -> VaultServerError:
    """Map a non-2xx response into a :class:`VaultServerError`.

    The message format is ``Status <code> <reason> [<path>]: <errors>``.
    Check-and-set mismatches come back as :class:`CasConflictError`.
    """
    errors = extract_errors(response.text)
    reason = httpx.codes.get_reason_phrase(response.status_code)
    status = f"Status {response.status_code} {reason}".rstrip()

    if len(errors) == 1:
        detail = errors[0]
    elif errors:
        detail = "[" + ", ".join(errors) + "]"
    else:
        detail = ""

    message = f"{status} [{path}]: {detail}" if detail else f"{status} [{path}]"
    error_cls = CasConflictError if is_cas_conflict(detail) else VaultServerError
    return error_cls(message, status_code=response.status_code, path=path, errors=errors)


__all__ = [
    "VaultKVError",
    "MalformedResponseError",
    "SecretNotFoundError",
    "ConfigurationError",
    "UnsupportedOperationError",
    "VaultServerError",
    "CasConflictError",
    "is_cas_conflict",
    "extract_errors",
    "build_server_error",
]
