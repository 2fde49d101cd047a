"""Utilities for redacting Vault tokens from log records."""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Iterable, Mapping, Sequence

SENSITIVE_FIELD_NAMES = {
    "x-vault-token",
    "vault_token",
    "token",
    "client_token",
}

REDACTED = "[REDACTED]"

# Service (hvs.), batch (hvb.), recovery (hvr.) and legacy (s./b.) tokens
_TOKEN_PATTERN = re.compile(r"\b(?:hv[sbr]|[sb])\.[A-Za-z0-9_-]{16,}")
_HEADER_PATTERN = re.compile(r"(?i)(x-vault-token['\"]?\s*[:=]\s*['\"]?)([^\s'\",}]+)")


# Tokens registered at runtime, e.g. the one a transport was built with
_REGISTERED_SECRETS: set[str] = set()


def register_secret(value: str | None) -> None:
    """Scrub ``value`` from every record filtered after this call."""
    if value:
        _REGISTERED_SECRETS.add(value)


def _known_secrets() -> Iterable[str]:
    for key in ("VAULT_TOKEN",):
        value = os.environ.get(key)
        if value:
            yield value
    yield from tuple(_REGISTERED_SECRETS)


class RedactionFilter(logging.Filter):
    """Logging filter that scrubs Vault tokens from records."""

    _SKIP_KEYS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "asctime",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        message = self._render_message(record.msg, record.args)
        record.msg = self._sanitize(message)
        record.args = ()

        for key, value in list(record.__dict__.items()):
            if key in self._SKIP_KEYS:
                continue
            record.__dict__[key] = self._sanitize(value)
        return True

    def _render_message(self, msg: Any, args: Any) -> str:
        if args:
            try:
                return str(msg) % args
            except (TypeError, ValueError):
                return str(msg)
        return str(msg)

    def _sanitize(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._sanitize_string(value)
        if isinstance(value, Mapping):
            return {k: self._sanitize_mapping_value(k, v) for k, v in value.items()}
        if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
            return [self._sanitize(v) for v in value]
        return value

    def _sanitize_mapping_value(self, key: Any, value: Any) -> Any:
        if str(key).lower() in SENSITIVE_FIELD_NAMES:
            return REDACTED
        return self._sanitize(value)

    def _sanitize_string(self, raw: str) -> str:
        cleaned = _HEADER_PATTERN.sub(r"\1" + REDACTED, raw)
        cleaned = _TOKEN_PATTERN.sub(REDACTED, cleaned)
        for secret in _known_secrets():
            if secret in cleaned:
                cleaned = cleaned.replace(secret, REDACTED)
        return cleaned


def install_redaction_filter(target: logging.Logger | logging.Handler | None = None) -> None:
    """Attach :class:`RedactionFilter` to the provided logger or handler.

    Logger filters only see records logged on that exact logger; attach to a
    handler to cover records propagated from child loggers.
    """

    target = target or logging.getLogger("vault_kv")
    if any(isinstance(flt, RedactionFilter) for flt in target.filters):
        return
    target.addFilter(RedactionFilter())


__all__ = ["RedactionFilter", "install_redaction_filter", "register_secret", "REDACTED"]
