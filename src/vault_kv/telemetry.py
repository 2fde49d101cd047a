"""Tracing and metrics hooks for Vault requests."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from opentelemetry import trace
from opentelemetry.trace import Span
from prometheus_client import Counter

request_total = Counter(
    "vault_kv_requests_total",
    "Count of Vault key/value HTTP requests by method and status",
    ["method", "status"],
)
cas_conflict_total = Counter(
    "vault_kv_cas_conflicts_total",
    "Count of patch operations that lost a check-and-set race",
)

tracer = trace.get_tracer("vault_kv")


@contextmanager
def request_span(method: str, url: str, path: str) -> Iterator[Span]:
    """Open a client span around a single Vault HTTP call.

    Exceptions raised inside the block are recorded on the span and mark it as
    failed before they propagate.
    """
    with tracer.start_as_current_span(
        f"vault.{method} {path}",
        kind=trace.SpanKind.CLIENT,
        attributes={
            "http.method": method,
            "http.url": url,
            "vault.path": path,
        },
    ) as span:
        yield span


def record_response(span: Span, method: str, status_code: int) -> None:
    span.set_attribute("http.status_code", status_code)
    request_total.labels(method=method, status=str(status_code)).inc()


def record_cas_conflict() -> None:
    cas_conflict_total.inc()
