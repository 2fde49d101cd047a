"""Scheduling adapters that drive key/value flows.

The same flow from :mod:`vault_kv.flows` runs under either executor:
:class:`BlockingExecutor` returns the result directly, :class:`AsyncExecutor`
returns a coroutine that performs the requests only once it is awaited.
"""

from __future__ import annotations

from typing import Any, Coroutine, TypeVar

from .flows import Flow
from .transport import AsyncTransport, SyncTransport

R = TypeVar("R")


class BlockingExecutor:
    """Runs flows on the calling thread."""

    is_async = False

    def __init__(self, transport: SyncTransport):
        self.transport = transport

    def execute(self, flow: Flow[R]) -> R:
        try:
            request = next(flow)
            while True:
                response = self.transport.send(request)
                request = flow.send(response)
        except StopIteration as stop:
            return stop.value
        finally:
            flow.close()


class AsyncExecutor:
    """Runs flows on the event loop; suspension happens only inside the transport."""

    is_async = True

    def __init__(self, transport: AsyncTransport):
        self.transport = transport

    def execute(self, flow: Flow[R]) -> Coroutine[Any, Any, R]:
        return self._drive(flow)

    async def _drive(self, flow: Flow[R]) -> R:
        try:
            request = next(flow)
            while True:
                response = await self.transport.send(request)
                request = flow.send(response)
        except StopIteration as stop:
            return stop.value
        finally:
            flow.close()
