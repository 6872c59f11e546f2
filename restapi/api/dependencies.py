"""Route Dependencies — capabilities injected into every handler.

Invariants:
    - Handlers reach the cluster only through RequestScope.call (one call per request)
    - A call never outlives its request: it ends on completion, on timeout
      (RemoteTimeoutError) or on client disconnect (ClientDisconnectedError)
    - The remote caller and uploader live on app.state; tests swap them via
      app.dependency_overrides

Design Decisions:
    - Disconnect is detected by draining the ASGI receive channel until
      http.disconnect, the same way streaming responses watch for it
"""

import asyncio
import logging
from typing import Any

from fastapi import Depends, Request
from starlette.types import Receive

from restapi.config import Settings, get_settings
from restapi.core.errors import ClientDisconnectedError, ErrorContext, RemoteTimeoutError
from restapi.infrastructure.rpc_client import RemoteCaller
from restapi.infrastructure.uploader import Uploader

logger = logging.getLogger(__name__)


class RequestScope:
    """Binds remote calls to the lifetime of one inbound request."""

    def __init__(
        self,
        caller: RemoteCaller,
        receive: Receive | None = None,
        timeout_seconds: float | None = None,
    ):
        self.caller = caller
        self.receive = receive
        self.timeout_seconds = timeout_seconds

    async def call(self, service: str, method: str, arg: Any = None) -> Any:
        context = ErrorContext(rpc_service=service, rpc_method=method)
        call = asyncio.ensure_future(self.caller.call(service, method, arg))
        watchers = {call}
        disconnect = None
        if self.receive is not None:
            disconnect = asyncio.ensure_future(self._wait_for_disconnect())
            watchers.add(disconnect)
        try:
            done, _ = await asyncio.wait(
                watchers,
                timeout=self.timeout_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in watchers:
                task.cancel()

        if call in done:
            return call.result()
        if disconnect is not None and disconnect in done:
            logger.info(
                f"client gone, cancelled {service}.{method}",
                extra={"rpc_service": service, "rpc_method": method},
            )
            raise ClientDisconnectedError(context)
        raise RemoteTimeoutError(self.timeout_seconds, context)

    async def _wait_for_disconnect(self) -> None:
        while True:
            message = await self.receive()
            if message["type"] == "http.disconnect":
                return


def get_remote_caller(request: Request) -> RemoteCaller:
    return request.app.state.remote_caller


def get_uploader(request: Request) -> Uploader:
    return request.app.state.uploader


def get_request_scope(
    request: Request,
    caller: RemoteCaller = Depends(get_remote_caller),
    settings: Settings = Depends(get_settings),
) -> RequestScope:
    return RequestScope(caller, request.receive, settings.rpc_timeout_seconds)
