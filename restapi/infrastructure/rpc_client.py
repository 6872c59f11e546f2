"""Remote Call Client — the single call primitive handlers use to reach the cluster service.

Invariants:
    - One call() = one request to the cluster service; no retries at this layer
    - Every failure surfaces as a RemoteCallError subclass (core/errors.py)
    - Not-found classification happens here, once: typed kind first, sentinel text second
    - The client never outlives its caller: cancellation propagates into the HTTP request

Design Decisions:
    - RemoteCaller is a Protocol: handlers depend on the capability, tests inject spies
    - httpx.AsyncClient transport; wire format is {"arg": ...} → {"result": ...}
      or a non-2xx {"error": {"message", "kind", "status"}}
"""

import logging
from functools import lru_cache
from typing import Any, Protocol, get_origin

import httpx
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from restapi.core.errors import (
    ErrorContext,
    MalformedResponseError,
    RemoteDomainError,
    RemoteNotFoundError,
    RemoteTimeoutError,
    RemoteTransportError,
)

logger = logging.getLogger(__name__)

# Text of the shared-state "not found" error. Only consulted when the
# backend does not send a typed error kind.
NOT_FOUND_MESSAGE = "not found"
NOT_FOUND_KIND = "not_found"


class RemoteCaller(Protocol):
    """Synchronous-per-request call into the cluster service."""

    async def call(self, service: str, method: str, arg: Any = None) -> Any:
        ...


def classify_remote_error(
    message: str,
    kind: str | None = None,
    status: int | None = None,
    context: ErrorContext | None = None,
) -> RemoteDomainError:
    """Map a backend error payload to a typed domain error."""
    if status is not None and not 400 <= status <= 599:
        status = None
    if kind == NOT_FOUND_KIND or (
        kind is None and message.strip().lower() == NOT_FOUND_MESSAGE
    ):
        return RemoteNotFoundError(message, status, context)
    return RemoteDomainError(message, status, context)


class HTTPRemoteCaller:
    """RemoteCaller over HTTP/JSON, one POST per call."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def call(self, service: str, method: str, arg: Any = None) -> Any:
        context = ErrorContext(rpc_service=service, rpc_method=method)
        extra = {"rpc_service": service, "rpc_method": method}
        logger.debug(f"rpc call {service}.{method}", extra=extra)
        try:
            response = await self.client.post(
                f"/{service}/{method}",
                json={"arg": to_jsonable_python(arg)},
            )
        except httpx.TimeoutException:
            raise RemoteTimeoutError(self.timeout_seconds, context=context)
        except httpx.TransportError as e:
            logger.warning(f"rpc transport failure: {e}", extra=extra)
            raise RemoteTransportError(str(e) or type(e).__name__, context=context)

        if response.is_success:
            return self._result(response, context)
        raise self._error(response, context)

    @staticmethod
    def _result(response: httpx.Response, context: ErrorContext) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            raise MalformedResponseError("body is not JSON", context=context)
        if not isinstance(body, dict):
            raise MalformedResponseError("body is not an object", context=context)
        return body.get("result")

    @staticmethod
    def _error(response: httpx.Response, context: ErrorContext) -> RemoteDomainError:
        try:
            payload = response.json().get("error") or {}
        except (ValueError, AttributeError):
            payload = {}
        if isinstance(payload, str):
            payload = {"message": payload}
        message = payload.get("message") or response.text or response.reason_phrase
        status = payload.get("status")
        return classify_remote_error(
            message,
            kind=payload.get("kind"),
            status=status if isinstance(status, int) else None,
            context=context,
        )

    async def aclose(self) -> None:
        await self.client.aclose()


@lru_cache(maxsize=None)
def _adapter(tp) -> TypeAdapter:
    return TypeAdapter(tp)


def decode_result(tp, raw: Any, context: ErrorContext | None = None):
    """Validate a raw call result into the expected record type.

    A null list result (an empty slice on the other side) decodes as [].
    """
    if raw is None and get_origin(tp) is list:
        return []
    try:
        return _adapter(tp).validate_python(raw)
    except ValidationError as e:
        raise MalformedResponseError(
            f"{e.error_count()} validation error(s) for {getattr(tp, '__name__', tp)}",
            context=context,
        )
