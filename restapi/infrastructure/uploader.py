"""Streaming Uploader — forwards a multipart add body to the cluster adder.

Invariants:
    - The request body is streamed chunk by chunk, never buffered whole
    - Each output line of the adder becomes one AddedOutput event, in order
    - Failures raise RemoteCallError subclasses; the caller decides how to report
      them once the response has started
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Protocol

import httpx

from restapi.core.errors import (
    ErrorContext,
    MalformedResponseError,
    RemoteTimeoutError,
    RemoteTransportError,
)
from restapi.infrastructure.rpc_client import classify_remote_error
from restapi.schemas.cluster import AddedOutput, AddParams

logger = logging.getLogger(__name__)


class Uploader(Protocol):
    """Turns a multipart body into pins, reporting progress as it goes."""

    def add_multipart(
        self,
        params: AddParams,
        body: AsyncIterator[bytes],
        content_type: str,
    ) -> AsyncIterator[AddedOutput]:
        ...


class ClusterUploader:
    """Uploader that relays the multipart stream to the cluster's adder endpoint."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def add_multipart(
        self,
        params: AddParams,
        body: AsyncIterator[bytes],
        content_type: str,
    ) -> AsyncIterator[AddedOutput]:
        context = ErrorContext(rpc_service="Adder", rpc_method="AddMultipart")
        try:
            async with self.client.stream(
                "POST", self.url,
                params=params.to_query(),
                content=body,
                headers={"Content-Type": content_type},
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise classify_remote_error(
                        response.text or response.reason_phrase,
                        status=response.status_code,
                        context=context,
                    )
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    yield _decode_output(line, context)
        except httpx.TimeoutException:
            raise RemoteTimeoutError(self.timeout_seconds or 0, context=context)
        except httpx.TransportError as e:
            logger.warning(f"adder transport failure: {e}")
            raise RemoteTransportError(str(e) or type(e).__name__, context=context)

    async def aclose(self) -> None:
        await self.client.aclose()


def _decode_output(line: str, context: ErrorContext) -> AddedOutput:
    try:
        return AddedOutput.model_validate(json.loads(line))
    except ValueError:
        raise MalformedResponseError(f"bad add output line: {line[:80]!r}", context)
