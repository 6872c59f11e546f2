"""Add — stream a multipart body to the uploader and relay its progress.

Invariants:
    - Non-multipart bodies and invalid add parameters → 400 before streaming starts
    - The body is handed over as a stream, never buffered here
    - The first output is awaited before the response starts: the body is fully
      consumed by then, and an early failure still gets its own status
    - Once streaming has begun the status is fixed; a later failure is written
      as a final {"error": ...} line instead
"""

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from restapi.api.dependencies import get_uploader
from restapi.api.response import error_response
from restapi.core.codec import parse_add_params
from restapi.core.errors import ClusterAPIError, InvalidInputError
from restapi.infrastructure.uploader import Uploader
from restapi.schemas.cluster import AddedOutput

logger = logging.getLogger(__name__)
router = APIRouter(tags=["add"])

_MULTIPART_TYPES = ("multipart/form-data", "multipart/mixed")


@router.post("/add")
async def add(request: Request, uploader: Uploader = Depends(get_uploader)):
    """Add content to the cluster from a multipart/form-data body."""
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(_MULTIPART_TYPES) or "boundary=" not in content_type:
        return error_response(
            InvalidInputError("request Content-Type isn't multipart/form-data", "body"),
            status.HTTP_400_BAD_REQUEST,
            path=request.url.path,
        )
    try:
        params = parse_add_params(request.query_params)
    except InvalidInputError as e:
        return error_response(e, status.HTTP_400_BAD_REQUEST, path=request.url.path)

    events = uploader.add_multipart(params, request.stream(), content_type)
    try:
        first = await anext(events)
    except StopAsyncIteration:
        first = None
    except ClusterAPIError as e:
        return error_response(e, path=request.url.path)

    return StreamingResponse(
        _ndjson(first, events, request.url.path), media_type="application/x-ndjson",
    )


async def _ndjson(
    first: AddedOutput | None, events: AsyncIterator[AddedOutput], path: str,
) -> AsyncIterator[str]:
    if first is None:
        return
    yield first.model_dump_json() + "\n"
    try:
        async for output in events:
            yield output.model_dump_json() + "\n"
    except ClusterAPIError as e:
        logger.error(
            f"add stream failed: {e.message}",
            extra={"error_code": e.code, "path": path},
        )
        yield json.dumps(e.to_response()) + "\n"
