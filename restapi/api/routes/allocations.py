"""Allocations — the pinset as stored in the shared state, optionally filtered by type.

Invariants:
    - An invalid filter is rejected with 400 before the Pins call
    - The type filter applies only to a successful result, order preserved
    - Any domain error while fetching a single allocation is a 404
"""

from fastapi import APIRouter, Depends, Query, Request, status

from restapi.api.dependencies import RequestScope, get_request_scope
from restapi.api.response import error_response, filter_pins_by_type, send_response
from restapi.core.codec import parse_cid, parse_type_filter
from restapi.core.errors import RemoteDomainError
from restapi.infrastructure.rpc_client import decode_result
from restapi.schemas.cluster import Pin

router = APIRouter(prefix="/allocations", tags=["allocations"])


@router.get("")
async def list_allocations(
    filter_str: str = Query("", alias="filter"),
    scope: RequestScope = Depends(get_request_scope),
):
    """Every pin in the shared state whose type matches the filter."""
    mask = parse_type_filter(filter_str)
    result = await scope.call("Cluster", "Pins")
    pins = decode_result(list[Pin], result)
    return send_response(filter_pins_by_type(pins, mask))


@router.get("/{cid}")
async def get_allocation(
    cid: str, request: Request,
    scope: RequestScope = Depends(get_request_scope),
):
    cid = parse_cid(cid)
    try:
        result = await scope.call("Cluster", "PinGet", cid)
    except RemoteDomainError as e:
        return error_response(e, status.HTTP_404_NOT_FOUND, path=request.url.path)
    return send_response(decode_result(Pin, result))
