"""Pins — status, recovery, pin and unpin by CID or by path.

Invariants:
    - CIDs, paths, pin options and filters are decoded before any remote call
    - local=true selects the node-scoped method; the answer is still the global
      shape ({peer -> status}), with exactly one entry per pin
    - Unpin / unpin-path of an unknown target → 404; other errors use the
      automatic status
    - Route order matters: /pins/recover before /pins/{cid}, path routes are
      constrained to the ipfs|ipns|ipld namespaces by the "ns" convertor
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from starlette.convertors import register_url_convertor

from restapi.api.convertors import NamespaceConvertor
from restapi.api.dependencies import RequestScope, get_request_scope
from restapi.api.response import error_response, pin_infos_to_global, send_response
from restapi.core.codec import (
    parse_bool_flag, parse_cid, parse_pin_options, parse_pin_path, parse_status_filter,
)
from restapi.core.errors import RemoteNotFoundError
from restapi.infrastructure.rpc_client import decode_result
from restapi.schemas.cluster import GlobalPinInfo, Pin, PinInfo

logger = logging.getLogger(__name__)
register_url_convertor("ns", NamespaceConvertor())
router = APIRouter(prefix="/pins", tags=["pins"])


# ─── Status ──────────────────────────────────────────────────────

@router.get("")
async def status_all(
    local: str | None = Query(None),
    filter_str: str = Query("", alias="filter"),
    scope: RequestScope = Depends(get_request_scope),
):
    """Status of every tracked pin, optionally limited by tracker status."""
    status_filter = parse_status_filter(filter_str)
    if parse_bool_flag("local", local):
        result = await scope.call("Cluster", "StatusAllLocal", status_filter)
        return send_response(pin_infos_to_global(decode_result(list[PinInfo], result)))

    result = await scope.call("Cluster", "StatusAll", status_filter)
    return send_response(decode_result(list[GlobalPinInfo], result))


# ─── Recover ─────────────────────────────────────────────────────

@router.post("/{cid}/recover")
async def recover(
    cid: str,
    local: str | None = Query(None),
    scope: RequestScope = Depends(get_request_scope),
):
    """Re-trigger pin/unpin operations for a pin in error state."""
    local_mode = parse_bool_flag("local", local)
    cid = parse_cid(cid)
    if local_mode:
        result = await scope.call("Cluster", "RecoverLocal", cid)
        return send_response(decode_result(PinInfo, result).to_global())

    result = await scope.call("Cluster", "Recover", cid)
    return send_response(decode_result(GlobalPinInfo, result))


@router.post("/recover")
async def recover_all(
    local: str | None = Query(None),
    scope: RequestScope = Depends(get_request_scope),
):
    if parse_bool_flag("local", local):
        result = await scope.call("Cluster", "RecoverAllLocal")
        return send_response(pin_infos_to_global(decode_result(list[PinInfo], result)))

    result = await scope.call("Cluster", "RecoverAll")
    return send_response(decode_result(list[GlobalPinInfo], result))


@router.get("/{cid}")
async def pin_status(
    cid: str,
    local: str | None = Query(None),
    scope: RequestScope = Depends(get_request_scope),
):
    local_mode = parse_bool_flag("local", local)
    cid = parse_cid(cid)
    if local_mode:
        result = await scope.call("Cluster", "StatusLocal", cid)
        return send_response(decode_result(PinInfo, result).to_global())

    result = await scope.call("Cluster", "Status", cid)
    return send_response(decode_result(GlobalPinInfo, result))


# ─── Pin / Unpin ─────────────────────────────────────────────────

@router.post("/{cid}")
async def pin(
    cid: str, request: Request,
    scope: RequestScope = Depends(get_request_scope),
):
    """Pin a CID with the options given in the query string."""
    pin_req = Pin.with_options(parse_cid(cid), parse_pin_options(request.query_params))
    logger.debug(f"rest api pin: {pin_req.cid}", extra={"cid": pin_req.cid})
    result = await scope.call("Cluster", "Pin", pin_req)
    logger.debug("rest api pin done", extra={"cid": pin_req.cid})
    return send_response(decode_result(Pin, result))


@router.post("/{namespace:ns}/{path:path}")
async def pin_path(
    namespace: str, path: str, request: Request,
    scope: RequestScope = Depends(get_request_scope),
):
    pin_req = parse_pin_path(namespace, path, parse_pin_options(request.query_params))
    logger.debug(f"rest api pin path: {pin_req.path}")
    result = await scope.call("Cluster", "PinPath", pin_req)
    logger.debug("rest api pin path done")
    return send_response(decode_result(Pin, result))


@router.delete("/{cid}")
async def unpin(
    cid: str, request: Request,
    scope: RequestScope = Depends(get_request_scope),
):
    pin_req = Pin.with_options(parse_cid(cid), parse_pin_options(request.query_params))
    logger.debug(f"rest api unpin: {pin_req.cid}", extra={"cid": pin_req.cid})
    try:
        result = await scope.call("Cluster", "Unpin", pin_req)
    except RemoteNotFoundError as e:
        return error_response(e, status.HTTP_404_NOT_FOUND, path=request.url.path)
    logger.debug("rest api unpin done", extra={"cid": pin_req.cid})
    return send_response(decode_result(Pin, result))


@router.delete("/{namespace:ns}/{path:path}")
async def unpin_path(
    namespace: str, path: str, request: Request,
    scope: RequestScope = Depends(get_request_scope),
):
    pin_req = parse_pin_path(namespace, path, parse_pin_options(request.query_params))
    logger.debug(f"rest api unpin path: {pin_req.path}")
    try:
        result = await scope.call("Cluster", "UnpinPath", pin_req)
    except RemoteNotFoundError as e:
        return error_response(e, status.HTTP_404_NOT_FOUND, path=request.url.path)
    logger.debug("rest api unpin path done")
    return send_response(decode_result(Pin, result))
