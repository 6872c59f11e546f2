"""Cluster Peers — list, add and remove members of the peerset.

Invariants:
    - POST /peers body errors (bad JSON, bad peer_id) → 400, zero remote calls
    - Peer ids are decoded by the codec before dispatch
    - PeerRemove returns no record → 204
"""

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError

from restapi.api.dependencies import RequestScope, get_request_scope
from restapi.api.response import error_response, send_response
from restapi.core.codec import parse_peer_id
from restapi.core.errors import InvalidInputError
from restapi.infrastructure.rpc_client import decode_result
from restapi.schemas.cluster import ID, PeerAddBody

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/peers", tags=["peers"])


@router.get("")
async def list_peers(scope: RequestScope = Depends(get_request_scope)):
    """Identity of every peer in the peerset."""
    result = await scope.call("Cluster", "Peers")
    return send_response(decode_result(list[ID], result))


@router.post("")
async def add_peer(
    request: Request, scope: RequestScope = Depends(get_request_scope),
):
    """Add a peer to the peerset. Body: {"peer_id": "<id>"}."""
    try:
        body = PeerAddBody.model_validate(json.loads(await request.body()))
    except (ValueError, ValidationError):
        return error_response(
            InvalidInputError("error decoding request body", "body"),
            status.HTTP_400_BAD_REQUEST,
            path=request.url.path,
        )

    try:
        pid = parse_peer_id(body.peer_id, field="peer_id")
    except InvalidInputError:
        return error_response(
            InvalidInputError("error decoding peer_id", "peer_id"),
            status.HTTP_400_BAD_REQUEST,
            path=request.url.path,
        )

    result = await scope.call("Cluster", "PeerAdd", pid)
    return send_response(decode_result(ID, result))


@router.delete("/{peer}")
async def remove_peer(
    peer: str, scope: RequestScope = Depends(get_request_scope),
):
    pid = parse_peer_id(peer)
    await scope.call("Cluster", "PeerRemove", pid)
    logger.info(f"peer {pid} removed", extra={"peer": pid})
    return send_response(None)
