"""Cluster Health — connectivity graph and active alerts.

Invariants:
    - Both endpoints relay one Cluster call each; no query parameters
"""

from fastapi import APIRouter, Depends

from restapi.api.dependencies import RequestScope, get_request_scope
from restapi.api.response import send_response
from restapi.infrastructure.rpc_client import decode_result
from restapi.schemas.cluster import Alert, ConnectGraph

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/graph")
async def connection_graph(scope: RequestScope = Depends(get_request_scope)):
    """Peer-to-peer and peer-to-IPFS connectivity as seen by this peer."""
    result = await scope.call("Cluster", "ConnectGraph")
    return send_response(decode_result(ConnectGraph, result))


@router.get("/alerts")
async def alerts(scope: RequestScope = Depends(get_request_scope)):
    result = await scope.call("Cluster", "Alerts")
    return send_response(decode_result(list[Alert], result))
