"""Cluster Identity — who answers and which version it runs.

Invariants:
    - One remote call per request, no parameters to validate
"""

from fastapi import APIRouter, Depends

from restapi.api.dependencies import RequestScope, get_request_scope
from restapi.api.response import send_response
from restapi.infrastructure.rpc_client import decode_result
from restapi.schemas.cluster import ID, Version

router = APIRouter(tags=["cluster"])


@router.get("/id")
async def get_id(scope: RequestScope = Depends(get_request_scope)):
    """Identity of the peer serving this API."""
    result = await scope.call("Cluster", "ID")
    return send_response(decode_result(ID, result))


@router.get("/version")
async def get_version(scope: RequestScope = Depends(get_request_scope)):
    result = await scope.call("Cluster", "Version")
    return send_response(decode_result(Version, result))
