"""IPFS Repository GC — garbage-collect the IPFS daemons behind the cluster.

Invariants:
    - local=true calls RepoGCLocal and wraps the single result as {peer -> RepoGC}
    - Both modes answer with the GlobalRepoGC shape
"""

from fastapi import APIRouter, Depends, Query

from restapi.api.dependencies import RequestScope, get_request_scope
from restapi.api.response import repo_gc_to_global, send_response
from restapi.core.codec import parse_bool_flag
from restapi.infrastructure.rpc_client import decode_result
from restapi.schemas.cluster import GlobalRepoGC, RepoGC

router = APIRouter(prefix="/ipfs", tags=["ipfs"])


@router.post("/gc")
async def repo_gc(
    local: str | None = Query(None),
    scope: RequestScope = Depends(get_request_scope),
):
    if parse_bool_flag("local", local):
        result = await scope.call("Cluster", "RepoGCLocal")
        return send_response(repo_gc_to_global(decode_result(RepoGC, result)))

    result = await scope.call("Cluster", "RepoGC")
    return send_response(decode_result(GlobalRepoGC, result))
