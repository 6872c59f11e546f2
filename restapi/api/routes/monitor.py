"""Peer Monitor — latest metrics by name, and the list of metric names."""

from fastapi import APIRouter, Depends

from restapi.api.dependencies import RequestScope, get_request_scope
from restapi.api.response import send_response
from restapi.infrastructure.rpc_client import decode_result
from restapi.schemas.cluster import Metric

router = APIRouter(prefix="/monitor/metrics", tags=["monitor"])


@router.get("/{name}")
async def latest_metrics(
    name: str, scope: RequestScope = Depends(get_request_scope),
):
    """Latest valid metric of the given type from every peer."""
    result = await scope.call("PeerMonitor", "LatestMetrics", name)
    return send_response(decode_result(list[Metric], result))


@router.get("")
async def metric_names(scope: RequestScope = Depends(get_request_scope)):
    result = await scope.call("PeerMonitor", "MetricNames")
    return send_response(decode_result(list[str], result))
