"""Response Shaper — turns a handler's result or error into status + JSON body.

Invariants:
    - AUTOMATIC status: result None → 204, any other result → 200, error → its own status
    - Explicit statuses override the automatic policy (body decode 400, unpin 404, ...)
    - Clients always see the global shape: local results are wrapped {peer -> record}
    - Type filtering keeps input order and never touches the error path

Design Decisions:
    - Module-level functions, no base class: routes call them directly, error
      handlers reuse error_response()
"""

import logging
from collections.abc import Sequence

from fastapi import status as http_status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from restapi.core.domain_types import PinType
from restapi.core.errors import ClusterAPIError
from restapi.schemas.cluster import GlobalPinInfo, GlobalRepoGC, Pin, PinInfo, RepoGC

logger = logging.getLogger(__name__)

# Sentinel: derive the status from the result or the error.
AUTOMATIC = 0


def send_response(result=None, status: int = AUTOMATIC) -> Response:
    """Emit a success response for the result of a remote call."""
    if status == AUTOMATIC:
        status = (
            http_status.HTTP_204_NO_CONTENT if result is None
            else http_status.HTTP_200_OK
        )
    if status == http_status.HTTP_204_NO_CONTENT:
        return Response(status_code=status)
    return JSONResponse(status_code=status, content=jsonable_encoder(result))


def error_response(
    exc: ClusterAPIError, status: int = AUTOMATIC, path: str | None = None,
) -> JSONResponse:
    """Emit an error response; the message is forwarded verbatim."""
    if status == AUTOMATIC:
        status = exc.http_status
    log = logger.warning if status < 500 else logger.error
    log(
        f"sending error response: {status}: {exc.message}",
        extra={"error_code": exc.code, "status_code": status, "path": path},
    )
    return JSONResponse(status_code=status, content=exc.to_response(status))


# ─── Local → Global ──────────────────────────────────────────────

def pin_infos_to_global(pin_infos: Sequence[PinInfo]) -> list[GlobalPinInfo]:
    """Wrap each local status in its one-entry global form, order preserved."""
    return [p.to_global() for p in pin_infos]


def repo_gc_to_global(repo_gc: RepoGC) -> GlobalRepoGC:
    return repo_gc.to_global()


# ─── Type Filter ─────────────────────────────────────────────────

def filter_pins_by_type(pins: Sequence[Pin], mask: PinType) -> list[Pin]:
    """Keep pins whose type intersects the mask. ALL is the identity."""
    if mask == PinType.ALL:
        return list(pins)
    return [pin for pin in pins if pin.type & mask]
