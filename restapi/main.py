"""Cluster REST API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ClusterAPIError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Remote caller and uploader built on startup, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event
    - Transport clients live on app.state; routes get them through dependencies
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restapi.api.error_handlers import register_error_handlers
from restapi.api.routes import (
    add, allocations, cluster, health, ipfs, monitor, peers, pins,
)
from restapi.config import get_settings
from restapi.infrastructure.observability import setup_logging
from restapi.infrastructure.rpc_client import HTTPRemoteCaller
from restapi.infrastructure.uploader import ClusterUploader

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app.state.remote_caller = HTTPRemoteCaller(
        settings.rpc_url, timeout_seconds=settings.rpc_timeout_seconds,
    )
    app.state.uploader = ClusterUploader(
        settings.uploader_url, timeout_seconds=settings.uploader_timeout_seconds,
    )
    logger.info(f"REST API started, cluster RPC at {settings.rpc_url}")
    yield
    await app.state.remote_caller.aclose()
    await app.state.uploader.aclose()
    logger.info("REST API shutting down")


app = FastAPI(title="Cluster REST API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Order within each router is significant (see routes/pins.py)
app.include_router(cluster.router)
app.include_router(peers.router)
app.include_router(add.router)
app.include_router(allocations.router)
app.include_router(pins.router)
app.include_router(ipfs.router)
app.include_router(health.router)
app.include_router(monitor.router)

register_error_handlers(app)
