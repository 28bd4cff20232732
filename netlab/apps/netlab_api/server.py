"""
netlab HTTP API.

FastAPI application exposing the WiFi service:
- Scan for access points
- Connect as a client
- Start a hotspot
- Probe internet connectivity
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from netlab import __version__
from netlab.apps.netlab_core.service import WiFiService
from netlab.config import NetlabConfig
from netlab.core.errors import NetlabError
from netlab.domain.models import (
    ConnectivityResponse,
    ConnectRequest,
    ConnectResponse,
    HotspotRequest,
    HotspotResponse,
    ScanRequest,
    ScanResponse,
)

logger = logging.getLogger(__name__)


def create_app(service: WiFiService, cfg: NetlabConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    cfg = cfg or service.cfg

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("netlab API ready (debug=%s)", cfg.web.debug)
        yield
        await service.close()

    app = FastAPI(
        title="netlab",
        version=__version__,
        docs_url="/api/docs",
        redoc_url=None,
        debug=cfg.web.debug,
        lifespan=lifespan,
    )
    app.state.service = service

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.web.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "PATCH", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - started) * 1000.0
        logger.info("%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed)
        return response

    _register_error_handlers(app)
    _register_routes(app, service)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NetlabError)
    async def netlab_error(request: Request, exc: NetlabError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(BodyValidationError)
    async def body_error(request: Request, exc: BodyValidationError) -> JSONResponse:
        # Error entries echo the input, which may carry a passphrase
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"error": "RequestValidationError", "detail": detail},
        )


def _register_routes(app: FastAPI, service: WiFiService) -> None:
    """Register API routes."""

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "version": __version__}

    @app.post("/api/wifi/scan", response_model=ScanResponse)
    async def scan(request: ScanRequest) -> ScanResponse:
        """Scan for access points."""
        return await service.scan(request)

    @app.post("/api/wifi/connect", response_model=ConnectResponse)
    async def connect(request: ConnectRequest) -> ConnectResponse:
        """Connect to a network as a client."""
        return await service.connect(request)

    @app.post("/api/wifi/hotspot", response_model=HotspotResponse)
    async def hotspot(request: HotspotRequest) -> HotspotResponse:
        """Start a WPA2 hotspot."""
        return await service.start_hotspot(request)

    @app.get("/api/connectivity", response_model=ConnectivityResponse)
    async def connectivity(timeout_ms: int = Query(0, ge=0)) -> ConnectivityResponse:
        return await service.check_connectivity(timeout_ms)
