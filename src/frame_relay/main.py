"""
Frame Relay Main Application
============================

FastAPI entry point for the frame relay.

The producer posts frames to /frame; every connected viewer receives
each one over the WebSocket as a ``video-frame`` event. New viewers get
the latest frame immediately.

Endpoints:
    GET  /           - Service information and live stats
    GET  /health     - Liveness probe
    POST /frame      - Frame upload from the producer
    GET  /viewer     - Embedded HTML viewer
    WS   /ws/stream  - Push channel (path configurable)
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from frame_relay.config import Settings, settings as default_settings
from frame_relay.errors import PayloadTooLarge, RelayError
from frame_relay.ingress import FrameIngress
from frame_relay.models.output import HealthReport, ServiceInfo
from frame_relay.relay import BroadcastHub, ViewerConnection
from frame_relay.viewer import render_viewer_page


logger = logging.getLogger(__name__)


def _iso_now() -> str:
    """UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    hub: Optional[BroadcastHub] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Configuration. Uses the global settings when omitted.
        hub: Broadcast hub. A fresh one is created when omitted.

    Returns:
        FastAPI app with the hub on ``app.state.hub``
    """
    settings = settings or default_settings
    hub = hub if hub is not None else BroadcastHub()
    ingress = FrameIngress(
        hub,
        max_body_bytes=settings.ingress.max_body_bytes,
        log_every_n_frames=settings.ingress.log_every_n_frames,
    )
    ws_path = settings.viewer.ws_path

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan: startup banner, close viewers on shutdown."""
        port = settings.server.port
        logger.info(f"Starting {settings.service.name} {settings.service.version} on port {port}")
        logger.info(f"Health check: http://localhost:{port}/health")
        logger.info(f"Frame upload: http://localhost:{port}/frame")
        logger.info(f"WebSocket ready at {ws_path}")
        if settings.viewer.enable_page:
            logger.info("Viewer available at /viewer")

        yield

        logger.info(f"Shutting down, closing {hub.client_count} viewer(s)")
        hub.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.service.name,
        description="Real-time frame relay: producer uploads, viewers receive over WebSocket",
        version=settings.service.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.hub = hub
    app.state.ingress = ingress

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_methods=settings.cors.allow_methods,
        allow_headers=["*"],
    )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        if exc.status_code < 500:
            logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.detail}")
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    # =========================================================================
    # HTTP Endpoints
    # =========================================================================

    @app.get("/")
    async def root() -> JSONResponse:
        """Service information endpoint."""
        endpoints = {
            "health": "/health",
            "frame_upload": "/frame (POST)",
        }
        if settings.viewer.enable_page:
            endpoints["viewer"] = "/viewer"
        endpoints["websocket"] = ws_path

        info = ServiceInfo(
            name=settings.service.name,
            version=settings.service.version,
            endpoints=endpoints,
            stats=hub.stats(),
        )
        return JSONResponse(info.model_dump())

    @app.get("/health")
    async def health() -> JSONResponse:
        """
        Liveness probe.

        Always returns 200 while the process is serving.
        """
        report = HealthReport(
            timestamp=_iso_now(),
            clients=hub.client_count,
            total_frames=hub.total_frames,
        )
        return JSONResponse(report.model_dump())

    @app.post("/frame")
    async def upload_frame(request: Request) -> JSONResponse:
        """Receive one frame from the producer and fan it out."""
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > ingress.max_body_bytes:
            raise PayloadTooLarge(f"Declared body of {declared} bytes")

        body = await ingress.read_body(request.stream())
        ack = ingress.ingest(body)
        return JSONResponse(ack.model_dump())

    if settings.viewer.enable_page:
        page = render_viewer_page(ws_path, title=settings.viewer.page_title)

        @app.get("/viewer")
        async def viewer() -> HTMLResponse:
            """Embedded HTML viewer."""
            return HTMLResponse(page)

    # =========================================================================
    # WebSocket Endpoints
    # =========================================================================

    @app.websocket(ws_path)
    async def viewer_stream(websocket: WebSocket) -> None:
        """
        Push channel for viewers.

        Registered before the handshake is accepted so the cached frame is
        the first message the viewer receives.
        """
        connection = ViewerConnection(websocket, outbox_size=settings.viewer.outbox_size)
        hub.register(connection)
        try:
            await connection.accept()
            await connection.serve()
        except Exception as e:
            logger.warning(f"Viewer {connection.connection_id} error: {e}")
        finally:
            hub.unregister(connection)
            connection.close()

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Serve the relay with uvicorn (``frame-relay`` console script)."""
    import uvicorn

    # Render and Cloud Run set PORT
    port = int(os.environ.get("PORT", default_settings.server.port))

    uvicorn.run(
        "frame_relay.main:app",
        host=default_settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
