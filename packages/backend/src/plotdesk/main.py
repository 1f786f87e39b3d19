"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown: on the way down every open
dashboard socket is closed so clients drop straight into their reconnect
loop instead of waiting on a dead peer.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plotdesk import __version__
from plotdesk.api import api_router
from plotdesk.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "plotdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        ws_path=settings.ws_path,
    )

    yield

    logger.info("plotdesk.shutdown")

    from plotdesk.realtime.gateway import gateway
    await gateway.close_all()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="PlotDesk",
        description="Real-time update fan-out for the lead/plot CRM dashboard",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → CORS → handler

    from plotdesk.middleware.request_id import RequestIdMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route (real-time change notifications)
    from plotdesk.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: plotdesk.main:app)
app = create_app()
