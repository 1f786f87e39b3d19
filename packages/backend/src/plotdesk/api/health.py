"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running.
The realtime channel is auxiliary, so zero open connections is still healthy.
"""

from fastapi import APIRouter

from plotdesk import __version__
from plotdesk.realtime.gateway import gateway

router = APIRouter()


@router.get("/health")
async def health_check():
    """Check server health and realtime fan-out state."""
    return {
        "status": "healthy",
        "server": "ok",
        "version": __version__,
        "realtime": {"connections": len(gateway.registry)},
    }
