"""WebSocket endpoint — real-time change notifications for the dashboard.

Learn: Each dashboard tab connects to /ws?token=JWT and stays connected.
The endpoint only hands the socket to the gateway; auth, registration and
teardown all happen in EventGateway.serve().
"""

from fastapi import APIRouter, WebSocket

from plotdesk.config import settings
from plotdesk.realtime.gateway import gateway

router = APIRouter()


@router.websocket(settings.ws_path)
async def dashboard_websocket(websocket: WebSocket):
    """Long-lived, server → client only. One per browser tab."""
    await gateway.serve(websocket)
