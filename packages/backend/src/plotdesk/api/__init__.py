"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. Health is open; realtime status is admin-only
and uses the same bearer-token check as the websocket handshake.
"""

from fastapi import APIRouter, Depends

from plotdesk.api.health import router as health_router
from plotdesk.api.realtime import router as realtime_router
from plotdesk.auth.dependencies import require_admin

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])

# Admin routes — require an admin bearer token
api_router.include_router(
    realtime_router, tags=["realtime"], dependencies=[Depends(require_admin)]
)
