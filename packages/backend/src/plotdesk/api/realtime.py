"""Realtime status — who is listening right now.

Learn: Read-only view over the gateway registry for admins. Connections
are reported by role and user id only; tokens never leave the gateway.
"""

from collections import Counter

from fastapi import APIRouter
from pydantic import BaseModel

from plotdesk.config import settings
from plotdesk.realtime.gateway import gateway
from plotdesk.realtime.topics import ALL_TOPICS

router = APIRouter(prefix="/realtime")


class ConnectionInfo(BaseModel):
    id: str
    user_id: str
    role: str


class RealtimeStatus(BaseModel):
    path: str
    connections: int
    by_role: dict[str, int]
    topics: list[str]
    clients: list[ConnectionInfo]


@router.get("/status", response_model=RealtimeStatus)
async def realtime_status():
    """Open connections and the topics the gateway can publish."""
    open_connections = [c for c in gateway.registry.snapshot() if c.principal]
    return RealtimeStatus(
        path=settings.ws_path,
        connections=len(open_connections),
        by_role=dict(Counter(c.principal.role for c in open_connections)),
        topics=sorted(ALL_TOPICS),
        clients=[
            ConnectionInfo(id=c.id, user_id=c.principal.user_id, role=c.principal.role)
            for c in open_connections
        ],
    )
