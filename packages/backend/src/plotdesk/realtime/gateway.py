"""Event gateway — authenticated websocket fan-out.

Learn: Every connection goes PendingAuth → Open → Closed.
1. The upgrade request must carry a bearer token (?token= or Authorization).
   It is checked with the same verify_token() the REST API uses. A bad,
   missing or expired token gets a 401 before the socket is ever accepted.
2. Once open, the connection sits in the registry and receives every
   envelope published until it closes.
3. publish() is fire-and-forget: serialize once, hand the identical text to
   every open connection, never wait for or collect acknowledgements.
   A client that is offline when something is published just misses it;
   the REST API is the source of truth.
"""

import asyncio
from typing import Any, Mapping, Optional

import structlog
from fastapi import WebSocket
from fastapi.responses import JSONResponse

from plotdesk.auth.dependencies import Principal, authenticate_token, extract_credential
from plotdesk.auth.jwt import TokenError
from plotdesk.realtime.envelope import Envelope, EnvelopeError
from plotdesk.realtime.registry import Connection, ConnectionRegistry
from plotdesk.realtime.topics import CONNECTED, is_topic

logger = structlog.get_logger()

UNAUTHORIZED_CLOSE_CODE = 4001
GOING_AWAY_CLOSE_CODE = 1001


class EventGateway:
    """Accepts dashboard websockets and broadcasts envelopes to all of them."""

    def __init__(self, registry: Optional[ConnectionRegistry] = None):
        self.registry = registry if registry is not None else ConnectionRegistry()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: set[asyncio.Task] = set()

    # ── Handshake ────────────────────────────────────────────

    def authenticate(self, websocket: WebSocket) -> tuple[Optional[Principal], str]:
        """Resolve the principal for an upgrade request.

        Returns (principal, "") on success or (None, reason) on failure.
        """
        token = extract_credential(websocket.query_params, websocket.headers)
        if not token:
            return None, "Authentication required"
        try:
            return authenticate_token(token), ""
        except TokenError as e:
            return None, str(e)

    async def reject(self, websocket: WebSocket, reason: str) -> None:
        """Refuse the upgrade with a 401 (or close 4001 if the server can't send one)."""
        if "websocket.http.response" in websocket.scope.get("extensions", {}):
            await websocket.send_denial_response(
                JSONResponse(
                    {"detail": reason},
                    status_code=401,
                    headers={"WWW-Authenticate": "Bearer"},
                )
            )
        else:
            await websocket.close(code=UNAUTHORIZED_CLOSE_CODE, reason=reason)

    # ── Connection lifecycle ─────────────────────────────────

    async def serve(self, websocket: WebSocket) -> None:
        """Run one connection from handshake to teardown."""
        connection = Connection(websocket)
        principal, reason = self.authenticate(websocket)
        if principal is None:
            logger.info(
                "realtime.rejected",
                connection_id=connection.id,
                reason=reason,
                client=_client_addr(websocket),
            )
            connection.mark_closed()
            await self.reject(websocket, reason)
            return

        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        connection.open(principal)
        self.registry.add(connection)
        logger.info(
            "realtime.connected",
            connection_id=connection.id,
            user_id=principal.user_id,
            role=principal.role,
            connections=len(self.registry),
        )

        try:
            hello = Envelope.build(
                CONNECTED,
                {
                    "connectionId": connection.id,
                    "message": "Connected to real-time updates",
                },
            )
            await connection.send_text(hello.to_json())

            # No client → server protocol: drain frames until the peer goes away.
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        except Exception as e:
            logger.warning(
                "realtime.connection_error",
                connection_id=connection.id,
                error=str(e),
            )
        finally:
            self.disconnect(connection)

    def disconnect(self, connection: Connection) -> bool:
        """Close ``connection`` and drop it from the registry.

        Safe to call more than once; only the first call does anything.
        """
        if not connection.mark_closed():
            return False
        self.registry.remove(connection)
        logger.info(
            "realtime.disconnected",
            connection_id=connection.id,
            user_id=connection.principal.user_id if connection.principal else None,
            connections=len(self.registry),
        )
        return True

    async def close_all(self) -> None:
        """Close every open connection (used at shutdown)."""
        for connection in self.registry.snapshot():
            self.disconnect(connection)
            try:
                await connection.websocket.close(code=GOING_AWAY_CLOSE_CODE)
            except Exception as e:
                logger.debug(
                    "realtime.close_failed", connection_id=connection.id, error=str(e)
                )
        await self.flush()

    # ── Fan-out ──────────────────────────────────────────────

    def publish(self, topic: str, payload: Optional[Mapping[str, Any]] = None) -> None:
        """Broadcast ``topic`` to every open connection.

        Call this after the write has committed, never before. Works from
        the event loop or from a worker thread; never raises into the caller.
        """
        if not is_topic(topic):
            logger.error("realtime.unknown_topic", topic=topic)
            return
        try:
            message = Envelope.build(topic, payload).to_json()
        except (EnvelopeError, TypeError, ValueError) as e:
            logger.error("realtime.bad_payload", topic=topic, error=str(e))
            return

        # Recipients are fixed now; anyone connecting later doesn't get it.
        recipients = self.registry.snapshot()
        if not recipients:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None and (self._loop is None or running is self._loop):
            self._dispatch(recipients, message)
        elif self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._dispatch, recipients, message)
        else:
            logger.warning("realtime.no_loop", topic=topic)
            return

        logger.debug("realtime.published", topic=topic, recipients=len(recipients))

    def _dispatch(self, recipients: list[Connection], message: str) -> None:
        for connection in recipients:
            if not connection.is_open:
                continue
            task = asyncio.get_running_loop().create_task(self._send(connection, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _send(self, connection: Connection, message: str) -> None:
        if not connection.is_open:
            return
        try:
            await connection.send_text(message)
        except Exception as e:
            # The connection's own close handler removes it.
            logger.warning(
                "realtime.send_failed",
                connection_id=connection.id,
                error=str(e),
            )

    async def flush(self) -> None:
        """Wait for every in-flight send to finish."""
        await asyncio.sleep(0)
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def _client_addr(websocket: WebSocket) -> Optional[str]:
    client = websocket.client
    return f"{client.host}:{client.port}" if client else None


# Process-wide gateway — the registry lives here
gateway = EventGateway()


def publish_event(topic: str, payload: Optional[Mapping[str, Any]] = None) -> None:
    """Publish through the process-wide gateway.

    Learn: Every mutation handler calls this after its write succeeds.
    """
    gateway.publish(topic, payload)
