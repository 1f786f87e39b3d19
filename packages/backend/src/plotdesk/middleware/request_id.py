"""Request ID middleware — unique ID per request or websocket for tracing.

Learn: Every HTTP request and every websocket handshake gets an id, either
from the incoming X-Request-ID header or auto-generated. The id is bound to
structlog's contextvars so every log line for that request (or for the
whole life of a dashboard connection) carries it. HTTP responses echo it
back in the X-Request-ID header.

Plain ASGI rather than BaseHTTPMiddleware, because websocket scopes have to
pass through it too.
"""

import uuid

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER = "X-Request-ID"


class RequestIdMiddleware:
    """Generate and propagate a unique request ID."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        # Use existing request ID or generate a new one
        request_id = Headers(scope=scope).get(HEADER) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        if scope["type"] == "websocket":
            await self.app(scope, receive, send)
            return

        async def send_with_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[HEADER] = request_id
            await send(message)

        await self.app(scope, receive, send_with_id)
